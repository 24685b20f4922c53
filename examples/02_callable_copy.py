"""
Example 02: Callable Copies

This example demonstrates compiling a copy plan into a Python callable and
running it against plain dicts and dataclass instances.
"""

from dataclasses import dataclass

from struct_copy import CopyConfig, StructCopier, StructDescriptor, StructIndex


@dataclass
class AddressDTO:
    """Destination type for AddressDTO"""
    Street: str
    City: str


@dataclass
class UserDTO:
    """Destination type for UserDTO"""
    Name: str
    Age: int
    Address: AddressDTO | None
    Tags: list[str] | None


def main():
    index = StructIndex(
        structs=[
            StructDescriptor.from_go(
                "User",
                "struct { Name string; Age int64; Address *Address; Tags []string }",
                package="models",
            ),
            StructDescriptor.from_go(
                "Address", "struct { Street string; City string }", package="models"
            ),
            StructDescriptor.from_go(
                "UserDTO",
                "struct { Name string; Age int8; Address *AddressDTO; Tags []string }",
                package="api",
            ),
            StructDescriptor.from_go(
                "AddressDTO", "struct { Street string; City string }", package="api"
            ),
        ]
    )
    config = CopyConfig(
        target="callable",
        factories={"api.UserDTO": UserDTO, "api.AddressDTO": AddressDTO},
    )
    copier = StructCopier(index, config)
    result = copier.generate("models.User", "api.UserDTO")
    if not result.success:
        print(f"Generation failed: {result.message}")
        return

    copy_user = result.artifact
    print(f"=== {copy_user!r} ===\n")

    user = {
        "Name": "Alice",
        "Age": 300,
        "Address": {"Street": "1 Main St", "City": "Springfield"},
        "Tags": ["admin"],
    }
    dto = copy_user(user)
    print(f"Copied: {dto}")
    # int64 -> int8 wraps around like a Go conversion
    print(f"Age 300 as int8: {dto.Age}\n")

    users = [user, {"Name": "Bob", "Age": 42, "Address": None, "Tags": None}]
    for copied in copy_user.copy_many(users):
        print(f"  - {copied}")


if __name__ == "__main__":
    main()

"""
Example 01: Basic Copy Generation

This example demonstrates generating a Go copy function from two struct
descriptors using StructCopier.
"""

from struct_copy import StructCopier, StructDescriptor, StructIndex


def main():
    index = StructIndex(
        structs=[
            StructDescriptor.from_go(
                "User",
                "struct { ID int64; Name string; Age int; Email *string }",
                package="models",
            ),
            StructDescriptor.from_go(
                "UserDTO",
                'struct { ID int64; FullName string `copy:"name"`; Age int32; Email string }',
                package="api",
            ),
        ]
    )
    copier = StructCopier(index)

    print("=== Match Report ===\n")
    for mapping in copier.match("models.User", "api.UserDTO").mappings:
        source = mapping.source.name if mapping.source else "-"
        print(f"  {mapping.destination.name:<10} <- {source:<6} ({mapping.rule.value})")
    print()

    print("=== Generated Go ===\n")
    result = copier.generate("models.User", "api.UserDTO")
    if result.success:
        print(result.artifact)
    else:
        print(f"Generation failed: {result.message}")


if __name__ == "__main__":
    main()

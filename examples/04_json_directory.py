"""
Example 04: JSON Descriptor Directory

This example demonstrates loading struct descriptors from a directory of
JSON documents and handling a copy that cannot be generated.
"""

import json
import tempfile
from pathlib import Path

from struct_copy import StructCopier, StructIndex


def main():
    # Create temporary descriptor directory
    descriptor_dir = Path(tempfile.mkdtemp())
    (descriptor_dir / "models").mkdir()
    (descriptor_dir / "api").mkdir()

    (descriptor_dir / "models" / "user.json").write_text(
        json.dumps(
            {
                "name": "User",
                "fields": [
                    {"name": "Name", "type": "string"},
                    {"name": "Roles", "type": "map[string]int"},
                ],
            }
        )
    )
    (descriptor_dir / "api" / "dto.json").write_text(
        json.dumps(
            [
                {
                    "name": "UserDTO",
                    "fields": [
                        {"name": "Name", "type": "string"},
                        {"name": "Roles", "type": "map[string]int64"},
                    ],
                },
                {
                    "name": "StrictDTO",
                    "fields": [
                        {"name": "Name", "type": "int"},
                        {"name": "Token", "type": "string"},
                    ],
                },
            ]
        )
    )

    index = StructIndex.from_directory(descriptor_dir)
    copier = StructCopier(index)

    print("=== Generated Go ===\n")
    result = copier.generate("models.User", "api.UserDTO")
    print(result.artifact if result.success else result.message)

    print("=== Failed Generation ===\n")
    result = copier.generate("models.User", "api.StrictDTO")
    print(f"success={result.success}")
    for error in result.errors:
        print(f"  - {type(error).__name__}: {error}")

    # Clean up
    for json_file in descriptor_dir.rglob("*.json"):
        json_file.unlink()
    for package_dir in ("models", "api"):
        (descriptor_dir / package_dir).rmdir()
    descriptor_dir.rmdir()


if __name__ == "__main__":
    main()

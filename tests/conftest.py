"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from struct_copy.core.config import CopyConfig
from struct_copy.core.descriptors import AliasDescriptor, StructDescriptor
from struct_copy.core.registry import StructIndex


def struct(name: str, body: str, package: str | None = "models", **kwargs: Any) -> StructDescriptor:
    """Shorthand: struct("User", "struct { Name string }")."""
    return StructDescriptor.from_go(name, body, package=package, **kwargs)


@pytest.fixture
def config() -> CopyConfig:
    return CopyConfig()


@pytest.fixture
def user_index() -> StructIndex:
    """Users with addresses, tags and an embedded base struct."""
    return StructIndex(
        structs=[
            struct("Base", "struct { ID int64; CreatedAt int64 }"),
            struct(
                "User",
                'struct { Base; Name string; Age int; Nm string; Tags []string; '
                "Address Address; Previous []Address; Manager *User }",
            ),
            struct("Address", "struct { Street string; City string }"),
            struct(
                "UserDTO",
                'struct { ID int64; Name string; Age int32; Alias string `copy:"nm"`; '
                "Tags []string; Address AddressDTO; Previous []AddressDTO; Manager *UserDTO }",
            ),
            struct("AddressDTO", "struct { Street string; City string }"),
        ],
        aliases=[
            AliasDescriptor(name="UserID", package="models", underlying="int64"),
        ],
    )


@pytest.fixture
def tmp_descriptor_dir(tmp_path: Path) -> Path:
    """Temporary directory for JSON descriptor documents."""
    return tmp_path / "descriptors"


@pytest.fixture
def write_descriptor(tmp_descriptor_dir: Path):
    """Helper to write descriptor documents into the temp directory.

    Usage:
        write_descriptor("models/user.json", {"name": "User", "fields": [...]})
    """

    def _write(relative_path: str, document: Any) -> Path:
        file_path = tmp_descriptor_dir / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        return file_path

    return _write

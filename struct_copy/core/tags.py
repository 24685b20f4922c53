"""Go struct tag helpers.

Tags are kept on FieldDescriptor as a plain ``key -> value`` dict, e.g.
``{"json": "user_name,omitempty", "copy": "Name"}``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

# key:"value" pairs inside a tag literal; values may contain escaped quotes
_TAG_PAIR_PATTERN = re.compile(r'([\w-]+):"((?:[^"\\]|\\.)*)"')

# Tag key that controls copying: copy:"Alias" or copy:"-"
COPY_TAG = "copy"
SKIP_VALUE = "-"


def parse_tag_text(text: str) -> dict[str, str]:
    """Parse a Go struct tag literal into a dict.

    Accepts raw (`` `json:"id"` ``), interpreted (``"json:\\"id\\""``) or
    bare (``json:"id"``) forms. Duplicate keys keep the first value, like
    reflect.StructTag.Get.
    """
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] == "`":
        text = text[1:-1]
    elif len(text) >= 2 and text[0] == text[-1] == '"':
        text = text[1:-1].replace('\\"', '"')
    result: dict[str, str] = {}
    for key, value in _TAG_PAIR_PATTERN.findall(text):
        result.setdefault(key, value)
    return result


def tag_name(value: str) -> str:
    """Name part of a tag value: ``"id,omitempty"`` -> ``"id"``."""
    return value.split(",", 1)[0].strip()


def tag_options(value: str) -> list[str]:
    return [option.strip() for option in value.split(",")[1:]]


def alias_names(tags: Mapping[str, str], keys: Iterable[str]) -> list[str]:
    """Alias names declared under ``keys``, in key order, without duplicates."""
    names: list[str] = []
    for key in keys:
        value = tags.get(key)
        if value is None:
            continue
        name = tag_name(value)
        if name and name != SKIP_VALUE and name not in names:
            names.append(name)
    return names


def is_skipped(tags: Mapping[str, str]) -> bool:
    """True when the field opts out of copying with ``copy:"-"``."""
    value = tags.get(COPY_TAG)
    return value is not None and tag_name(value) == SKIP_VALUE


def has_omitempty(tags: Mapping[str, str]) -> bool:
    value = tags.get("json")
    return value is not None and "omitempty" in tag_options(value)


def render_tags(tags: Mapping[str, str], keys: Iterable[str] | None = None) -> str | None:
    """Render tags as a raw Go tag literal, optionally keeping only ``keys``.

    Returns None when nothing is left to render.
    """
    if keys is not None:
        wanted = list(keys)
        items = [(key, tags[key]) for key in wanted if key in tags]
    else:
        items = list(tags.items())
    if not items:
        return None
    return "`" + " ".join(f'{key}:"{value}"' for key, value in items) + "`"

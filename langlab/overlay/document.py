# langlab/overlay/document.py
"""
Structural operations on YAML configuration documents.

Documents are loaded with the ruamel round-trip loader so key order,
comments and quoting survive a load/patch/dump cycle. Every edit here
works on the parsed tree; nothing splices text.
"""

import copy
import sys
from pathlib import Path
from typing import Any, Iterator, Sequence

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.error import YAMLError
from ruamel.yaml.scalarstring import DoubleQuotedScalarString
from ruamel.yaml.tokens import CommentToken

from langlab.core.errors import (
    MalformedConfigError,
    MissingBaseConfigError,
    OverlayBuildError,
)


KeyPath = tuple[Any, ...]


def _yaml() -> YAML:
    yaml = YAML(typ="rt")
    yaml.preserve_quotes = True
    yaml.boolean_representation = ["false", "true"]
    yaml.width = sys.maxsize
    yaml.representer.ignore_aliases = lambda *args: True
    return yaml


# -------------------------
# LOAD / DUMP
# -------------------------

def load_document(
    path: Path,
    missing_error: type[OverlayBuildError] = MissingBaseConfigError,
) -> CommentedMap:
    """
    Load a YAML document whose root is a mapping.

    An empty file loads as an empty mapping.

    Raises:
        missing_error: If the file does not exist or cannot be read
        MalformedConfigError: If it does not parse or the root is not a mapping
    """
    path = Path(path)

    if not path.is_file():
        raise missing_error(f"Configuration file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            document = _yaml().load(f)
    except OSError as e:
        raise missing_error(f"Configuration file is not readable: {path} ({e})") from e
    except UnicodeDecodeError as e:
        raise MalformedConfigError(f"{path} is not valid UTF-8: {e}") from e
    except YAMLError as e:
        raise MalformedConfigError(f"Cannot parse {path}: {e}") from e

    if document is None:
        return CommentedMap()

    if not isinstance(document, CommentedMap):
        raise MalformedConfigError(
            f"Root of {path} must be a mapping, got {type(document).__name__}"
        )

    return document


def dump_document(document: CommentedMap, path: Path) -> Path:
    """
    Write a document, creating parent directories.

    Raises:
        OverlayBuildError: If the file cannot be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            _yaml().dump(document, f)
    except OSError as e:
        raise OverlayBuildError(f"Cannot write {path}: {e}") from e
    return path


def copy_document(document: CommentedMap) -> CommentedMap:
    return copy.deepcopy(document)


def quoted(value: str) -> DoubleQuotedScalarString:
    return DoubleQuotedScalarString(value)


# -------------------------
# LOOKUP
# -------------------------

def iter_key_locations(
    node: Any,
    key: str,
    skip_under: Sequence[str] = (),
    _path: KeyPath = (),
) -> Iterator[tuple[CommentedMap, KeyPath]]:
    """
    Yield ``(mapping, path)`` for every mapping holding ``key``.

    Depth first, in document order. Values of keys named in ``skip_under``
    are not descended into.
    """
    if isinstance(node, CommentedMap):
        for k, v in node.items():
            if k == key:
                yield node, _path + (k,)
            if k in skip_under:
                continue
            yield from iter_key_locations(v, key, skip_under, _path + (k,))

    elif isinstance(node, CommentedSeq):
        for i, item in enumerate(node):
            yield from iter_key_locations(item, key, skip_under, _path + (i,))


def key_paths(document: CommentedMap, key: str, skip_under: Sequence[str] = ()) -> list[KeyPath]:
    return [path for _, path in iter_key_locations(document, key, skip_under)]


def get_path(document: CommentedMap, path: Sequence[Any]) -> Any:
    node = document
    for part in path:
        node = node[part]
    return node


# -------------------------
# PATCH
# -------------------------

def ensure_mapping(parent: CommentedMap, key: str, index: int | None = None) -> CommentedMap:
    """
    Return ``parent[key]`` as a mapping, creating it if needed.

    A missing key is inserted at ``index`` (appended when None). A present
    key whose value is not a mapping is replaced in place.
    """
    if key in parent:
        value = parent[key]
        if not isinstance(value, CommentedMap):
            value = CommentedMap()
            parent[key] = value
        return value

    value = CommentedMap()
    if index is None:
        parent[key] = value
    else:
        parent.insert(index, key, value)
    return value


def ensure_path(document: CommentedMap, path: Sequence[str]) -> CommentedMap:
    node = document
    for part in path:
        node = ensure_mapping(node, part)
    return node


def set_leaf(mapping: CommentedMap, key: str, value: Any) -> None:
    """Replace in place when present, append otherwise."""
    mapping[key] = value


def insert_after(mapping: CommentedMap, anchor: str, key: str, value: Any) -> None:
    """Insert ``key`` directly after ``anchor`` among its siblings."""
    keys = list(mapping.keys())
    if anchor not in keys:
        raise OverlayBuildError(f"Cannot insert {key}: anchor {anchor} not present")
    mapping.insert(keys.index(anchor) + 1, key, value)


def prepend_mapping(parent: CommentedMap, section_key: str, key: str) -> CommentedMap:
    """
    Insert an empty mapping as the first entry of ``parent[section_key]``.

    Full-line comments that sat above the former first entry stay above it.
    The end-of-line comment on the section key line is left in place.
    """
    section = parent[section_key]
    former_first = next(iter(section), None)
    lines, indent = _detach_leading_comment(parent, section_key)

    value = ensure_mapping(section, key, index=0)

    if lines and former_first is not None:
        section.yaml_set_comment_before_after_key(
            former_first, before="\n".join(lines), indent=indent
        )
    return value


def _detach_leading_comment(parent: CommentedMap, section_key: str) -> tuple[list[str], int]:
    # The loader keeps "key:  # eol" plus the comment lines under it as one
    # token, on the nested mapping or on the parent's entry for the key
    section = parent[section_key]
    raw: list[str] = []

    slots = []
    if section.ca.comment:
        slots.append((section.ca.comment, 0))
    if parent.ca.items.get(section_key):
        slots.append((parent.ca.items[section_key], 2))

    for holder, index in slots:
        token = holder[index]
        if not isinstance(token, CommentToken):
            continue
        eol, _, rest = token.value.partition("\n")
        if not any(line.strip().startswith("#") for line in rest.splitlines()):
            continue
        raw.extend(rest.splitlines())
        if eol.strip():
            token.value = eol + "\n"
        else:
            holder[index] = None

    if section.ca.comment and isinstance(section.ca.comment[1], list):
        for token in section.ca.comment[1]:
            if not isinstance(token, CommentToken):
                continue
            column = token.start_mark.column if token.start_mark else 0
            raw.extend(" " * column + line.strip() for line in token.value.splitlines())
        section.ca.comment[1] = None

    raw = [line for line in raw if not line.strip() or line.strip().startswith("#")]
    while raw and not raw[-1].strip():
        raw.pop()
    while raw and not raw[0].strip():
        raw.pop(0)
    if not raw:
        return [], 0

    indent = len(raw[0]) - len(raw[0].lstrip())
    lines = []
    for line in raw:
        text = line.strip()[1:]
        lines.append(text[1:] if text.startswith(" ") else text)
    return lines, indent


def upsert_key(
    document: CommentedMap,
    key: str,
    value: Any,
    default_path: Sequence[str],
    skip_under: Sequence[str] = (),
) -> KeyPath:
    """
    Leave exactly one ``key`` in the document, holding ``value``.

    The first occurrence (document order) is replaced in place and any
    later occurrences are removed. When the key is absent it is added at
    ``default_path``, creating intermediate mappings.

    Returns:
        Path of the surviving key
    """
    locations = list(iter_key_locations(document, key, skip_under))

    if not locations:
        parent = ensure_path(document, default_path[:-1])
        parent[default_path[-1]] = value
        return tuple(default_path)

    first_mapping, first_path = locations[0]
    first_mapping[key] = value

    for mapping, _ in locations[1:]:
        if key in mapping:
            del mapping[key]

    return first_path

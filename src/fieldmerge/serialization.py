"""
Serialization helpers for value tables and vocabularies.

Provides JSON/YAML round-trip via an intermediate dict representation.
Value table documents look like:

    default: "???"
    values:
      Name: Otto Müstermanß
      Address: Example Street 123

Vocabulary documents list any Vocabulary field to override; omitted
fields keep the Pages '09 defaults.
"""
from __future__ import annotations

import json
import os
import warnings
from dataclasses import asdict, fields
from typing import Any, Dict

import yaml

from fieldmerge.errors import ConfigurationError
from fieldmerge.model import Vocabulary
from fieldmerge.resolver import ValueResolver


def resolver_to_dict(r: ValueResolver) -> Dict[str, Any]:
    return {"default": r.default, "values": dict(r.values)}


def resolver_from_dict(d: Dict[str, Any] | None) -> ValueResolver:
    if d is None:
        return ValueResolver()
    if not isinstance(d, dict):
        raise ConfigurationError(f"Value table must be a mapping, got {type(d).__name__}")

    unknown = set(d) - {"default", "values"}
    if unknown:
        warnings.warn(f"Ignoring unknown value table keys: {sorted(unknown)}", UserWarning)

    default = d.get("default", "")
    if default is None:
        default = ""
    values = d.get("values") or {}
    if not isinstance(values, dict):
        raise ConfigurationError("'values' must be a mapping of field name to value")

    # YAML turns bare numbers and booleans into non-strings.
    return ValueResolver(
        values={str(k): _as_text(v) for k, v in values.items()},
        default=_as_text(default),
    )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ConfigurationError(f"Field values must be scalars, got {value!r}")
    return str(value)


def vocabulary_to_dict(v: Vocabulary) -> Dict[str, str]:
    return asdict(v)


def vocabulary_from_dict(d: Dict[str, Any] | None) -> Vocabulary:
    if d is None:
        return Vocabulary()
    if not isinstance(d, dict):
        raise ConfigurationError(f"Vocabulary must be a mapping, got {type(d).__name__}")
    known = {f.name for f in fields(Vocabulary)}
    unknown = set(d) - known
    if unknown:
        raise ConfigurationError(f"Unknown vocabulary keys: {sorted(unknown)}")
    return Vocabulary(**{k: str(v) for k, v in d.items()})


def resolver_to_json(r: ValueResolver) -> str:
    return json.dumps(resolver_to_dict(r), sort_keys=True, ensure_ascii=False)


def resolver_from_json(s: str) -> ValueResolver:
    try:
        d = json.loads(s)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON value table: {e}") from e
    return resolver_from_dict(d)


def resolver_to_yaml(r: ValueResolver) -> str:
    return yaml.safe_dump(resolver_to_dict(r), allow_unicode=True)


def resolver_from_yaml(s: str) -> ValueResolver:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML value table: {e}") from e
    return resolver_from_dict(d)


def vocabulary_to_yaml(v: Vocabulary) -> str:
    return yaml.safe_dump(vocabulary_to_dict(v))


def vocabulary_from_yaml(s: str) -> Vocabulary:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML vocabulary: {e}") from e
    return vocabulary_from_dict(d)


def load_resolver(filepath: str) -> ValueResolver:
    """
    Load a value table file.

    Files ending in .json are read as JSON, everything else as YAML.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigurationError: If the content is not a valid value table
    """
    with open(filepath, "r", encoding="utf-8") as f:
        content = f.read()
    if os.path.splitext(filepath)[1].lower() == ".json":
        return resolver_from_json(content)
    return resolver_from_yaml(content)

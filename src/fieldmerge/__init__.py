"""
fieldmerge: serial letter field replacement for packaged documents.

A packaged document is a zip archive whose index.xml declares merge fields
and references them by identifier. replace_fields() writes a copy of the
archive in which every reference is replaced by its value.

    from fieldmerge import ValueResolver, replace_fields

    resolver = ValueResolver({"Name": "Otto Müstermanß"}, default="???")
    merged = replace_fields(template_bytes, resolver)

Layers:
    resolver  - field name -> value
    engine    - streaming substitution over SAX events
    archive   - entry copy-through and stream lifecycle
"""

from fieldmerge.archive import ArchiveTransformer, replace_fields, transform
from fieldmerge.document import PagesDocument
from fieldmerge.errors import (
    ConfigurationError,
    CorruptArchiveError,
    FieldMergeError,
    MalformedMarkupError,
    ResourceCloseError,
)
from fieldmerge.model import Vocabulary
from fieldmerge.resolver import CallableResolver, Resolver, ValueResolver

__version__ = "0.1.0"

__all__ = [
    "ArchiveTransformer",
    "CallableResolver",
    "ConfigurationError",
    "CorruptArchiveError",
    "FieldMergeError",
    "MalformedMarkupError",
    "PagesDocument",
    "Resolver",
    "ResourceCloseError",
    "ValueResolver",
    "Vocabulary",
    "replace_fields",
    "transform",
]

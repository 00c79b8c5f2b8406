"""
PagesDocument: one object holding a source document and its field values.

Usage:
    doc = PagesDocument("letter.pages")
    doc.set_value("Name", "Otto Müstermanß")
    doc.set_value("Address", "Example Street 123")
    doc.set_default_value("???")
    doc.replace_fields("letter-otto.pages")

Subclasses may override get_field_value() to compute values on demand.
"""

from typing import Mapping, Optional

from fieldmerge.archive import ArchiveTarget, replace_fields
from fieldmerge.model import Vocabulary
from fieldmerge.resolver import Resolver, ValueResolver


class _DocumentResolver(Resolver):
    """Routes resolution through the document so subclasses can hook in."""

    def __init__(self, document: "PagesDocument"):
        self.document = document

    def resolve(self, field_name):
        return self.document.get_field_value(field_name)


class PagesDocument:
    """
    Serial letter document backed by a zip archive.

    Properties:
        source:
            Path, archive bytes or binary file object of the template

        values:
            ValueResolver holding the explicit values and the default

        vocabulary:
            Recognized elements (None for Pages '09)
    """

    def __init__(self, source, vocabulary: Optional[Vocabulary] = None):
        self.source = source
        self.values = ValueResolver()
        self.vocabulary = vocabulary

    def set_values(self, values: Mapping[str, str]) -> None:
        """Set values to replace by a mapping field name -> value."""
        self.values.set_values(values)

    def set_value(self, field_name: str, value: str) -> None:
        self.values.set_value(field_name, value)

    def set_default_value(self, value: str) -> None:
        """Value used for fields without one. Initially ""."""
        self.values.set_default_value(value)

    def get_field_value(self, field_name: Optional[str]) -> str:
        """Override to provide values on demand."""
        return self.values.resolve(field_name)

    def replace_fields(self, destination: Optional[ArchiveTarget] = None) -> Optional[bytes]:
        """
        Write the document with its fields replaced.

        A file object source is consumed by the first call; pass a path or
        bytes to render the same template several times.

        Returns:
            Archive bytes when destination is omitted, otherwise None
        """
        return replace_fields(self.source, _DocumentResolver(self), destination, self.vocabulary)

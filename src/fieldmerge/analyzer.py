"""
Document Analyzer: field inventory of a packaged document.

Reads the target entry with the same recognition rules as the
substitution engine and reports:
    - Declared fields (identifier -> name)
    - References, in document order
    - References to identifiers that are never declared
    - References that precede their declaration (they get the default)
    - Identifiers redeclared with a different name (last declaration wins)
    - Declarations after the page boundary (ignored by the engine)
    - Referenced field names without an explicit value

IMPORTANT: This is read-only. It never writes an archive.
"""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set
from xml.sax.handler import ContentHandler

from fieldmerge.archive import ArchiveTarget, CORRUPTION_ERRORS
from fieldmerge.engine import parse_markup
from fieldmerge.errors import CorruptArchiveError
from fieldmerge.model import DEFAULT_VOCABULARY, FieldMapping, Vocabulary
from fieldmerge.resolver import Resolver, ValueResolver


@dataclass
class DocumentReport:
    """Inventory of merge fields in one document."""

    entries: List[str] = field(default_factory=list)
    target_found: bool = False

    declared_fields: Dict[str, str] = field(default_factory=dict)
    references: List[str] = field(default_factory=list)

    undeclared_references: Set[str] = field(default_factory=set)
    early_references: Set[str] = field(default_factory=set)
    redefined_fields: Set[str] = field(default_factory=set)
    late_declarations: Set[str] = field(default_factory=set)
    fields_without_value: Set[str] = field(default_factory=set)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)

    @property
    def referenced_fields(self) -> Set[str]:
        """Names of declared fields that are referenced at least once."""
        return {self.declared_fields[i] for i in self.references if i in self.declared_fields}


class _InventoryHandler(ContentHandler):
    """Collects declarations and references without producing output."""

    def __init__(self, report: DocumentReport, vocabulary: Vocabulary):
        super().__init__()
        self.report = report
        self.vocabulary = vocabulary
        self.mapping = FieldMapping()
        self.pending_id: Optional[str] = None
        self.unresolved_at_reference: Set[str] = set()

        self._declaration = vocabulary.element(vocabulary.declaration)
        self._name_carrier = vocabulary.element(vocabulary.name_carrier)
        self._page_boundary = vocabulary.element(vocabulary.page_boundary)
        self._reference = vocabulary.element(vocabulary.reference)
        self._id_attr = vocabulary.attribute(vocabulary.id_attribute)
        self._name_attr = vocabulary.attribute(vocabulary.name_attribute)
        self._ref_attr = vocabulary.attribute(vocabulary.ref_attribute)

    def startElementNS(self, name, qname, attrs):
        if name == self._declaration:
            self.pending_id = attrs.get(self._id_attr)
        elif name == self._name_carrier:
            self._declare(attrs.get(self._name_attr))
        elif name == self._page_boundary:
            self.mapping.freeze()
        elif name == self._reference:
            field_id = attrs.get(self._ref_attr)
            if field_id is None:
                self.report.add_warning("Reference without identifier attribute")
                return
            self.report.references.append(field_id)
            if field_id not in self.mapping:
                self.unresolved_at_reference.add(field_id)

    def _declare(self, field_name: Optional[str]) -> None:
        field_id = self.pending_id
        self.pending_id = None
        if field_id is None or field_name is None:
            self.report.add_warning("Incomplete field declaration")
            return
        if self.mapping.frozen:
            self.report.late_declarations.add(field_id)
            return
        previous = self.mapping.get(field_id)
        if previous is not None and previous != field_name:
            self.report.redefined_fields.add(field_id)
        self.mapping.declare(field_id, field_name)
        self.report.declared_fields[field_id] = field_name


def analyze_document(
    source: ArchiveTarget,
    resolver: Optional[Resolver] = None,
    vocabulary: Optional[Vocabulary] = None,
) -> DocumentReport:
    """
    Inventory the merge fields of a packaged document.

    Args:
        source: Path, archive bytes or binary file object
        resolver: Optional ValueResolver to check for missing values
        vocabulary: Recognized elements (defaults to Pages '09)

    Returns:
        DocumentReport

    Raises:
        CorruptArchiveError: If the archive cannot be read
        MalformedMarkupError: If the target entry cannot be parsed
    """
    vocabulary = vocabulary or DEFAULT_VOCABULARY
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    report = DocumentReport()
    handler = _InventoryHandler(report, vocabulary)

    try:
        with zipfile.ZipFile(source, "r") as zin:
            for info in zin.infolist():
                report.entries.append(info.filename)
                if info.filename != vocabulary.target_entry or info.is_dir():
                    continue
                report.target_found = True
                with zin.open(info, "r") as entry:
                    parse_markup(entry, handler)
    except CORRUPTION_ERRORS as e:
        raise CorruptArchiveError(f"Cannot read archive: {e}") from e

    if not report.target_found:
        report.add_warning(f"No {vocabulary.target_entry!r} entry, nothing to merge")
        return report

    for field_id in handler.unresolved_at_reference:
        if field_id in report.declared_fields:
            report.early_references.add(field_id)
        else:
            report.undeclared_references.add(field_id)

    if report.undeclared_references:
        report.add_warning(
            f"References to undeclared fields resolve to the default: {sorted(report.undeclared_references)}"
        )
    if report.early_references:
        report.add_warning(
            f"References before their declaration resolve to the default: {sorted(report.early_references)}"
        )
    if report.redefined_fields:
        report.add_warning(f"Fields redeclared with a different name: {sorted(report.redefined_fields)}")

    if isinstance(resolver, ValueResolver):
        report.fields_without_value = {
            name for name in report.referenced_fields if name not in resolver
        }
        if report.fields_without_value:
            report.add_warning(
                f"Fields without a value use the default: {sorted(report.fields_without_value)}"
            )

    return report


__all__ = ["DocumentReport", "analyze_document"]

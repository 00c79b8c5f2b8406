"""
Tests for the Document Analyzer.

Tests verify that the analyzer correctly:
    - Inventories declared fields and references
    - Detects undeclared and early references
    - Detects redeclarations and declarations after the page start
    - Reports fields without values
    - Never modifies the document
"""

import pytest
from fieldmerge.analyzer import analyze_document
from fieldmerge.errors import CorruptArchiveError, MalformedMarkupError
from fieldmerge.examples import (
    build_example_document,
    build_example_index_xml,
    merge_field,
    merge_field_ref,
    paragraph,
)
from fieldmerge.model import Vocabulary
from fieldmerge.resolver import ValueResolver


def test_example_document_inventory():
    template = build_example_document()
    report = analyze_document(template)

    assert report.target_found
    assert "index.xml" in report.entries
    assert report.declared_fields == {"SFWPMergeField-0": "Name", "SFWPMergeField-1": "Address"}
    assert report.references == [
        "SFWPMergeField-0",
        "SFWPMergeField-1",
        "SFWPMergeField-0",
        "SFWPMergeField-7",
    ]
    assert report.undeclared_references == {"SFWPMergeField-7"}
    assert report.referenced_fields == {"Name", "Address"}
    assert any("undeclared" in w for w in report.warnings)


def test_missing_values():
    resolver = ValueResolver({"Name": "Otto"})
    report = analyze_document(build_example_document(), resolver)
    assert report.fields_without_value == {"Address"}


def test_early_reference():
    xml = build_example_index_xml(
        fields={},
        paragraphs=[paragraph(merge_field_ref("F0")), merge_field("F0", "Name")],
        page_start=False,
    )
    report = analyze_document(build_example_document(index_xml=xml))
    assert report.early_references == {"F0"}
    assert report.undeclared_references == set()


def test_redeclaration_and_late_declaration():
    xml = build_example_index_xml(
        fields={"F0": "Name"},
        paragraphs=[merge_field("F1", "Phone"), paragraph(merge_field_ref("F1"))],
    )
    xml = xml.replace(merge_field("F0", "Name"), merge_field("F0", "Name") + merge_field("F0", "Surname"))
    report = analyze_document(build_example_document(index_xml=xml))

    assert report.redefined_fields == {"F0"}
    assert report.declared_fields["F0"] == "Surname"
    assert report.late_declarations == {"F1"}
    assert report.undeclared_references == {"F1"}


def test_missing_target():
    report = analyze_document(build_example_document(target_entry="other.xml"))
    assert not report.target_found
    assert report.references == []
    assert report.warnings


def test_corrupt_archive():
    with pytest.raises(CorruptArchiveError):
        analyze_document(b"garbage")


def test_malformed_markup():
    with pytest.raises(MalformedMarkupError):
        analyze_document(build_example_document(index_xml="<doc>"))


def test_custom_vocabulary():
    vocabulary = Vocabulary(
        element_namespace="urn:m",
        attribute_namespace="urn:m",
        declaration="field",
        name_carrier="label",
        page_boundary="body",
        reference="ref",
        id_attribute="id",
        name_attribute="text",
        ref_attribute="to",
        target_entry="content.xml",
    )
    xml = (
        '<m:doc xmlns:m="urn:m"><m:field m:id="a"><m:label m:text="Name"/></m:field>'
        '<m:body><m:ref m:to="a">x</m:ref><m:ref m:to="b">y</m:ref></m:body></m:doc>'
    )
    template = build_example_document(index_xml=xml, target_entry="content.xml")
    report = analyze_document(template, vocabulary=vocabulary)

    assert report.target_found
    assert report.declared_fields == {"a": "Name"}
    assert report.references == ["a", "b"]
    assert report.undeclared_references == {"b"}

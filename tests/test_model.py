"""
Tests for fieldmerge core model objects.

These tests verify:
    - Vocabulary defaults match the Pages '09 format
    - Namespaced name helpers
    - FieldMapping build/frozen phases
    - Last-write-wins on duplicate declarations
"""

import dataclasses

import pytest
from fieldmerge.model import (
    DEFAULT_VOCABULARY,
    NS_SF,
    NS_SFA,
    FieldMapping,
    Vocabulary,
)


class TestVocabulary:
    """Test Vocabulary objects."""

    def test_pages_defaults(self):
        """Defaults should describe Pages '09 merge fields."""
        v = Vocabulary()
        assert v.element_namespace == "http://developer.apple.com/namespaces/sf"
        assert v.attribute_namespace == "http://developer.apple.com/namespaces/sfa"
        assert v.declaration == "merge-field"
        assert v.name_carrier == "table-field"
        assert v.page_boundary == "page-start"
        assert v.reference == "merge-field-ref"
        assert v.target_entry == "index.xml"

    def test_element_name(self):
        """Element names should be (namespace, local) pairs."""
        assert DEFAULT_VOCABULARY.element("merge-field") == (NS_SF, "merge-field")

    def test_attribute_name(self):
        """Attribute names use the attribute namespace."""
        assert DEFAULT_VOCABULARY.attribute("IDREF") == (NS_SFA, "IDREF")

    def test_vocabulary_is_immutable(self):
        """Vocabulary is shared between passes and must not change."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_VOCABULARY.reference = "other"

    def test_custom_vocabulary(self):
        """Should allow overriding single names."""
        v = Vocabulary(target_entry="content.xml", reference="field-ref")
        assert v.target_entry == "content.xml"
        assert v.element(v.reference) == (NS_SF, "field-ref")
        assert v.declaration == "merge-field"


class TestFieldMapping:
    """Test FieldMapping objects."""

    def test_empty_mapping(self):
        mapping = FieldMapping()
        assert len(mapping) == 0
        assert not mapping.frozen

    def test_declare_and_get(self):
        """Should record identifier -> name."""
        mapping = FieldMapping()
        assert mapping.declare("SFWPMergeField-0", "Name") is True
        assert mapping.get("SFWPMergeField-0") == "Name"
        assert "SFWPMergeField-0" in mapping

    def test_unknown_identifier(self):
        """Unknown identifiers map to None."""
        mapping = FieldMapping()
        assert mapping.get("missing") is None
        assert mapping.get(None) is None

    def test_last_write_wins(self):
        """A redeclared identifier takes the newest name."""
        mapping = FieldMapping()
        mapping.declare("F0", "Name")
        mapping.declare("F0", "Surname")
        assert mapping.get("F0") == "Surname"
        assert len(mapping) == 1

    def test_frozen_mapping_ignores_writes(self):
        """After freeze(), declarations have no effect."""
        mapping = FieldMapping()
        mapping.declare("F0", "Name")
        mapping.freeze()

        assert mapping.declare("F0", "Other") is False
        assert mapping.declare("F1", "Address") is False
        assert mapping.get("F0") == "Name"
        assert "F1" not in mapping

    def test_iteration_keeps_declaration_order(self):
        mapping = FieldMapping()
        mapping.declare("b", "B")
        mapping.declare("a", "A")
        assert list(mapping) == ["b", "a"]

    def test_identifiers_are_opaque(self):
        """No numeric interpretation of identifiers."""
        mapping = FieldMapping()
        mapping.declare("1", "One")
        mapping.declare("01", "Zero-One")
        assert mapping.get("1") == "One"
        assert mapping.get("01") == "Zero-One"

"""
Core Merge Model Objects

Defines the data structures shared by the substitution engine,
the archive transformer and the analyzer:

    - Vocabulary (which markup elements carry merge semantics)
    - FieldMapping (identifier -> field name, built during one pass)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about zip archives or SAX
        - Hold identifiers and names as opaque strings
        - Represent structure, not behavior
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple


NS_SF = "http://developer.apple.com/namespaces/sf"
NS_SFA = "http://developer.apple.com/namespaces/sfa"

TARGET_ENTRY = "index.xml"


@dataclass(frozen=True)
class Vocabulary:
    """
    Names of the markup constructs the engine recognizes.

    The defaults describe Apple Pages '09 documents:

        <sf:merge-field sfa:ID="SFWPMergeField-0">      declaration
            <sf:table-field sfa:string="Name"/>        name carrier
        </sf:merge-field>
        ...
        <sf:page-start .../>                           page boundary
        ...
        <sf:merge-field-ref sfa:IDREF="SFWPMergeField-0">Name</sf:merge-field-ref>
                                                       reference

    Properties:
        element_namespace:
            Namespace URI of the four recognized elements

        attribute_namespace:
            Namespace URI of the identifier/name attributes

        declaration, name_carrier, page_boundary, reference:
            Local element names for each role

        id_attribute:
            Attribute on the declaration holding the field identifier

        name_attribute:
            Attribute on the name carrier holding the field name

        ref_attribute:
            Attribute on the reference holding the referenced identifier

        target_entry:
            Archive entry name to transform (exact, case-sensitive)
    """

    element_namespace: str = NS_SF
    attribute_namespace: str = NS_SFA
    declaration: str = "merge-field"
    name_carrier: str = "table-field"
    page_boundary: str = "page-start"
    reference: str = "merge-field-ref"
    id_attribute: str = "ID"
    name_attribute: str = "string"
    ref_attribute: str = "IDREF"
    target_entry: str = TARGET_ENTRY

    def element(self, local_name: str) -> Tuple[str, str]:
        """Namespaced element name as delivered by a namespace-aware SAX parser."""
        return (self.element_namespace, local_name)

    def attribute(self, local_name: str) -> Tuple[str, str]:
        """Namespaced attribute name as delivered by a namespace-aware SAX parser."""
        return (self.attribute_namespace, local_name)


DEFAULT_VOCABULARY = Vocabulary()


@dataclass
class FieldMapping:
    """
    Identifier -> field name table built incrementally during one pass.

    Two phases:
        build:  declare() records entries (last write wins)
        frozen: declare() is a no-op and returns False

    The switch happens once, when the page boundary is seen. There is
    no way back to the build phase.

    Properties:
        fields:
            Recorded identifier -> name pairs, in declaration order

        frozen:
            True once freeze() has been called
    """

    fields: Dict[str, str] = field(default_factory=dict)
    frozen: bool = False

    def declare(self, field_id: str, field_name: str) -> bool:
        """
        Record a declaration.

        Args:
            field_id: Field identifier (e.g., "SFWPMergeField-0")
            field_name: Human-readable field name (e.g., "Name")

        Returns:
            True if recorded, False if the mapping is frozen
        """
        if self.frozen:
            return False
        self.fields[field_id] = field_name
        return True

    def freeze(self) -> None:
        self.frozen = True

    def get(self, field_id: Optional[str]) -> Optional[str]:
        """Field name for an identifier, or None if it was never declared."""
        if field_id is None:
            return None
        return self.fields.get(field_id)

    def __contains__(self, field_id: object) -> bool:
        return field_id in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

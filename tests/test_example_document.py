"""
Test the example document builder used by the demo and other tests.
"""

import io
import xml.etree.ElementTree as ET
import zipfile

from fieldmerge.examples import EXAMPLE_EXTRA_ENTRIES, build_example_document, build_example_index_xml
from fieldmerge.model import NS_SF, NS_SFA


def test_example_document_structure():
    data = build_example_document()
    with zipfile.ZipFile(io.BytesIO(data)) as z:
        names = z.namelist()

    # Target entry sits between the copy-through entries
    assert names[1] == "index.xml"
    assert len(names) == len(EXAMPLE_EXTRA_ENTRIES) + 1


def test_example_index_xml_declares_and_references():
    root = ET.fromstring(build_example_index_xml().encode("utf-8"))
    declarations = root.findall(f".//{{{NS_SF}}}merge-field")
    references = root.findall(f".//{{{NS_SF}}}merge-field-ref")

    assert [d.get(f"{{{NS_SFA}}}ID") for d in declarations] == ["SFWPMergeField-0", "SFWPMergeField-1"]
    assert len(references) == 4
    assert root.find(f".//{{{NS_SF}}}page-start") is not None


def test_example_document_is_deterministic():
    assert build_example_document() == build_example_document()

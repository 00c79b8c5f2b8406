"""
Example document builder for demos and tests.

Builds a small serial letter in the Pages '09 layout: field declarations
up front, a page start, then body paragraphs referencing the fields.
The archive also carries a couple of non-markup entries so copy-through
can be observed.
"""
import io
import zipfile
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
from xml.sax.saxutils import escape, quoteattr

from fieldmerge.model import NS_SF, NS_SFA, TARGET_ENTRY

NS_SL = "http://developer.apple.com/namespaces/sl"

EXAMPLE_FIELDS: Dict[str, str] = {
    "SFWPMergeField-0": "Name",
    "SFWPMergeField-1": "Address",
}


def merge_field(field_id: str, field_name: str, category: str = "to") -> str:
    """Markup declaring field_id with the human-readable field_name."""
    return (
        f"<sf:merge-field sf:category={quoteattr(category)} sfa:ID={quoteattr(field_id)}>"
        f"<sf:table-field sfa:string={quoteattr(field_name)}/>"
        f"</sf:merge-field>"
    )


def merge_field_ref(field_id: str, placeholder: str = "") -> str:
    """Markup referencing field_id; placeholder is what Pages shows before merging."""
    return (
        f"<sf:merge-field-ref sfa:IDREF={quoteattr(field_id)}>"
        f"<sf:span>{escape(placeholder)}</sf:span>"
        f"</sf:merge-field-ref>"
    )


def paragraph(*parts: str) -> str:
    return "<sf:p>" + "".join(parts) + "</sf:p>"


EXAMPLE_PARAGRAPHS: List[str] = [
    paragraph(merge_field_ref("SFWPMergeField-0", "Name")),
    paragraph(merge_field_ref("SFWPMergeField-1", "Address")),
    paragraph("Dear ", merge_field_ref("SFWPMergeField-0", "Name"), ","),
    paragraph("Your reference: ", merge_field_ref("SFWPMergeField-7", "Reference")),
]


def build_example_index_xml(
    fields: Optional[Mapping[str, str]] = None,
    paragraphs: Optional[Sequence[str]] = None,
    page_start: bool = True,
) -> str:
    """
    Build an index.xml document.

    Args:
        fields: Declarations as identifier -> field name
        paragraphs: Body markup placed after the page start
        page_start: Whether to emit the page boundary marker

    Returns:
        Markup as a string
    """
    if fields is None:
        fields = EXAMPLE_FIELDS
    if paragraphs is None:
        paragraphs = EXAMPLE_PARAGRAPHS

    declarations = "".join(merge_field(i, n) for i, n in fields.items())
    body = "".join(paragraphs)
    marker = '<sf:page-start sf:page-index="0"/>' if page_start else ""

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<sl:document xmlns:sl="{NS_SL}" xmlns:sf="{NS_SF}" xmlns:sfa="{NS_SFA}" sl:version="92008102400">'
        f"<sf:merge-fields>{declarations}</sf:merge-fields>"
        f"<sf:text-storage><sf:text-body>{marker}{body}</sf:text-body></sf:text-storage>"
        "</sl:document>"
    )


EXAMPLE_EXTRA_ENTRIES: List[Tuple[str, bytes]] = [
    ("buildVersionHistory.plist", b'<?xml version="1.0"?>\n<plist><array><string>Pages 4.0</string></array></plist>\n'),
    ("QuickLook/", b""),
    ("QuickLook/Thumbnail.jpg", bytes(range(256)) * 4),
]


def build_example_document(
    index_xml: Optional[str] = None,
    extra_entries: Optional[Sequence[Tuple[str, bytes]]] = None,
    target_entry: str = TARGET_ENTRY,
) -> bytes:
    """
    Build a complete example archive.

    The target entry comes second so that copy-through has to work on
    both sides of it.
    """
    if index_xml is None:
        index_xml = build_example_index_xml()
    if extra_entries is None:
        extra_entries = EXAMPLE_EXTRA_ENTRIES

    entries = list(extra_entries)
    entries.insert(min(1, len(entries)), (target_entry, index_xml.encode("utf-8")))

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zout:
        for name, data in entries:
            info = zipfile.ZipInfo(name, date_time=(2009, 1, 6, 12, 0, 0))
            info.compress_type = zipfile.ZIP_STORED if name.endswith("/") else zipfile.ZIP_DEFLATED
            zout.writestr(info, data)
    return buffer.getvalue()

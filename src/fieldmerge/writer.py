"""
Markup sink for the substitution engine.

XMLGenerator serializes namespace-aware SAX events but ignores lexical
events. MarkupWriter adds comments, the document type declaration and
unexpanded entity references so a pass-through document keeps them.
"""

from xml.sax.saxutils import XMLGenerator


class MarkupWriter(XMLGenerator):
    """
    XMLGenerator that also writes lexical events.

    Empty elements are written as start/end pairs, the way they were
    delivered. CDATA sections come through as escaped character data.
    The output stream is borrowed: the writer never closes it.
    """

    def __init__(self, out, encoding: str = "utf-8"):
        super().__init__(out, encoding, short_empty_elements=False)

    # LexicalHandler

    def comment(self, content):
        self._finish_pending_start_element()
        self._write(f"<!--{content}-->")

    def startDTD(self, name, public_id, system_id):
        if public_id:
            self._write(f'<!DOCTYPE {name} PUBLIC "{public_id}" "{system_id}">\n')
        elif system_id:
            self._write(f'<!DOCTYPE {name} SYSTEM "{system_id}">\n')
        else:
            self._write(f"<!DOCTYPE {name}>\n")

    def endDTD(self):
        pass

    def startCDATA(self):
        pass

    def endCDATA(self):
        pass

    def skippedEntity(self, name):
        # Undeclared entity references are written back unexpanded.
        self._finish_pending_start_element()
        self._write(f"&{name};")

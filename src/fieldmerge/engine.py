"""
Field Substitution Engine

Streams a markup document from a SAX parser to a MarkupWriter and replaces
every reference element with the value of the field it points at.

One forward pass, two states:

    Normal    events are forwarded unchanged; declarations and name
              carriers build the identifier -> name mapping
    Skipping  entered at a reference start; everything up to and including
              the matching reference end is dropped

On entering Skipping the engine writes a single text node holding the
resolved value, so the reference construct is replaced by flat text.

The mapping is frozen at the first page boundary. A reference that appears
before its declaration resolves to the default: there is no lookahead.

STREAM OWNERSHIP:
    substitute_fields() reads and writes streams it is given but never
    closes them. The caller that opened a stream closes it.
"""

import logging
from enum import Enum
from typing import List, Optional, Tuple
from xml.sax import SAXParseException, make_parser
from xml.sax.handler import (
    ContentHandler,
    feature_external_ges,
    feature_namespaces,
    property_lexical_handler,
)

from fieldmerge.errors import MalformedMarkupError
from fieldmerge.model import DEFAULT_VOCABULARY, FieldMapping, Vocabulary
from fieldmerge.resolver import Resolver
from fieldmerge.writer import MarkupWriter

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class EngineState(Enum):
    NORMAL = "normal"
    SKIPPING = "skipping"


class FieldSubstitutionEngine(ContentHandler):
    """
    SAX content and lexical handler implementing the substitution pass.

    Properties:
        downstream:
            Handler receiving the transformed events (usually a MarkupWriter)

        resolver:
            Resolver consulted once per reference element

        vocabulary:
            Recognized element and attribute names

        mapping:
            FieldMapping built during the pass

        pending_id:
            Identifier of the last declaration still waiting for its name

        state:
            EngineState.NORMAL or EngineState.SKIPPING

        substitutions:
            Number of reference elements replaced so far
    """

    def __init__(self, downstream, resolver: Resolver, vocabulary: Vocabulary = DEFAULT_VOCABULARY):
        super().__init__()
        self.downstream = downstream
        self.resolver = resolver
        self.vocabulary = vocabulary
        self.mapping = FieldMapping()
        self.pending_id: Optional[str] = None
        self.state = EngineState.NORMAL
        self.substitutions = 0

        self._declaration = vocabulary.element(vocabulary.declaration)
        self._name_carrier = vocabulary.element(vocabulary.name_carrier)
        self._page_boundary = vocabulary.element(vocabulary.page_boundary)
        self._reference = vocabulary.element(vocabulary.reference)

        # Namespace declarations seen since the last element start. They
        # belong to the next element and are dropped if it is a reference.
        self._pending_prefixes: List[Tuple[Optional[str], str]] = []
        # endPrefixMapping calls still owed by the last replaced reference.
        self._dropped_prefix_ends = 0
        self._locator = None

    @property
    def skipping(self) -> bool:
        return self.state is EngineState.SKIPPING

    # Document

    def setDocumentLocator(self, locator):
        self._locator = locator

    def startDocument(self):
        self.downstream.startDocument()

    def endDocument(self):
        if self.skipping:
            raise MalformedMarkupError("Document ends inside a field reference")
        self.downstream.endDocument()
        logger.debug(
            "Substituted %d field references (%d fields declared)",
            self.substitutions, len(self.mapping),
        )

    # Namespaces

    def startPrefixMapping(self, prefix, uri):
        if self.skipping:
            return
        self._pending_prefixes.append((prefix, uri))

    def endPrefixMapping(self, prefix):
        if self.skipping:
            return
        if self._dropped_prefix_ends:
            self._dropped_prefix_ends -= 1
            return
        self.downstream.endPrefixMapping(prefix)

    # Elements

    def startElementNS(self, name, qname, attrs):
        if self.skipping:
            return

        if name == self._reference:
            self._replace_reference(attrs)
            return

        if name == self._declaration:
            self.pending_id = self._required(attrs, self.vocabulary.id_attribute, name)
        elif name == self._name_carrier:
            self._declare(self._required(attrs, self.vocabulary.name_attribute, name))
        elif name == self._page_boundary and not self.mapping.frozen:
            self.mapping.freeze()
            logger.debug("Field mapping frozen with %d fields", len(self.mapping))

        self._flush_prefixes()
        self.downstream.startElementNS(name, qname, attrs)

    def endElementNS(self, name, qname):
        if self.skipping:
            if name == self._reference:
                self.state = EngineState.NORMAL
            return
        self.downstream.endElementNS(name, qname)

    # Content

    def characters(self, content):
        if not self.skipping:
            self.downstream.characters(content)

    def ignorableWhitespace(self, whitespace):
        if not self.skipping:
            self.downstream.ignorableWhitespace(whitespace)

    def processingInstruction(self, target, data):
        if not self.skipping:
            self.downstream.processingInstruction(target, data)

    def skippedEntity(self, name):
        if not self.skipping:
            self.downstream.skippedEntity(name)

    # LexicalHandler

    def comment(self, content):
        if not self.skipping:
            self._forward_lexical("comment", content)

    def startCDATA(self):
        if not self.skipping:
            self._forward_lexical("startCDATA")

    def endCDATA(self):
        if not self.skipping:
            self._forward_lexical("endCDATA")

    def startDTD(self, name, public_id, system_id):
        self._forward_lexical("startDTD", name, public_id, system_id)

    def endDTD(self):
        self._forward_lexical("endDTD")

    # Internals

    def _replace_reference(self, attrs) -> None:
        field_id = self._required(attrs, self.vocabulary.ref_attribute, self._reference)
        field_name = self.mapping.get(field_id)
        if field_name is None:
            logger.debug("Reference to undeclared field %r, using default", field_id)
        value = self.resolver.resolve(field_name)

        # Namespaces declared on the reference element vanish with it.
        self._dropped_prefix_ends = len(self._pending_prefixes)
        self._pending_prefixes = []

        self.downstream.characters(value)
        self.substitutions += 1
        self.state = EngineState.SKIPPING

    def _declare(self, field_name: str) -> None:
        if self.pending_id is None:
            logger.warning("Field name %r has no enclosing declaration, ignored", field_name)
            return
        if self.mapping.declare(self.pending_id, field_name):
            logger.debug("Declared field %r -> %r", self.pending_id, field_name)
        self.pending_id = None

    def _flush_prefixes(self) -> None:
        for prefix, uri in self._pending_prefixes:
            self.downstream.startPrefixMapping(prefix, uri)
        self._pending_prefixes = []

    def _required(self, attrs, local_name: str, element) -> str:
        value = attrs.get(self.vocabulary.attribute(local_name))
        if value is None:
            line = column = None
            if self._locator is not None:
                line = self._locator.getLineNumber()
                column = self._locator.getColumnNumber()
            raise MalformedMarkupError(
                f"Element {element[1]!r} is missing required attribute {local_name!r}",
                line, column,
            )
        return value

    def _forward_lexical(self, method: str, *args) -> None:
        handler = getattr(self.downstream, method, None)
        if handler is not None:
            handler(*args)


def parse_markup(source, handler, chunk_size: int = CHUNK_SIZE) -> None:
    """
    Feed a binary stream through a namespace-aware SAX parser.

    The parser is fed chunk by chunk and never receives the stream itself,
    so closing the stream stays with the caller.

    Args:
        source: Readable binary stream (borrowed, left open)
        handler: SAX content handler, also registered as lexical handler
        chunk_size: Bytes read per feed

    Raises:
        MalformedMarkupError: If the markup cannot be parsed
    """
    parser = make_parser()
    parser.setFeature(feature_namespaces, True)
    parser.setFeature(feature_external_ges, False)
    parser.setContentHandler(handler)
    parser.setProperty(property_lexical_handler, handler)
    # The expat reader is its own locator.
    handler.setDocumentLocator(parser)

    try:
        # Starts the document so that an empty stream fails in close().
        parser.feed(b"")
        while True:
            chunk = source.read(chunk_size)
            if not chunk:
                break
            parser.feed(chunk)
        parser.close()
    except SAXParseException as e:
        raise MalformedMarkupError(
            f"Cannot parse markup: {e.getMessage()}",
            e.getLineNumber(), e.getColumnNumber(),
        ) from e


def substitute_fields(
    source,
    destination,
    resolver: Resolver,
    vocabulary: Vocabulary = None,
    chunk_size: int = CHUNK_SIZE,
) -> FieldSubstitutionEngine:
    """
    Run the substitution pass from one binary stream into another.

    Args:
        source: Readable binary stream with the markup (borrowed)
        destination: Writable binary stream (borrowed)
        resolver: Resolver for field values
        vocabulary: Recognized elements (defaults to Pages '09)
        chunk_size: Bytes read per parser feed

    Returns:
        The engine after the pass, for its mapping and counters

    Raises:
        MalformedMarkupError: If the markup is malformed
    """
    engine = FieldSubstitutionEngine(
        MarkupWriter(destination),
        resolver,
        vocabulary or DEFAULT_VOCABULARY,
    )
    parse_markup(source, engine, chunk_size)
    return engine


__all__ = [
    "EngineState",
    "FieldSubstitutionEngine",
    "parse_markup",
    "substitute_fields",
]

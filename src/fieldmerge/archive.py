"""
Archive Transformer

Walks a zip archive entry by entry and writes a new archive with the same
entries in the same order. The target entry (index.xml by default) goes
through the field substitution engine; every other entry is copied byte for
byte.

Resources:
    Paths given as source or destination are opened and closed here.
    File objects given by the caller are borrowed and left open.
    Every stream opened here is closed on every exit path. A close failure
    while another error is propagating is logged, never raised over it.

Errors:
    CorruptArchiveError   unreadable zip structure or entry data
    MalformedMarkupError  raised by the engine for the target entry
    FieldMergeError       any other engine failure, wrapping the cause, or
                          an output entry past the zip size limits
    ResourceCloseError    a close failure on an otherwise successful run
"""

import io
import logging
import os
import shutil
import zipfile
import zlib
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import IO, Callable, List, Optional, Union

from fieldmerge.engine import substitute_fields
from fieldmerge.errors import CorruptArchiveError, FieldMergeError, ResourceCloseError
from fieldmerge.model import DEFAULT_VOCABULARY, Vocabulary
from fieldmerge.resolver import Resolver

logger = logging.getLogger(__name__)

# Source/destination: a filesystem path or a binary file object.
ArchiveTarget = Union[str, os.PathLike, IO[bytes]]

# Called as factory(entry_stream, output_stream); both streams are borrowed.
EngineFactory = Callable[[IO[bytes], IO[bytes]], object]

COPY_CHUNK_SIZE = 64 * 1024

# Read-side failures only. LargeZipFile is a write-side limit.
CORRUPTION_ERRORS = (zipfile.BadZipFile, EOFError, zlib.error)


@dataclass
class TransformResult:
    """
    Summary of one transform.

    Properties:
        entries: Entry names written, in archive order
        target_found: Whether the target entry was present and transformed
    """

    entries: List[str] = field(default_factory=list)
    target_found: bool = False


def _close(resource, description: str) -> None:
    try:
        resource.close()
    except (OSError, ValueError, zipfile.LargeZipFile) + CORRUPTION_ERRORS as e:
        raise ResourceCloseError(f"Failed to close {description}: {e}") from e


@contextmanager
def _closing(resource, description: str):
    """
    Close resource on exit.

    With an exception in flight, a close failure is logged and the original
    exception continues. Otherwise the close failure is raised.
    """
    try:
        yield resource
    except BaseException:
        try:
            _close(resource, description)
        except ResourceCloseError as e:
            logger.warning("%s (suppressed, another error is in flight)", e)
        raise
    else:
        _close(resource, description)


def engine_factory_for(resolver: Resolver, vocabulary: Optional[Vocabulary] = None) -> EngineFactory:
    """Bind a resolver and vocabulary to the substitution engine."""

    def factory(source, destination):
        return substitute_fields(source, destination, resolver, vocabulary)

    return factory


class ArchiveTransformer:
    """
    Copies an archive, routing the target entry through an engine.

    Properties:
        engine_factory:
            Callable run for the target entry with (entry_stream, output_stream)

        vocabulary:
            Supplies the target entry name

        compression:
            zipfile compression constant used for written entries
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        vocabulary: Optional[Vocabulary] = None,
        compression: int = zipfile.ZIP_DEFLATED,
    ):
        self.engine_factory = engine_factory
        self.vocabulary = vocabulary or DEFAULT_VOCABULARY
        self.compression = compression

    def transform(self, source: ArchiveTarget, destination: ArchiveTarget) -> TransformResult:
        """
        Write a transformed copy of source to destination.

        Args:
            source: Path or readable binary file object of the archive
            destination: Path or writable binary file object

        Returns:
            TransformResult with the written entry names

        Raises:
            CorruptArchiveError: If the archive cannot be read
            MalformedMarkupError: If the target entry's markup is malformed
            FieldMergeError: If the engine fails for another reason
            ResourceCloseError: If closing a stream fails after success
        """
        result = TransformResult()
        try:
            with ExitStack() as stack:
                src = self._open_source(source, stack)
                dest = self._open_destination(destination, stack)
                zin = stack.enter_context(_closing(zipfile.ZipFile(src, "r"), "source archive"))
                zout = stack.enter_context(
                    _closing(zipfile.ZipFile(dest, "w", self.compression), "destination archive")
                )
                for info in zin.infolist():
                    if self._transform_entry(zin, zout, info):
                        result.target_found = True
                    result.entries.append(info.filename)
        except FieldMergeError:
            raise
        except CORRUPTION_ERRORS as e:
            raise CorruptArchiveError(f"Cannot read archive: {e}") from e
        except zipfile.LargeZipFile as e:
            raise FieldMergeError(f"Cannot write archive: {e}") from e

        if not result.target_found:
            logger.info(
                "No %r entry in archive, copied %d entries unchanged",
                self.vocabulary.target_entry, len(result.entries),
            )
        else:
            logger.info("Transformed archive with %d entries", len(result.entries))
        return result

    def _transform_entry(self, zin: zipfile.ZipFile, zout: zipfile.ZipFile, info: zipfile.ZipInfo) -> bool:
        name = info.filename
        out_info = zipfile.ZipInfo(name, date_time=info.date_time)

        if info.is_dir():
            out_info.compress_type = zipfile.ZIP_STORED
            out_info.external_attr = info.external_attr
            zout.writestr(out_info, b"")
            return False

        out_info.compress_type = self.compression
        is_target = name == self.vocabulary.target_entry
        with ExitStack() as stack:
            entry_in = stack.enter_context(_closing(zin.open(info, "r"), f"entry {name!r}"))
            entry_out = stack.enter_context(
                _closing(
                    zout.open(out_info, "w", force_zip64=is_target or info.file_size >= zipfile.ZIP64_LIMIT),
                    f"output entry {name!r}",
                )
            )
            if is_target:
                logger.debug("Substituting fields in %r", name)
                self._run_engine(entry_in, entry_out, name)
            else:
                shutil.copyfileobj(entry_in, entry_out, COPY_CHUNK_SIZE)
        return is_target

    def _run_engine(self, entry_in, entry_out, name: str) -> None:
        try:
            self.engine_factory(entry_in, entry_out)
        except FieldMergeError:
            raise
        except CORRUPTION_ERRORS:
            raise
        except Exception as e:
            raise FieldMergeError(f"Field substitution failed for {name!r}: {e}") from e

    def _open_source(self, source: ArchiveTarget, stack: ExitStack):
        if isinstance(source, (str, os.PathLike)):
            return stack.enter_context(_closing(open(source, "rb"), f"source file {os.fspath(source)!r}"))
        seekable = getattr(source, "seekable", None)
        if seekable is None or not seekable():
            # The zip directory sits at the end of the archive.
            return io.BytesIO(source.read())
        return source

    def _open_destination(self, destination: ArchiveTarget, stack: ExitStack):
        if isinstance(destination, (str, os.PathLike)):
            return stack.enter_context(
                _closing(open(destination, "wb"), f"destination file {os.fspath(destination)!r}")
            )
        # Borrowed: flush once the archive is complete, never close.
        stack.callback(self._flush, destination)
        return destination

    @staticmethod
    def _flush(stream) -> None:
        flush = getattr(stream, "flush", None)
        if flush is not None:
            flush()


def transform(
    source: ArchiveTarget,
    destination: ArchiveTarget,
    engine_factory: EngineFactory,
    vocabulary: Optional[Vocabulary] = None,
) -> TransformResult:
    """Convenience wrapper around ArchiveTransformer.transform()."""
    return ArchiveTransformer(engine_factory, vocabulary).transform(source, destination)


def replace_fields(
    source: ArchiveTarget,
    resolver: Resolver,
    destination: Optional[ArchiveTarget] = None,
    vocabulary: Optional[Vocabulary] = None,
) -> Optional[bytes]:
    """
    Replace merge fields in a packaged document.

    Args:
        source: Path, archive bytes or readable binary file object
        resolver: Resolver supplying field values
        destination: Path or writable binary file object; if omitted the
            produced archive is returned as bytes
        vocabulary: Recognized elements (defaults to Pages '09)

    Returns:
        Archive bytes when no destination is given, otherwise None
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    factory = engine_factory_for(resolver, vocabulary)

    if destination is None:
        buffer = io.BytesIO()
        transform(source, buffer, factory, vocabulary)
        return buffer.getvalue()

    transform(source, destination, factory, vocabulary)
    return None


__all__ = [
    "ArchiveTransformer",
    "TransformResult",
    "engine_factory_for",
    "transform",
    "replace_fields",
]

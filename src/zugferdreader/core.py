"""Core library functionality: embedded file discovery and decoding."""

import logging
import zlib
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from pypdf.filters import FlateDecode
from pypdf.generic import DictionaryObject, NameObject, NumberObject

from .accessor import PdfAccessor
from .exceptions import StreamDecodeFailure
from .objects import PdfDict, PdfName, PdfObjectRef, PdfStream, PdfString, PdfValue

logger = logging.getLogger(__name__)

# Upper bound on the size of one inflated stream.
MAX_DECOMPRESSED_SIZE = 64 * 1024 * 1024

# Upper bound on the number of name tree nodes visited per document.
MAX_NAME_TREE_NODES = 4096

FLATE_FILTERS = frozenset({"FlateDecode", "Fl"})

UNKNOWN_NAME = "unknown"

_INFLATE_CHUNK = 64 * 1024


@dataclass(frozen=True, slots=True)
class EmbeddedFile:
    """A file embedded in a PDF, with its fully decoded contents."""

    name: str
    data: bytes

    @property
    def text(self) -> str:
        """The contents decoded as UTF-8, invalid sequences replaced."""
        return self.data.decode("utf-8", errors="replace")

    @property
    def size(self) -> int:
        return len(self.data)


def extract_embedded_files(
    data: bytes,
    *,
    max_decompressed_size: int = MAX_DECOMPRESSED_SIZE,
    max_name_tree_nodes: int = MAX_NAME_TREE_NODES,
) -> list[EmbeddedFile]:
    """Extract every embedded file from a PDF.

    Files are discovered through the catalog's ``/AF`` array first, then
    through the ``/Names/EmbeddedFiles`` name tree. Both results are
    returned in document order; a file reachable both ways appears twice.
    Entries that cannot be resolved or decoded are skipped.

    Args:
        data: The complete PDF file contents.
        max_decompressed_size: Largest inflated stream accepted, in bytes.
        max_name_tree_nodes: Most name tree nodes visited before giving up.

    Returns:
        List of EmbeddedFile, possibly empty.

    Raises:
        MalformedDocument: If ``data`` cannot be read as a PDF at all.
    """
    accessor = PdfAccessor(data)
    catalog = accessor.catalog()
    if catalog is None:
        return []

    files: list[EmbeddedFile] = []
    for name, spec in _associated_file_specs(accessor, catalog):
        embedded = _extract_file(accessor, name, spec, max_decompressed_size)
        if embedded is not None:
            files.append(embedded)

    for name, spec in _name_tree_file_specs(accessor, catalog, max_name_tree_nodes):
        embedded = _extract_file(accessor, name, spec, max_decompressed_size)
        if embedded is not None:
            files.append(embedded)

    logger.debug("Extracted %d embedded file(s)", len(files))
    return files


def _associated_file_specs(
    accessor: PdfAccessor, catalog: PdfDict
) -> Iterator[tuple[str, PdfValue]]:
    """Yield (name, filespec) for each entry of the catalog's /AF array."""
    associated = accessor.get(catalog, "AF")
    if not isinstance(associated, tuple):
        return

    for item in associated:
        spec = accessor.resolve(item)
        yield filespec_name(accessor, spec), spec


def _name_tree_file_specs(
    accessor: PdfAccessor, catalog: PdfDict, max_nodes: int
) -> Iterator[tuple[str, PdfValue]]:
    """Yield (name, filespec) for each pair of the /EmbeddedFiles name tree."""
    tree = accessor.get(accessor.get(catalog, "Names"), "EmbeddedFiles")
    if tree is None:
        return

    names = flatten_name_tree(accessor, tree, max_nodes=max_nodes)
    for i in range(0, len(names) - 1, 2):
        key = accessor.resolve(names[i])
        name = _text(key) or UNKNOWN_NAME
        yield name, names[i + 1]


def flatten_name_tree(
    accessor: PdfAccessor,
    node: PdfValue,
    *,
    max_nodes: int = MAX_NAME_TREE_NODES,
) -> list[PdfValue]:
    """Flatten a name tree into ``[key0, value0, key1, value1, ...]``.

    Leaf ``/Names`` arrays are concatenated in document order. A node with
    ``/Kids`` is treated as an intermediate node and its ``/Names`` entry is
    ignored. Nodes already visited (reference cycles) are skipped, and the
    walk stops after ``max_nodes`` nodes.
    """
    result: list[PdfValue] = []
    visited: set[PdfObjectRef] = set()
    stack: list[PdfValue] = [node]
    seen_nodes = 0

    while stack:
        current = stack.pop()
        if isinstance(current, PdfObjectRef):
            if current in visited:
                logger.debug("Name tree cycle at %s, skipping node", current)
                continue
            visited.add(current)

        seen_nodes += 1
        if seen_nodes > max_nodes:
            logger.debug("Name tree node limit (%d) reached", max_nodes)
            break

        current = accessor.resolve(current)
        if not isinstance(current, PdfDict):
            continue

        kids = accessor.get(current, "Kids")
        if isinstance(kids, tuple):
            stack.extend(reversed(kids))
            continue

        names = accessor.get(current, "Names")
        if isinstance(names, tuple):
            result.extend(names)

    return result


def filespec_name(accessor: PdfAccessor, spec: PdfValue, default: str = UNKNOWN_NAME) -> str:
    """Return the display name of a file specification (/UF, then /F)."""
    for key in ("UF", "F"):
        name = _text(accessor.get(spec, key))
        if name:
            return name
    return default


def _extract_file(
    accessor: PdfAccessor, name: str, spec: PdfValue, max_size: int
) -> EmbeddedFile | None:
    """Resolve spec /EF /F to a stream and decode it, or return None."""
    stream = accessor.get(accessor.get(spec, "EF"), "F")
    if not isinstance(stream, PdfStream):
        logger.debug("Skipping %r: no embedded file stream", name)
        return None

    data = decode_stream(stream, max_decompressed_size=max_size, resolve=accessor.resolve)
    if data is None:
        logger.debug("Skipping %r: stream could not be decoded", name)
        return None

    return EmbeddedFile(name=name, data=data)


def decode_stream(
    stream: PdfStream,
    *,
    max_decompressed_size: int = MAX_DECOMPRESSED_SIZE,
    resolve: Callable[[PdfValue], PdfValue] | None = None,
) -> bytes | None:
    """Reverse the filters of a stream.

    Only Flate filters are supported, with or without a PNG or TIFF
    predictor. A stream without ``/Filter`` is
    returned as-is.

    Args:
        stream: The stream to decode.
        max_decompressed_size: Largest inflated output accepted, in bytes.
        resolve: Optional callable used to dereference ``/Filter`` and
            ``/DecodeParms`` when they are indirect.

    Returns:
        The decoded bytes, or None if any filter is unsupported or fails.
    """
    try:
        return _apply_filters(stream, max_decompressed_size, resolve or (lambda value: value))
    except StreamDecodeFailure as e:
        logger.debug("Stream decode failed: %s", e)
        return None


def _apply_filters(
    stream: PdfStream, max_size: int, resolve: Callable[[PdfValue], PdfValue]
) -> bytes:
    filters = resolve(stream.get("Filter"))
    if filters is None:
        return stream.raw
    if not isinstance(filters, tuple):
        filters = (filters,)

    parms = resolve(stream.get("DecodeParms"))
    if not isinstance(parms, tuple):
        parms = (parms,) * len(filters)

    data = stream.raw
    for index, entry in enumerate(filters):
        filter_name = _text(resolve(entry))
        if filter_name not in FLATE_FILTERS:
            raise StreamDecodeFailure(f"Unsupported filter {filter_name or entry!r}")

        parm = resolve(parms[index]) if index < len(parms) else None
        data = flate_decode(data, _decode_parms(parm, resolve), max_size=max_size)

    return data


def flate_decode(
    data: bytes,
    decode_parms: DictionaryObject | None = None,
    *,
    max_size: int = MAX_DECOMPRESSED_SIZE,
) -> bytes:
    """Decode one Flate stage with pypdf, applying any PNG/TIFF predictor.

    Raises:
        StreamDecodeFailure: If the data is corrupt, truncated, too large,
            or uses an unsupported predictor.
    """
    # pypdf salvages partial output from damaged data; reject that first.
    inflate(data, max_size=max_size)
    try:
        decoded = FlateDecode.decode(data, decode_parms)
    except Exception as e:
        raise StreamDecodeFailure(f"Flate decoding failed: {e}") from e
    if len(decoded) > max_size:
        raise StreamDecodeFailure(f"Decoded stream exceeds {max_size} bytes")
    return decoded


def _decode_parms(
    parm: PdfValue, resolve: Callable[[PdfValue], PdfValue]
) -> DictionaryObject | None:
    """Rebuild the numeric /DecodeParms entries in pypdf's form."""
    if not isinstance(parm, PdfDict):
        return None
    entries = {}
    for key, value in parm.items():
        value = resolve(value)
        if isinstance(value, int) and not isinstance(value, bool):
            entries[NameObject("/" + key)] = NumberObject(value)
    return DictionaryObject(entries)


def inflate(data: bytes, *, max_size: int = MAX_DECOMPRESSED_SIZE) -> bytes:
    """Decompress zlib data, refusing output larger than ``max_size``.

    Raises:
        StreamDecodeFailure: If the data is not valid zlib or is too large.
    """
    decompressor = zlib.decompressobj()
    chunks: list[bytes] = []
    total = 0
    pending = data

    try:
        while pending:
            chunk = decompressor.decompress(pending, _INFLATE_CHUNK)
            total += len(chunk)
            if total > max_size:
                raise StreamDecodeFailure(f"Inflated stream exceeds {max_size} bytes")
            chunks.append(chunk)
            pending = decompressor.unconsumed_tail
            if decompressor.eof:
                break
        tail = decompressor.flush()
        if total + len(tail) > max_size:
            raise StreamDecodeFailure(f"Inflated stream exceeds {max_size} bytes")
        chunks.append(tail)
    except zlib.error as e:
        raise StreamDecodeFailure(f"Flate decompression failed: {e}") from e

    if not decompressor.eof:
        raise StreamDecodeFailure("Flate stream is truncated")

    return b"".join(chunks)


def _text(value: PdfValue) -> str | None:
    if isinstance(value, (PdfString, PdfName)):
        return str(value)
    return None

"""Read-only access to the indirect-object graph of a PDF.

:class:`PdfAccessor` uses :class:`pypdf.PdfReader` to locate the
cross-reference data and tokenize individual objects, and converts what it
reads into the plain value types of :mod:`zugferdreader.objects`.
Conversion is shallow: indirect children stay :class:`PdfObjectRef` until
they are passed to :meth:`PdfAccessor.resolve`.
"""

import logging
from io import BytesIO

from pypdf import PdfReader
from pypdf.generic import (
    ArrayObject,
    BooleanObject,
    ByteStringObject,
    DictionaryObject,
    FloatObject,
    IndirectObject,
    NameObject,
    NullObject,
    NumberObject,
    StreamObject,
    TextStringObject,
    read_object,
)

from .exceptions import MalformedDocument, ReferenceResolutionFailure
from .objects import PdfDict, PdfName, PdfObjectRef, PdfStream, PdfString, PdfValue

logger = logging.getLogger(__name__)

PDF_HEADER = b"%PDF-"

# Readers tolerate leading garbage before the header, but not much of it.
HEADER_SEARCH_WINDOW = 1024

# Longest chain of references-to-references followed by resolve().
MAX_RESOLVE_DEPTH = 32


def convert(obj) -> PdfValue:
    """Convert a pypdf object into a :data:`PdfValue`.

    Indirect references are kept as :class:`PdfObjectRef`; nothing is
    dereferenced here.
    """
    if obj is None or isinstance(obj, NullObject):
        return None
    if isinstance(obj, IndirectObject):
        return PdfObjectRef(obj.idnum, obj.generation)
    if isinstance(obj, BooleanObject):
        return bool(obj.value)
    if isinstance(obj, NumberObject):
        return int(obj)
    if isinstance(obj, FloatObject):
        return float(obj)
    if isinstance(obj, NameObject):
        return PdfName(str(obj).removeprefix("/"))
    if isinstance(obj, TextStringObject):
        return PdfString(str(obj))
    if isinstance(obj, ByteStringObject):
        return PdfString(bytes(obj).decode("latin-1"))
    if isinstance(obj, ArrayObject):
        # list.__iter__ yields the raw items, references included
        return tuple(convert(item) for item in list.__iter__(obj))
    if isinstance(obj, StreamObject):
        return _convert_stream(obj)
    if isinstance(obj, DictionaryObject):
        return _convert_dict(obj)

    logger.debug("Ignoring unsupported PDF object type %s", type(obj).__name__)
    return None


def _convert_dict(obj: DictionaryObject) -> PdfDict:
    # dict.items() returns the raw values; DictionaryObject.__getitem__
    # would dereference them.
    return PdfDict({
        str(key).removeprefix("/"): convert(value)
        for key, value in dict.items(obj)
    })


def _convert_stream(obj: StreamObject) -> PdfStream:
    # pypdf has no public accessor for the still-encoded payload.
    raw = bytes(obj._data or b"")
    dictionary = _convert_dict(obj)
    if "Length" not in dictionary:
        # pypdf removes /Length once it has read the payload
        dictionary = PdfDict({**dictionary, "Length": len(raw)})
    return PdfStream(dictionary, raw)


class PdfAccessor:
    """Lazy, read-only view over the objects of one PDF document.

    Args:
        data: The complete PDF file contents.
        max_depth: Longest reference chain :meth:`resolve` will follow.

    Raises:
        MalformedDocument: If no PDF header, trailer or ``/Root`` entry can
            be found, or the document is encrypted.
    """

    def __init__(self, data: bytes, *, max_depth: int = MAX_RESOLVE_DEPTH):
        if PDF_HEADER not in data[:HEADER_SEARCH_WINDOW]:
            raise MalformedDocument("Not a PDF document: missing %PDF- header")

        try:
            self._reader = PdfReader(BytesIO(data), strict=False)
            trailer = convert(self._reader.trailer)
        except Exception as e:
            raise MalformedDocument(f"Cannot parse PDF structure: {e}") from e

        if not isinstance(trailer, PdfDict):
            raise MalformedDocument("PDF trailer is missing or unreadable")
        if "Encrypt" in trailer:
            raise MalformedDocument("Encrypted PDF documents are not supported")

        root = trailer.get("Root")
        if not isinstance(root, (PdfObjectRef, PdfDict)):
            raise MalformedDocument("PDF trailer has no /Root entry")

        self.trailer = trailer
        self.root = root
        self.max_depth = max_depth

    def catalog(self) -> PdfDict | None:
        """Return the document catalog, or None if it cannot be resolved."""
        catalog = self.resolve(self.root)
        if isinstance(catalog, PdfDict):
            return catalog
        logger.debug("Document catalog %s did not resolve to a dictionary", self.root)
        return None

    def resolve(self, value: PdfValue) -> PdfValue:
        """Dereference a value.

        Direct values are returned unchanged. References are followed until
        a direct value is reached; a missing object, a read error, a cycle or
        a chain longer than ``max_depth`` resolves to None.
        """
        try:
            return self._follow(value)
        except ReferenceResolutionFailure as e:
            logger.debug("Unresolved reference: %s", e)
            return None

    def get(self, container: PdfValue, key: str) -> PdfValue:
        """Return ``container[key]`` resolved, or None.

        ``container`` may itself be a reference; anything that does not
        resolve to a dictionary or stream yields None.
        """
        container = self.resolve(container)
        if isinstance(container, (PdfDict, PdfStream)):
            return self.resolve(container.get(key))
        return None

    def _follow(self, value: PdfValue) -> PdfValue:
        seen: set[PdfObjectRef] = set()
        while isinstance(value, PdfObjectRef):
            if value in seen:
                raise ReferenceResolutionFailure(f"Reference cycle at {value}")
            if len(seen) >= self.max_depth:
                raise ReferenceResolutionFailure(
                    f"Reference chain longer than {self.max_depth} at {value}"
                )
            seen.add(value)
            value = self._fetch(value)
        return value

    def _fetch(self, ref: PdfObjectRef) -> PdfValue:
        try:
            obj = self._reader.get_object(
                IndirectObject(ref.objnum, ref.generation, self._reader)
            )
        except AttributeError:
            # pypdf fails to cache an object whose body is a bare reference
            obj = self._read_uncached(ref)
        except Exception as e:
            raise ReferenceResolutionFailure(f"Cannot read object {ref}: {e}") from e
        if obj is None:
            raise ReferenceResolutionFailure(f"Object {ref} not found")
        return convert(obj)

    def _read_uncached(self, ref: PdfObjectRef):
        """Parse an uncompressed object at its xref offset, bypassing the cache."""
        reader = self._reader
        offset = reader.xref.get(ref.generation, {}).get(ref.objnum)
        if offset is None:
            raise ReferenceResolutionFailure(f"Object {ref} has no xref offset")
        try:
            reader.stream.seek(offset)
            objnum, generation = reader.read_object_header(reader.stream)
            if (objnum, generation) != (ref.objnum, ref.generation):
                raise ReferenceResolutionFailure(
                    f"Object at offset {offset} is {objnum} {generation}, expected {ref}"
                )
            return read_object(reader.stream, reader)
        except ReferenceResolutionFailure:
            raise
        except Exception as e:
            raise ReferenceResolutionFailure(f"Cannot read object {ref}: {e}") from e

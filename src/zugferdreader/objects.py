"""PDF value types.

A resolved PDF value is one of:

- ``None`` (null), ``bool``, ``int`` or ``float``
- :class:`PdfName` or :class:`PdfString`
- a ``tuple`` of values (array)
- :class:`PdfDict` or :class:`PdfStream`
- :class:`PdfObjectRef`, which must be resolved through
  :meth:`zugferdreader.accessor.PdfAccessor.resolve` before use
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True, slots=True)
class PdfObjectRef:
    """Reference to an indirect object (``12 0 R``)."""

    objnum: int
    generation: int = 0

    def __str__(self) -> str:
        return f"{self.objnum} {self.generation} R"


@dataclass(frozen=True, slots=True)
class PdfName:
    """A PDF name, stored without its leading slash."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class PdfString:
    """A PDF string, already decoded to text."""

    text: str

    def __str__(self) -> str:
        return self.text


class PdfDict(Mapping):
    """Read-only dictionary keyed by name text, in document order."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, "PdfValue"] | None = None):
        self._entries: dict[str, PdfValue] = dict(entries or {})

    def __getitem__(self, key: str) -> "PdfValue":
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"PdfDict({self._entries!r})"


@dataclass(frozen=True, slots=True)
class PdfStream:
    """A stream: its dictionary plus the still-encoded payload."""

    dictionary: PdfDict
    raw: bytes

    def get(self, key: str, default: "PdfValue" = None) -> "PdfValue":
        return self.dictionary.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self.dictionary


PdfValue = Union[
    None,
    bool,
    int,
    float,
    PdfName,
    PdfString,
    "tuple[PdfValue, ...]",
    PdfDict,
    PdfStream,
    PdfObjectRef,
]

"""Pick the invoice XML out of a list of embedded files."""

from collections.abc import Sequence
from typing import NoReturn

from .core import EmbeddedFile
from .exceptions import NoEmbeddedFiles, NoMatchingAttachment

# Attachment names used by ZUGFeRD 1.x/2.x, Factur-X and XRechnung, most
# specific first. Matched case-insensitively as substrings.
KNOWN_INVOICE_NAMES = (
    "factur-x.xml",
    "facturx.xml",
    "zugferd-invoice.xml",
    "xrechnung.xml",
)


def select_attachment(
    files: Sequence[EmbeddedFile], name: str | None = None
) -> EmbeddedFile:
    """Select one embedded file.

    With ``name``, the first file whose name equals it exactly is returned.
    Without, the known invoice names are tried in order, then any name
    ending in ``.xml``.

    Args:
        files: Embedded files in discovery order.
        name: Exact attachment name to look for, or None to auto-detect.

    Returns:
        The selected EmbeddedFile.

    Raises:
        NoEmbeddedFiles: If ``files`` is empty.
        NoMatchingAttachment: If no file matches; lists all available names.
    """
    if not files:
        raise NoEmbeddedFiles("No embedded files found in PDF")

    if name is not None:
        for file in files:
            if file.name == name:
                return file
        _no_match(files, f"No attachment named '{name}' found")

    for known in KNOWN_INVOICE_NAMES:
        for file in files:
            if known in file.name.lower():
                return file

    for file in files:
        if file.name.lower().endswith(".xml"):
            return file

    _no_match(files, "No ZUGFeRD/Factur-X XML found")


def _no_match(files: Sequence[EmbeddedFile], message: str) -> NoReturn:
    available = [file.name for file in files]
    raise NoMatchingAttachment(
        f"{message}. Available attachments: {', '.join(available)}",
        available,
    )

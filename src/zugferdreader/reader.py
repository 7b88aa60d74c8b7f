"""Read ZUGFeRD / Factur-X / XRechnung invoices from PDF files."""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, TypedDict

import magic

from .core import EmbeddedFile, extract_embedded_files
from .exceptions import ValidationError
from .selector import select_attachment
from .xmlmap import xml_to_dict

logger = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    """Which representation of the invoice to return."""

    JSON = "json"
    XML = "xml"
    BOTH = "both"


class InvoiceReport(TypedDict, total=False):
    """Result of reading an invoice from a PDF."""

    attachment_name: str
    available_attachments: list[str]
    invoice: dict[str, Any]
    xml: str


class AttachmentInfo(TypedDict):
    """Information about one embedded file."""

    name: str
    size: int
    mime_type: str | None


def validate_pdf(file_path: str | Path) -> Path:
    """Validate that a file path points to a readable PDF file.

    Args:
        file_path: Path to the file to validate.

    Returns:
        The validated Path object.

    Raises:
        ValidationError: If the file doesn't exist, isn't readable, or isn't a PDF.
    """
    path = Path(file_path)

    if not path.exists():
        raise ValidationError(f"File not found: {path}")

    if not path.is_file():
        raise ValidationError(f"Not a file: {path}")

    if not os.access(path, os.R_OK):
        raise ValidationError(f"File not readable: {path}")

    mime_type = magic.from_file(str(path), mime=True)
    if mime_type != "application/pdf":
        raise ValidationError(
            f"Invalid file type: expected PDF, got {mime_type}. "
            "zugferdreader only accepts PDF files."
        )

    return path


def read_invoice(
    data: bytes,
    *,
    output_format: OutputFormat | str = OutputFormat.JSON,
    attachment_name: str | None = None,
) -> InvoiceReport:
    """Extract the invoice XML embedded in a PDF.

    Args:
        data: The complete PDF file contents.
        output_format: ``json`` for the parsed invoice, ``xml`` for the raw
            XML text, ``both`` for both.
        attachment_name: Exact attachment name to use. When None the invoice
            attachment is detected from well-known names.

    Returns:
        InvoiceReport with the selected attachment name, the names of all
        attachments, and the invoice in the requested format(s).

    Raises:
        MalformedDocument: If ``data`` is not a readable PDF.
        NoEmbeddedFiles: If the PDF has no embedded files.
        NoMatchingAttachment: If no embedded file matches.
        XmlMappingError: If JSON output is requested and the XML is invalid.
        ValueError: If ``output_format`` is not a known format.
    """
    output_format = OutputFormat(output_format)

    files = extract_embedded_files(data)
    selected = select_attachment(files, attachment_name)
    logger.info("Using attachment %r (%d bytes)", selected.name, selected.size)

    xml_text = selected.text
    report = InvoiceReport(
        attachment_name=selected.name,
        available_attachments=[file.name for file in files],
    )

    if output_format in (OutputFormat.JSON, OutputFormat.BOTH):
        report["invoice"] = xml_to_dict(xml_text)
    if output_format in (OutputFormat.XML, OutputFormat.BOTH):
        report["xml"] = xml_text

    return report


def read_invoice_file(
    file_path: str | Path,
    *,
    output_format: OutputFormat | str = OutputFormat.JSON,
    attachment_name: str | None = None,
) -> InvoiceReport:
    """Validate a PDF path and extract its invoice; see :func:`read_invoice`.

    Raises:
        ValidationError: If the file isn't a valid, readable PDF.
    """
    path = validate_pdf(file_path)
    return read_invoice(
        path.read_bytes(),
        output_format=output_format,
        attachment_name=attachment_name,
    )


def list_attachments(data: bytes) -> list[AttachmentInfo]:
    """Describe every embedded file of a PDF.

    Raises:
        MalformedDocument: If ``data`` is not a readable PDF.
    """
    return [_describe(file) for file in extract_embedded_files(data)]


def _describe(file: EmbeddedFile) -> AttachmentInfo:
    try:
        mime_type = magic.from_buffer(file.data, mime=True)
    except magic.MagicException:
        mime_type = None
    return AttachmentInfo(name=file.name, size=file.size, mime_type=mime_type)

"""FastAPI HTTP server for zugferdreader invoice extraction."""

import logging
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool

from . import __version__
from .exceptions import MalformedDocument, ZugferdReaderError
from .reader import OutputFormat, list_attachments, read_invoice

# Largest PDF accepted per request, in bytes.
MAX_UPLOAD_SIZE = 20 * 1024 * 1024

logger = logging.getLogger("zugferdreader")

app = FastAPI(
    title="zugferdreader API",
    description="Extracts ZUGFeRD/Factur-X/XRechnung invoice XML embedded in PDF files.",
    version=__version__,
)


def _too_large() -> HTTPException:
    return HTTPException(status_code=413, detail=f"File exceeds {MAX_UPLOAD_SIZE} bytes")


def _check_body(content: bytes) -> None:
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(content) > MAX_UPLOAD_SIZE:
        raise _too_large()


def _read_upload(file: UploadFile) -> bytes:
    """Read an uploaded file, stopping one byte past the size limit."""
    content = file.file.read(MAX_UPLOAD_SIZE + 1)
    _check_body(content)
    return content


async def _read_request_body(request: Request) -> bytes:
    """Read a raw request body without buffering more than the size limit."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > MAX_UPLOAD_SIZE:
        raise _too_large()

    body = bytearray()
    async for chunk in request.stream():
        body += chunk
        if len(body) > MAX_UPLOAD_SIZE:
            raise _too_large()
    _check_body(body)
    return bytes(body)


def _extract(content: bytes, output_format: OutputFormat, attachment: str | None):
    try:
        return read_invoice(
            content,
            output_format=output_format,
            attachment_name=attachment,
        )
    except MalformedDocument as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ZugferdReaderError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/extract")
def extract_invoice(
    file: Annotated[UploadFile, File(description="PDF invoice")],
    output_format: Annotated[OutputFormat, Query(alias="format")] = OutputFormat.JSON,
    attachment: Annotated[str | None, Query(description="Exact attachment name")] = None,
):
    """Extract the invoice embedded in an uploaded PDF.

    The response contains the name of the selected attachment, the names of
    all embedded files, and the invoice as parsed JSON (``invoice``), raw
    XML (``xml``), or both, depending on ``format``.
    """
    content = _read_upload(file)
    logger.info("Extracting invoice from uploaded PDF: %s", file.filename)
    report = _extract(content, output_format, attachment)
    logger.info("Extracted %s from %s", report["attachment_name"], file.filename)
    return report


@app.post("/extract/raw")
async def extract_invoice_raw(
    request: Request,
    output_format: Annotated[OutputFormat, Query(alias="format")] = OutputFormat.JSON,
    attachment: Annotated[str | None, Query(description="Exact attachment name")] = None,
):
    """Extract the invoice from raw PDF bytes sent as the request body.

    Send the PDF with Content-Type: application/pdf to receive the same
    response as /extract.
    """
    body = await _read_request_body(request)
    logger.info("Extracting invoice from raw PDF upload (%d bytes)", len(body))
    return await run_in_threadpool(_extract, body, output_format, attachment)


@app.post("/attachments")
def attachments(file: Annotated[UploadFile, File(description="PDF file")]):
    """List the files embedded in an uploaded PDF."""
    content = _read_upload(file)
    try:
        return {"attachments": list_attachments(content)}
    except MalformedDocument as e:
        raise HTTPException(status_code=400, detail=str(e))


def main(host: str = "0.0.0.0", port: int = 8080):
    """Run the server."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()

"""Helpers for building small PDF documents byte by byte."""

import zlib

INVOICE_XML = (
    b'<?xml version="1.0" encoding="UTF-8"?>\n'
    b'<rsm:CrossIndustryInvoice'
    b' xmlns:rsm="urn:un:unece:uncefact:data:standard:CrossIndustryInvoice:100"'
    b' xmlns:ram="urn:un:unece:uncefact:data:standard:ReusableAggregateBusinessInformationEntity:100">'
    b"<rsm:ExchangedDocument>"
    b"<ram:ID>INV-2024-0042</ram:ID>"
    b"<ram:TypeCode>380</ram:TypeCode>"
    b"</rsm:ExchangedDocument>"
    b"</rsm:CrossIndustryInvoice>"
)

# Catalog is always object 1; objects 2 and 3 are a one-page page tree.
PAGE_TREE = {
    2: b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
    3: b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] >>",
}


def build_pdf(objects: dict[int, bytes], *, root: int | None = 1, trailer: bytes = b"") -> bytes:
    """Serialize numbered object bodies into a PDF with a correct xref table."""
    out = bytearray(b"%PDF-1.7\n%\xe2\xe3\xcf\xd3\n")
    offsets = {}
    for num in sorted(objects):
        offsets[num] = len(out)
        out += b"%d 0 obj\n" % num + objects[num] + b"\nendobj\n"

    size = max(objects) + 1
    startxref = len(out)
    out += b"xref\n0 %d\n" % size
    out += b"0000000000 65535 f \n"
    for num in range(1, size):
        if num in offsets:
            out += b"%010d 00000 n \n" % offsets[num]
        else:
            out += b"0000000000 65535 f \n"

    root_entry = b" /Root %d 0 R" % root if root is not None else b""
    out += b"trailer\n<< /Size %d%s%s >>\n" % (size, root_entry, trailer)
    out += b"startxref\n%d\n" % startxref
    out += b"%%EOF\n"
    return bytes(out)


def make_pdf(catalog_entries: bytes = b"", objects: dict[int, bytes] | None = None) -> bytes:
    """Build a PDF whose catalog (object 1) carries ``catalog_entries``."""
    all_objects = {1: b"<< /Type /Catalog /Pages 2 0 R " + catalog_entries + b" >>"}
    all_objects.update(PAGE_TREE)
    all_objects.update(objects or {})
    return build_pdf(all_objects)


def stream(data: bytes, entries: bytes = b"") -> bytes:
    """Body of a stream object with the given payload."""
    return b"<< /Length %d %s >>\nstream\n" % (len(data), entries) + data + b"\nendstream"


def flate_stream(data: bytes, entries: bytes = b"") -> bytes:
    return stream(zlib.compress(data), b"/Filter /FlateDecode " + entries)


def filespec(name: bytes, stream_num: int) -> bytes:
    """Body of a file specification pointing at an embedded file stream."""
    return b"<< /Type /Filespec /F (%s) /UF (%s) /EF << /F %d 0 R >> >>" % (
        name, name, stream_num,
    )

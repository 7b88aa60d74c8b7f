"""Command-line interface for zugferdreader."""

import json
import logging
import signal
import sys
import argparse

from . import __version__
from .exceptions import ZugferdReaderError
from .reader import OutputFormat, list_attachments, read_invoice_file, validate_pdf


def _run(path: str, args: argparse.Namespace):
    if args.list:
        return list_attachments(validate_pdf(path).read_bytes())
    return read_invoice_file(
        path,
        output_format=args.format,
        attachment_name=args.attachment,
    )


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="zugferdreader",
        description="Extract ZUGFeRD/Factur-X/XRechnung invoice XML from PDF files and output it as JSON.",
    )
    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging to stderr",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=0,
        metavar="SECONDS",
        help="Abort processing after SECONDS (0 = disabled)",
    )
    parser.add_argument(
        "-f", "--format",
        choices=[fmt.value for fmt in OutputFormat],
        default=OutputFormat.JSON.value,
        help="Return the parsed invoice (json), the raw XML (xml), or both",
    )
    parser.add_argument(
        "-a", "--attachment",
        metavar="NAME",
        help="Exact name of the XML attachment (default: auto-detect)",
    )
    parser.add_argument(
        "-l", "--list",
        action="store_true",
        help="List embedded files instead of extracting the invoice",
    )
    parser.add_argument(
        "--continue-on-fail",
        action="store_true",
        help="Report per-file errors in the output instead of exiting",
    )
    parser.add_argument(
        "files",
        nargs="+",
        metavar="FILE",
        help="Path to a PDF file to process",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            stream=sys.stderr,
            format="%(name)s: %(message)s",
        )

    if args.timeout > 0:
        if not hasattr(signal, "SIGALRM"):
            print(
                "Warning: --timeout is not supported on this platform",
                file=sys.stderr,
            )
        else:
            def _timeout_handler(signum, frame):
                raise TimeoutError(
                    f"Processing timed out after {args.timeout} seconds"
                )

            signal.signal(signal.SIGALRM, _timeout_handler)
            signal.alarm(args.timeout)

    results = []
    try:
        for path in args.files:
            try:
                results.append(_run(path, args))
            except ZugferdReaderError as e:
                if not args.continue_on_fail:
                    raise
                results.append({"file": path, "error": str(e)})
    except ZugferdReaderError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except TimeoutError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    finally:
        if args.timeout > 0 and hasattr(signal, "SIGALRM"):
            signal.alarm(0)

    output = results[0] if len(args.files) == 1 else results
    print(json.dumps(output, indent=2, ensure_ascii=False))

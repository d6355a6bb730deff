from __future__ import annotations

import argparse
import asyncio
import logging
import mimetypes
import sys
from dataclasses import replace
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from propimport.app import (
    DocumentImportRequest,
    build_controller,
    build_import_pipeline,
    run_document_import,
)
from propimport.common import configure_logging
from propimport.config import ConfigurationError, get_import_config, get_provider_preferences
from propimport.config.importing import SUPPORTED_LOCALES
from propimport.config.providers import parse_provider_selection
from propimport.domain.errors import ImportValidationError
from propimport.domain.importing import message_for_error
from propimport.domain.importing.credentials import with_provider
from propimport.domain.model import CandidateAction, DocumentType
from propimport.domain.ports import FileUpload

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from propimport.app import DocumentImportResult

log = logging.getLogger(__name__)


def _add_import_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--document-type",
        type=DocumentType,
        choices=list(DocumentType),
        required=True,
        help="Kind of document being imported",
    )
    parser.add_argument(
        "--provider",
        type=str,
        help="AI provider: auto, deepseek, openai or anthropic (defaults to config)",
    )
    parser.add_argument(
        "--on-duplicate",
        type=CandidateAction,
        choices=list(CandidateAction),
        default=CandidateAction.CREATE,
        help="Resolution applied to properties already in the library",
    )
    parser.add_argument(
        "--locale",
        type=str,
        choices=sorted(SUPPORTED_LOCALES),
        help="Language of user-facing messages (defaults to config)",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import property documents")
    subparsers = parser.add_subparsers(dest="command", required=True)

    text = subparsers.add_parser("import-text", help="Extract properties from pasted text")
    source = text.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", type=str, help="Document text")
    source.add_argument("--text-file", type=Path, help="File holding the document text")
    _add_import_arguments(text)

    pdf = subparsers.add_parser("import-pdf", help="Extract properties from a PDF file")
    pdf.add_argument("path", type=Path, help="PDF file to import")
    _add_import_arguments(pdf)

    return parser.parse_args(list(argv))


def _read_upload(path: Path) -> FileUpload:
    if not path.is_file():
        raise ValueError(f"File not found: {path}")
    content_type, _ = mimetypes.guess_type(path.name)
    return FileUpload(
        name=path.name,
        content=path.read_bytes(),
        content_type=content_type or "application/pdf",
    )


def _build_request(args: argparse.Namespace) -> DocumentImportRequest:
    if args.command == "import-pdf":
        return DocumentImportRequest(
            document_type=args.document_type,
            upload=_read_upload(args.path),
            on_duplicate=args.on_duplicate,
        )
    if args.command == "import-text":
        text = args.text
        if text is None:
            text = args.text_file.read_text(encoding="utf-8")
        return DocumentImportRequest(
            document_type=args.document_type,
            text=text,
            on_duplicate=args.on_duplicate,
        )
    raise ValueError(f"Unsupported command: {args.command}")


def _log_result(result: DocumentImportResult) -> None:
    for item in result.report.results:
        log.info(
            "Candidate %s: %s (property=%s)",
            item.index,
            item.outcome.value,
            item.property_id,
        )
    log.info(
        "Import %s finished: candidates=%s, properties=%s",
        result.session.id,
        result.session.total_properties,
        len(result.session.property_ids),
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        request = _build_request(parsed_args)
        import_config = get_import_config()
        if parsed_args.locale:
            import_config = replace(import_config, locale=parsed_args.locale)
        preferences = get_provider_preferences()
        if parsed_args.provider:
            preferences = with_provider(preferences, parse_provider_selection(parsed_args.provider))
    except (ValueError, OSError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        pipeline = build_import_pipeline(import_config=import_config)
        controller = build_controller(pipeline, preferences=preferences)
        result = asyncio.run(run_document_import(request, controller))
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except ImportValidationError as exc:
        log.error("Invalid import: %s", message_for_error(exc, import_config.locale))  # noqa: TRY400
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during import")
        sys.exit(1)

    _log_result(result)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()

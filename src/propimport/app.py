"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from propimport.adapters.extraction import build_http_extraction_gateway
from propimport.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyPropertyUnitOfWork,
    is_started,
    startup,
)
from propimport.config import get_import_config, get_provider_preferences
from propimport.domain.errors import CommitFailedError, ExtractionFailedError, ImportValidationError
from propimport.domain.importing import (
    BackgroundImportRunner,
    BatchCommitter,
    DuplicateMatcher,
    PendingImportState,
    PriorityCredentialPolicy,
    ReconciliationController,
    RepositoryPropertyStore,
)
from propimport.domain.model import CandidateAction, ImportSource, InputMode

if TYPE_CHECKING:
    from propimport.config import ImportConfig
    from propimport.domain.importing import CommitReport, ProviderPreferences
    from propimport.domain.importing.controller import RedirectScheduler
    from propimport.domain.importing.store import UnitOfWorkFactory
    from propimport.domain.model import DocumentType, ImportSession
    from propimport.domain.ports import ExtractionGateway, FileUpload, PropertyStore

log = getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class ImportPipeline:
    """Collaborators shared by every screen of one user session."""

    config: ImportConfig
    pending: PendingImportState
    store: PropertyStore
    matcher: DuplicateMatcher
    runner: BackgroundImportRunner
    committer: BatchCommitter


@dataclass(slots=True, kw_only=True)
class DocumentImportRequest:
    document_type: DocumentType
    upload: FileUpload | None = None
    text: str | None = None
    on_duplicate: CandidateAction = CandidateAction.CREATE


@dataclass(slots=True, kw_only=True)
class DocumentImportResult:
    session: ImportSession
    report: CommitReport


def build_import_pipeline(
    *,
    gateway: ExtractionGateway | None = None,
    store: PropertyStore | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    import_config: ImportConfig | None = None,
) -> ImportPipeline:
    """Wire the pipeline with the configured adapters unless overridden."""

    config = import_config or get_import_config()
    if store is None:
        if unit_of_work_factory is None and not is_started():
            startup()
        store = RepositoryPropertyStore(unit_of_work_factory or SqlAlchemyPropertyUnitOfWork)
    pending = PendingImportState()
    matcher = DuplicateMatcher(store, failure_policy=config.lookup_failure_policy)
    runner = BackgroundImportRunner(
        gateway or build_http_extraction_gateway(),
        matcher,
        pending,
        store=store,
        locale=config.locale,
    )
    return ImportPipeline(
        config=config,
        pending=pending,
        store=store,
        matcher=matcher,
        runner=runner,
        committer=BatchCommitter(store),
    )


def build_controller(
    pipeline: ImportPipeline,
    *,
    preferences: ProviderPreferences | None = None,
    schedule_redirect: RedirectScheduler | None = None,
) -> ReconciliationController:
    config = pipeline.config
    return ReconciliationController(
        runner=pipeline.runner,
        committer=pipeline.committer,
        pending=pipeline.pending,
        credentials=PriorityCredentialPolicy(preferences or get_provider_preferences()),
        redirect_delay_seconds=config.redirect_delay_seconds,
        max_file_size=config.max_file_size,
        accepted_file_types=config.accepted_file_types,
        schedule_redirect=schedule_redirect,
        locale=config.locale,
    )


def _apply_duplicate_choice(controller: ReconciliationController, action: CandidateAction) -> None:
    session = controller.session
    if session is None or action is CandidateAction.CREATE:
        return
    for index, candidate in enumerate(session.reviewable()):
        if candidate.duplicate is not None:
            controller.set_action(index, action)


async def run_document_import(
    request: DocumentImportRequest,
    controller: ReconciliationController,
) -> DocumentImportResult:
    """Drive ``controller`` from source selection to a committed session.

    Candidates with a duplicate get ``request.on_duplicate``; all others are
    created. Raises :class:`ImportValidationError` for unusable input and
    :class:`ExtractionFailedError` / :class:`CommitFailedError` otherwise.
    """

    controller.mount()
    controller.choose_source(ImportSource.PDF)
    controller.set_document_type(request.document_type)
    if request.upload is not None:
        controller.set_input_mode(InputMode.PDF)
        reason = controller.upload_rejection(request.upload)
        if reason is not None:
            raise ImportValidationError(reason, max_size_mb=controller.max_file_size_mb)
        controller.select_file(request.upload)
    else:
        controller.set_input_mode(InputMode.TEXT)
        controller.set_pasted_text(request.text or "")
    controller.validate()

    if not await controller.handle_process():
        raise ExtractionFailedError(controller.error or "Extraction failed")
    session = controller.session
    if session is None:
        raise ExtractionFailedError("Extraction produced no session")

    _apply_duplicate_choice(controller, request.on_duplicate)
    if not await controller.handle_create_property():
        raise CommitFailedError(controller.error or "Commit failed", report=controller.last_report)

    report = controller.last_report
    if report is None:
        raise CommitFailedError("Commit produced no report")
    return DocumentImportResult(session=session, report=report)

"""Reconciliation screen controller.

Walks one import through source selection, input capture, review and
confirmation. Handlers never raise: failures end up in ``error`` as one
localized string and are logged. ``processing`` and ``saving`` guard the two
suspension points; calling a guarded handler again while its flag is set
does nothing and returns ``False``.
"""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from propimport.domain.errors import (
    CommitFailedError,
    ImportValidationError,
    InvalidResolutionError,
    ValidationReason,
)
from propimport.domain.importing.messages import (
    CANDIDATE_NOT_FOUND,
    COMMIT_FAILED,
    DEFAULT_LOCALE,
    message_for_error,
    user_message,
)
from propimport.domain.importing.state_machine import (
    Cancelled,
    CommitSucceeded,
    ImportEvent,
    ImportStep,
    ProcessSucceeded,
    Rejected,
    SourceChosen,
    StepBack,
    parse_step_param,
    transition,
)
from propimport.domain.model import InputMode

if TYPE_CHECKING:
    from propimport.domain.importing.committer import BatchCommitter, CommitReport
    from propimport.domain.importing.pending import PendingImportState
    from propimport.domain.importing.runner import BackgroundImportRunner
    from propimport.domain.model import (
        CandidateAction,
        DocumentType,
        ExistingProperty,
        ImportSession,
        ImportSource,
    )
    from propimport.domain.ports import CredentialPolicy, FileUpload

type RedirectScheduler = Callable[[float], None]

log = getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024
ACCEPTED_FILE_TYPES: frozenset[str] = frozenset({"application/pdf"})
REDIRECT_DELAY_SECONDS = 2.0


def _no_redirect(delay_seconds: float) -> None:
    log.debug(f"No redirect scheduler configured (delay {delay_seconds}s)")


class ReconciliationController:
    def __init__(
        self,
        *,
        runner: BackgroundImportRunner,
        committer: BatchCommitter,
        pending: PendingImportState,
        credentials: CredentialPolicy,
        schedule_redirect: RedirectScheduler | None = None,
        redirect_delay_seconds: float = REDIRECT_DELAY_SECONDS,
        max_file_size: int = MAX_FILE_SIZE,
        accepted_file_types: frozenset[str] = ACCEPTED_FILE_TYPES,
        locale: str = DEFAULT_LOCALE,
    ) -> None:
        self._runner = runner
        self._committer = committer
        self._pending = pending
        self._credentials = credentials
        self._schedule_redirect = schedule_redirect or _no_redirect
        self.redirect_delay_seconds = redirect_delay_seconds
        self.max_file_size = max_file_size
        self.accepted_file_types = accepted_file_types
        self.locale = locale

        self.step = ImportStep.SOURCE_SELECT
        self.source: ImportSource | None = None
        self.document_type: DocumentType | None = None
        self.input_mode = InputMode.PDF
        self.selected_file: FileUpload | None = None
        self.pasted_text = ""
        self.session: ImportSession | None = None
        self.error: str | None = None
        self.processing = False
        self.saving = False
        self.last_report: CommitReport | None = None
        self.detached = False

    # Navigation ------------------------------------------------------------------

    def mount(self, step_param: str | int | None = None) -> ImportStep:
        """Restore a pending session, else honour a valid ``step`` parameter."""

        try:
            restored = self._pending.restore()
            if restored is not None:
                self.session, self.step = restored
                log.info(f"Resumed import session {self.session.id} at {self.step.name}")
                return self.step
            step = parse_step_param(step_param)
            if step is not None:
                self.step = step
            elif step_param is not None:
                log.info(f"Ignoring invalid step parameter {step_param!r}")
        except Exception as exc:
            log.exception("Could not restore the import screen")
            self.error = message_for_error(exc, self.locale)
        return self.step

    def choose_source(self, source: ImportSource) -> bool:
        if self._apply(SourceChosen(source=source)):
            self.source = source
            return True
        return False

    @property
    def max_file_size_mb(self) -> float:
        return self.max_file_size / (1024 * 1024)

    @property
    def busy(self) -> bool:
        return self.processing or self.saving

    def back(self) -> bool:
        if self.busy:
            return False
        return self._apply(StepBack())

    def cancel(self) -> bool:
        """Leave the flow and discard the session (pending snapshot included).

        Ignored while an extraction or commit is in flight.
        """

        if self.busy or not self._apply(Cancelled()):
            return False
        self.session = None
        self.selected_file = None
        self.pasted_text = ""
        self.error = None
        self.last_report = None
        self._pending.clear_pending_session()
        return True

    def detach(self) -> None:
        """The screen went away; running calls still finish and save their session."""

        self.detached = True

    def _apply(self, event: ImportEvent) -> bool:
        outcome = transition(self.step, event)
        if isinstance(outcome, Rejected):
            log.debug(f"Transition rejected: {outcome.reason}")
            return False
        self.step = outcome
        return True

    # Input capture ---------------------------------------------------------------

    def set_document_type(self, document_type: DocumentType | None) -> None:
        self.document_type = document_type

    def set_input_mode(self, mode: InputMode) -> None:
        self.input_mode = mode
        self.error = None

    def upload_rejection(self, upload: FileUpload) -> ValidationReason | None:
        """Why ``upload`` cannot be imported, or ``None`` when it can."""

        if upload.size > self.max_file_size:
            return ValidationReason.FILE_TOO_LARGE
        if upload.content_type not in self.accepted_file_types:
            return ValidationReason.INVALID_FILE_TYPE
        return None

    def select_file(self, upload: FileUpload | None) -> bool:
        self.error = None
        if upload is None:
            self.selected_file = None
            return False
        reason = self.upload_rejection(upload)
        if reason is not None:
            self.error = user_message(reason, self.locale, max_size_mb=self.max_file_size_mb)
            return False
        self.selected_file = upload
        return True

    def set_pasted_text(self, text: str) -> None:
        self.pasted_text = text

    def validate(self) -> DocumentType:
        """Raise :class:`ImportValidationError` unless the input can be processed."""

        document_type = self.document_type
        if document_type is None:
            raise ImportValidationError(ValidationReason.MISSING_DOCUMENT_TYPE)
        if self.input_mode is InputMode.PDF and self.selected_file is None:
            raise ImportValidationError(ValidationReason.MISSING_FILE)
        if self.input_mode is InputMode.TEXT and not self.pasted_text.strip():
            raise ImportValidationError(ValidationReason.MISSING_TEXT)
        return document_type

    async def handle_process(self) -> bool:
        """Extract the document and move to review."""

        if self.processing or self.step is not ImportStep.UPLOAD:
            return False
        try:
            document_type = self.validate()
        except ImportValidationError as exc:
            self.error = message_for_error(exc, self.locale)
            return False

        self.processing = True
        self.error = None
        try:
            session = await self._process(document_type)
        except Exception as exc:
            log.exception("Import error")
            if not self.detached:
                self.error = message_for_error(exc, self.locale)
            return False
        finally:
            self.processing = False

        if self.detached:
            return True
        self.session = session
        self.last_report = None
        return self._apply(ProcessSucceeded())

    async def _process(self, document_type: DocumentType) -> ImportSession:
        credentials = self._credentials.resolve_provider_and_key()
        upload = self.selected_file
        if self.input_mode is InputMode.PDF and upload is not None:
            return await self._runner.start_single_import(
                upload,
                document_type,
                credentials.api_key,
                credentials.provider,
                credentials.model,
            )
        return await self._runner.start_text_import(
            self.pasted_text,
            document_type,
            credentials.api_key,
            credentials.provider,
            credentials.model,
        )

    # Review ----------------------------------------------------------------------

    def set_action(self, index: int, action: CandidateAction) -> bool:
        if self.session is None or self.step is not ImportStep.REVIEW:
            return False
        try:
            self.session.candidate(index).choose(action)
        except InvalidResolutionError as exc:
            log.warning(f"Cannot set {action} on candidate {index}: {exc}")
            self.error = message_for_error(exc, self.locale)
            return False
        except IndexError:
            log.warning(f"No candidate at index {index}")
            self.error = user_message(CANDIDATE_NOT_FOUND, self.locale)
            return False
        return True

    def set_duplicate(self, index: int, duplicate: ExistingProperty | None) -> bool:
        if self.session is None or self.step is not ImportStep.REVIEW:
            return False
        try:
            self.session.candidate(index).set_duplicate(duplicate)
        except IndexError:
            log.warning(f"No candidate at index {index}")
            self.error = user_message(CANDIDATE_NOT_FOUND, self.locale)
            return False
        return True

    async def handle_create_property(self) -> bool:
        """Commit the reviewed session; redirect only once the commit is done."""

        if self.saving or self.session is None or self.step is not ImportStep.REVIEW:
            return False

        self.saving = True
        self.error = None
        try:
            report = await self._committer.commit(self.session)
        except Exception as exc:
            log.exception("Create property error")
            if isinstance(exc, CommitFailedError):
                self.last_report = exc.report
            self.error = user_message(COMMIT_FAILED, self.locale)
            return False
        finally:
            self.saving = False

        self.last_report = report
        self._pending.clear_pending_session()
        self._apply(CommitSucceeded())
        self._schedule_redirect(self.redirect_delay_seconds)
        return True

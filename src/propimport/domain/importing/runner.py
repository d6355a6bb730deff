"""Background extraction runs.

A run calls the extraction gateway once, looks up duplicates and stores the
resulting session in :class:`PendingImportState` before it returns. The run
can be spawned as a detached task, so the caller may navigate away and pick
the session up later from the pending state.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Any

from propimport.domain.errors import (
    ExtractionFailedError,
    ImportAlreadyRunningError,
    PropertyImportError,
)
from propimport.domain.importing.messages import (
    BATCH_FAILED,
    DEFAULT_LOCALE,
    IMPORT_CANCELLED,
    IMPORT_RUNNING,
    user_message,
)
from propimport.domain.importing.state_machine import ImportStep
from propimport.domain.model import ExtractionCandidate, ImportSession, ImportSource, ImportStatus
from propimport.domain.ports import ExtractionRequest

if TYPE_CHECKING:
    from collections.abc import Sequence

    from propimport.domain.importing.matching import DuplicateMatcher
    from propimport.domain.importing.pending import PendingImportState
    from propimport.domain.model import AIProvider, DocumentType
    from propimport.domain.ports import (
        ExtractionGateway,
        ExtractionResult,
        FileUpload,
        PropertyStore,
        ProviderCredentials,
    )

type ExtractionListener = Callable[[ImportSession], Awaitable[None] | None]

log = getLogger(__name__)

PASTED_TEXT_FILE_NAME = "pasted-text.txt"


@dataclass(slots=True, kw_only=True)
class ImportProgress:
    """Progress of the current (or last) run, for a global indicator."""

    is_processing: bool = False
    total_files: int = 0
    processed_files: int = 0
    current_file_index: int | None = None
    current_file_name: str | None = None
    completed_files: list[str] = field(default_factory=list[str])
    error: str | None = None
    target_property_id: str | None = None
    duplicate_detected: bool = False
    duplicate_address: str | None = None


class MergeMode(StrEnum):
    NEW = "new"
    EXISTING = "existing"


@dataclass(slots=True, frozen=True, kw_only=True)
class BatchFile:
    upload: FileUpload
    document_type: DocumentType


class BackgroundImportRunner:
    def __init__(
        self,
        gateway: ExtractionGateway,
        matcher: DuplicateMatcher,
        pending: PendingImportState,
        *,
        store: PropertyStore | None = None,
        locale: str = DEFAULT_LOCALE,
    ) -> None:
        self._gateway = gateway
        self._matcher = matcher
        self._pending = pending
        self._store = store
        self.locale = locale
        self._progress = ImportProgress()
        self._listeners: list[ExtractionListener] = []
        self._tasks: set[asyncio.Task[Any]] = set()
        self._cancel_requested = False

    @property
    def progress(self) -> ImportProgress:
        return self._progress

    @property
    def is_processing(self) -> bool:
        return self._progress.is_processing

    def add_listener(self, listener: ExtractionListener) -> None:
        """Register a callback run after every successful extraction (e.g. credit refresh)."""

        self._listeners.append(listener)

    def remove_listener(self, listener: ExtractionListener) -> None:
        self._listeners.remove(listener)

    async def start_single_import(
        self,
        upload: FileUpload,
        document_type: DocumentType,
        api_key: str,
        provider: AIProvider,
        model: str | None = None,
    ) -> ImportSession:
        request = ExtractionRequest(
            document_type=document_type,
            provider=provider,
            api_key=api_key,
            model=model,
            upload=upload,
        )
        return await self._run(request, file_name=upload.name, file_size=upload.size)

    async def start_text_import(
        self,
        text: str,
        document_type: DocumentType,
        api_key: str,
        provider: AIProvider,
        model: str | None = None,
    ) -> ImportSession:
        request = ExtractionRequest(
            document_type=document_type,
            provider=provider,
            api_key=api_key,
            model=model,
            text=text,
        )
        return await self._run(request, file_name=PASTED_TEXT_FILE_NAME, file_size=len(text))

    def spawn[T](self, coro: Coroutine[Any, Any, T]) -> asyncio.Task[T]:
        """Run ``coro`` as a task that outlives the caller."""

        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            log.error(f"Background import task failed: {error}")

    def _ensure_idle(self) -> None:
        if self._progress.is_processing:
            log.warning("Cannot start new import: another import is already in progress")
            raise ImportAlreadyRunningError(user_message(IMPORT_RUNNING, self.locale))

    async def _run(self, request: ExtractionRequest, *, file_name: str, file_size: int) -> ImportSession:
        self._ensure_idle()
        self._progress = ImportProgress(
            is_processing=True, total_files=1, current_file_index=0, current_file_name=file_name
        )
        log.info(f"Starting {request.document_type} extraction of {file_name} via {request.provider}")
        try:
            result = await self._extract(request)
            session = self._build_session(
                result, request.document_type, file_name=file_name, file_size=file_size
            )
            await self._matcher.match_candidates(session.reviewable())
            session.status = ImportStatus.REVIEW
            self._pending.save_pending_session(session, ImportStep.REVIEW)
        except ExtractionFailedError as exc:
            self._progress.error = str(exc)
            raise
        finally:
            self._progress.is_processing = False
            self._progress.current_file_index = None
            self._progress.current_file_name = None

        self._progress.processed_files = 1
        self._progress.completed_files.append(file_name)
        log.info(f"Extracted {len(session.reviewable())} properties from {file_name}")
        await self._notify(session)
        return session

    async def _extract(self, request: ExtractionRequest) -> ExtractionResult:
        try:
            return await self._gateway.extract(request)
        except PropertyImportError:
            raise
        except Exception as exc:
            raise ExtractionFailedError(f"Extraction failed: {exc}") from exc

    def _build_session(
        self,
        result: ExtractionResult,
        document_type: DocumentType,
        *,
        file_name: str,
        file_size: int,
        legacy_only: bool = False,
    ) -> ImportSession:
        session = ImportSession(
            document_type=document_type,
            source=ImportSource.PDF,
            status=ImportStatus.PROCESSING,
            file_name=file_name,
            file_size=file_size,
        )
        candidates = [ExtractionCandidate(extracted=fields) for fields in result.properties]
        if (result.legacy or legacy_only) and candidates:
            session.legacy = candidates[0]
        else:
            session.candidates = candidates
        return session

    async def _notify(self, session: ImportSession) -> None:
        for listener in list(self._listeners):
            try:
                outcome = listener(session)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                log.exception("Extraction listener failed")

    # Batch import ---------------------------------------------------------------

    def cancel_import(self) -> None:
        """Stop a running batch before its next file."""

        self._cancel_requested = True

    def clear_state(self) -> None:
        if not self._progress.is_processing:
            self._progress = ImportProgress()

    async def start_batch_import(
        self,
        files: Sequence[BatchFile],
        *,
        merge_mode: MergeMode,
        selected_property_id: str | None,
        credentials: ProviderCredentials,
    ) -> ImportProgress:
        """Import several PDFs, one after the other, into a single property.

        With ``MergeMode.NEW`` the first file creates the property, or merges
        into an existing one with the same address. Every later file (or every
        file with ``MergeMode.EXISTING``) merges into that target.
        Failures end the batch and are reported through ``progress.error``.
        """

        store = self._store
        if store is None:
            raise PropertyImportError("Batch import needs a property store")
        self._ensure_idle()
        self._cancel_requested = False
        progress = ImportProgress(
            is_processing=True,
            total_files=len(files),
            target_property_id=selected_property_id,
        )
        self._progress = progress
        target_id = selected_property_id

        try:
            for index, batch_file in enumerate(files):
                if self._cancel_requested:
                    log.info(f"Batch import cancelled after {index} files")
                    progress.error = user_message(IMPORT_CANCELLED, self.locale)
                    return progress

                upload = batch_file.upload
                progress.current_file_index = index
                progress.current_file_name = upload.name
                request = ExtractionRequest(
                    document_type=batch_file.document_type,
                    provider=credentials.provider,
                    api_key=credentials.api_key,
                    model=credentials.model,
                    upload=upload,
                )
                result = await self._extract(request)
                session = self._build_session(
                    result,
                    batch_file.document_type,
                    file_name=upload.name,
                    file_size=upload.size,
                    legacy_only=True,
                )
                await self._notify(session)

                if index == 0 and merge_mode is MergeMode.NEW:
                    target_id = await self._create_or_merge_first(store, session, progress)
                elif target_id is not None:
                    await store.merge_property_data(target_id, session)

                progress.processed_files = index + 1
                progress.completed_files.append(upload.name)
        except Exception:
            log.exception("Background import error")
            progress.error = user_message(BATCH_FAILED, self.locale)
        finally:
            progress.is_processing = False
            progress.current_file_index = None
            progress.current_file_name = None
        return progress

    async def _create_or_merge_first(
        self, store: PropertyStore, session: ImportSession, progress: ImportProgress
    ) -> str:
        address = session.legacy.address if session.legacy is not None else None
        existing = await self._matcher.find_by_address(address) if address else None
        if existing is not None:
            log.info(f"Duplicate property found, merging instead of creating: {existing.address}")
            await store.merge_property_data(existing.id, session)
            progress.duplicate_detected = True
            progress.duplicate_address = existing.address
            target_id = existing.id
        else:
            target_id = await store.create_property_from_import(session)
        progress.target_property_id = target_id
        return target_id

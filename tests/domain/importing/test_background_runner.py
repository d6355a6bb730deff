from __future__ import annotations

import asyncio

import pytest

from propimport.domain.errors import (
    ExtractionFailedError,
    ImportAlreadyRunningError,
    PropertyImportError,
)
from propimport.domain.importing import (
    BackgroundImportRunner,
    BatchFile,
    DuplicateMatcher,
    ImportStep,
    MergeMode,
    PendingImportState,
)
from propimport.domain.model import (
    AIProvider,
    DocumentType,
    ExistingProperty,
    ImportSession,
    ImportStatus,
)
from propimport.domain.ports import ProviderCredentials
from tests.helpers.imports import (
    FakeExtractionGateway,
    FakePropertyStore,
    make_result,
    make_upload,
)


def _runner(
    gateway: FakeExtractionGateway,
    store: FakePropertyStore | None = None,
    *,
    with_store: bool = True,
) -> tuple[BackgroundImportRunner, PendingImportState]:
    store = store or FakePropertyStore()
    pending = PendingImportState()
    runner = BackgroundImportRunner(
        gateway,
        DuplicateMatcher(store),
        pending,
        store=store if with_store else None,
    )
    return runner, pending


_CREDENTIALS = ProviderCredentials(provider=AIProvider.OPENAI, api_key="sk-openai", model="gpt-4o-mini")


def test_single_import_saves_pending_session_before_returning() -> None:
    gateway = FakeExtractionGateway([make_result("1 Elm St", "2 Elm St")])
    store = FakePropertyStore([ExistingProperty(id="p2", address="2 Elm St")])
    runner, pending = _runner(gateway, store)

    session = asyncio.run(
        runner.start_single_import(
            make_upload(size=64), DocumentType.MLS_LISTING, "sk-key", AIProvider.OPENAI, "gpt-4o"
        )
    )

    assert pending.pending_session is session
    assert pending.pending_step is ImportStep.REVIEW
    assert session.status is ImportStatus.REVIEW
    assert session.file_name == "listing.pdf"
    assert session.file_size == 64
    assert [candidate.address for candidate in session.candidates] == ["1 Elm St", "2 Elm St"]
    assert session.candidates[0].duplicate is None
    assert session.candidates[1].duplicate == ExistingProperty(id="p2", address="2 Elm St")

    request = gateway.requests[0]
    assert request.upload is not None
    assert request.text is None
    assert request.provider is AIProvider.OPENAI
    assert request.api_key == "sk-key"
    assert request.model == "gpt-4o"

    progress = runner.progress
    assert not progress.is_processing
    assert progress.processed_files == 1
    assert progress.completed_files == ["listing.pdf"]


def test_text_import_uses_pasted_text_file_name() -> None:
    gateway = FakeExtractionGateway([make_result("1 Elm St")])
    runner, _ = _runner(gateway)

    session = asyncio.run(
        runner.start_text_import("Some listing", DocumentType.ROLE_TAXE, "", AIProvider.DEEPSEEK)
    )

    assert session.file_name == "pasted-text.txt"
    assert session.document_type is DocumentType.ROLE_TAXE
    assert gateway.requests[0].text == "Some listing"


def test_legacy_payload_becomes_the_legacy_candidate() -> None:
    gateway = FakeExtractionGateway([make_result("7 Cedar Ct", legacy=True)])
    store = FakePropertyStore()
    runner, _ = _runner(gateway, store)

    session = asyncio.run(
        runner.start_text_import("text", DocumentType.ROLE_FONCIER, "", AIProvider.DEEPSEEK)
    )

    assert session.candidates == []
    assert session.legacy is not None
    assert session.legacy.address == "7 Cedar Ct"
    assert store.lookups == ["7 Cedar Ct"]


def test_gateway_failure_is_wrapped_and_nothing_is_saved() -> None:
    gateway = FakeExtractionGateway(error=ConnectionError("network unreachable"))
    runner, pending = _runner(gateway)

    with pytest.raises(ExtractionFailedError):
        asyncio.run(
            runner.start_text_import("text", DocumentType.MLS_LISTING, "", AIProvider.DEEPSEEK)
        )

    assert not pending.has_pending
    assert not runner.is_processing
    assert runner.progress.error is not None
    assert "network unreachable" in runner.progress.error


def test_second_import_is_refused_while_one_runs() -> None:
    gateway = FakeExtractionGateway([make_result("1 Elm St")], delay=0.05)
    runner, _ = _runner(gateway)

    async def run() -> tuple[ImportSession, BaseException | None]:
        first = asyncio.create_task(
            runner.start_text_import("one", DocumentType.MLS_LISTING, "", AIProvider.DEEPSEEK)
        )
        await asyncio.sleep(0)
        error: BaseException | None = None
        try:
            await runner.start_text_import("two", DocumentType.MLS_LISTING, "", AIProvider.DEEPSEEK)
        except ImportAlreadyRunningError as exc:
            error = exc
        return await first, error

    session, error = asyncio.run(run())

    assert session.file_name == "pasted-text.txt"
    assert isinstance(error, ImportAlreadyRunningError)
    assert str(error).startswith("Un import est déjà en cours")
    assert len(gateway.requests) == 1


def test_spawned_import_outlives_the_caller() -> None:
    gateway = FakeExtractionGateway([make_result("1 Elm St")], delay=0.01)
    runner, pending = _runner(gateway)

    async def run() -> ImportSession:
        task = runner.spawn(
            runner.start_text_import("text", DocumentType.MLS_LISTING, "", AIProvider.DEEPSEEK)
        )
        return await task

    session = asyncio.run(run())

    assert pending.pending_session is session


def test_listeners_run_after_successful_extraction() -> None:
    gateway = FakeExtractionGateway([make_result("1 Elm St")])
    runner, _ = _runner(gateway)
    seen: list[str] = []

    def sync_listener(session: ImportSession) -> None:
        seen.append(f"sync:{session.id}")

    async def async_listener(session: ImportSession) -> None:
        seen.append(f"async:{session.id}")

    def broken_listener(session: ImportSession) -> None:
        raise RuntimeError("credits service down")

    runner.add_listener(broken_listener)
    runner.add_listener(sync_listener)
    runner.add_listener(async_listener)

    session = asyncio.run(
        runner.start_text_import("text", DocumentType.MLS_LISTING, "", AIProvider.DEEPSEEK)
    )

    assert seen == [f"sync:{session.id}", f"async:{session.id}"]

    runner.remove_listener(sync_listener)
    asyncio.run(runner.start_text_import("text", DocumentType.MLS_LISTING, "", AIProvider.DEEPSEEK))

    assert len(seen) == 3


def test_batch_import_creates_then_merges_into_target() -> None:
    gateway = FakeExtractionGateway(
        [
            make_result("10 Main St", legacy=True),
            make_result("10 Main St", legacy=True),
            make_result(None, legacy=True),
        ]
    )
    store = FakePropertyStore()
    runner, _ = _runner(gateway, store)
    files = [
        BatchFile(upload=make_upload("listing.pdf"), document_type=DocumentType.MLS_LISTING),
        BatchFile(upload=make_upload("role.pdf"), document_type=DocumentType.ROLE_FONCIER),
        BatchFile(upload=make_upload("tax.pdf"), document_type=DocumentType.ROLE_TAXE),
    ]

    progress = asyncio.run(
        runner.start_batch_import(
            files, merge_mode=MergeMode.NEW, selected_property_id=None, credentials=_CREDENTIALS
        )
    )

    assert progress.error is None
    assert progress.processed_files == 3
    assert progress.completed_files == ["listing.pdf", "role.pdf", "tax.pdf"]
    assert progress.target_property_id == "new-1"
    assert not progress.duplicate_detected
    assert [target for target, _ in store.merged] == ["new-1", "new-1"]
    assert [request.document_type for request in gateway.requests] == [
        DocumentType.MLS_LISTING,
        DocumentType.ROLE_FONCIER,
        DocumentType.ROLE_TAXE,
    ]
    assert all(request.api_key == "sk-openai" for request in gateway.requests)


def test_batch_import_merges_first_file_into_duplicate() -> None:
    gateway = FakeExtractionGateway([make_result("10 Main St", legacy=True)])
    store = FakePropertyStore([ExistingProperty(id="p1", address="10 main st.")])
    runner, _ = _runner(gateway, store)

    progress = asyncio.run(
        runner.start_batch_import(
            [BatchFile(upload=make_upload(), document_type=DocumentType.MLS_LISTING)],
            merge_mode=MergeMode.NEW,
            selected_property_id=None,
            credentials=_CREDENTIALS,
        )
    )

    assert progress.duplicate_detected
    assert progress.duplicate_address == "10 main st."
    assert progress.target_property_id == "p1"
    assert store.created == []
    assert [target for target, _ in store.merged] == ["p1"]


def test_batch_import_into_existing_property() -> None:
    gateway = FakeExtractionGateway([make_result("10 Main St", legacy=True)])
    store = FakePropertyStore()
    runner, _ = _runner(gateway, store)

    progress = asyncio.run(
        runner.start_batch_import(
            [BatchFile(upload=make_upload(), document_type=DocumentType.ROLE_TAXE)],
            merge_mode=MergeMode.EXISTING,
            selected_property_id="p9",
            credentials=_CREDENTIALS,
        )
    )

    assert progress.target_property_id == "p9"
    assert [target for target, _ in store.merged] == ["p9"]
    assert store.lookups == []


def test_batch_import_can_be_cancelled_between_files() -> None:
    gateway = FakeExtractionGateway([make_result("10 Main St", legacy=True)], delay=0.05)
    runner, _ = _runner(gateway)
    files = [
        BatchFile(upload=make_upload(f"file-{index}.pdf"), document_type=DocumentType.MLS_LISTING)
        for index in range(3)
    ]

    async def run() -> None:
        task = asyncio.create_task(
            runner.start_batch_import(
                files, merge_mode=MergeMode.NEW, selected_property_id=None, credentials=_CREDENTIALS
            )
        )
        await asyncio.sleep(0.01)
        runner.cancel_import()
        await task

    asyncio.run(run())

    progress = runner.progress
    assert progress.processed_files == 1
    assert progress.error == "Import annulé"
    assert not progress.is_processing


def test_batch_import_failure_is_reported_in_progress() -> None:
    gateway = FakeExtractionGateway(error=TimeoutError("provider timeout"))
    runner, _ = _runner(gateway)

    progress = asyncio.run(
        runner.start_batch_import(
            [BatchFile(upload=make_upload(), document_type=DocumentType.MLS_LISTING)],
            merge_mode=MergeMode.NEW,
            selected_property_id=None,
            credentials=_CREDENTIALS,
        )
    )

    assert progress.error == "Échec du traitement par lots"
    assert progress.processed_files == 0
    assert not progress.is_processing


def test_batch_import_needs_a_store() -> None:
    runner, _ = _runner(FakeExtractionGateway(), with_store=False)

    with pytest.raises(PropertyImportError):
        asyncio.run(
            runner.start_batch_import(
                [], merge_mode=MergeMode.NEW, selected_property_id=None, credentials=_CREDENTIALS
            )
        )


def test_clear_state_resets_finished_progress() -> None:
    gateway = FakeExtractionGateway(error=TimeoutError("provider timeout"))
    runner, _ = _runner(gateway)
    asyncio.run(
        runner.start_batch_import(
            [BatchFile(upload=make_upload(), document_type=DocumentType.MLS_LISTING)],
            merge_mode=MergeMode.NEW,
            selected_property_id=None,
            credentials=_CREDENTIALS,
        )
    )
    assert runner.progress.error is not None

    runner.clear_state()

    assert runner.progress.error is None
    assert runner.progress.total_files == 0
    assert runner.progress.completed_files == []


def test_clear_state_keeps_running_progress() -> None:
    runner, _ = _runner(FakeExtractionGateway([make_result("1 Elm St")], delay=0.02))

    async def run() -> tuple[bool, str | None]:
        task = asyncio.create_task(
            runner.start_single_import(
                make_upload("listing.pdf"),
                DocumentType.MLS_LISTING,
                "sk-openai",
                AIProvider.OPENAI,
                None,
            )
        )
        await asyncio.sleep(0)
        runner.clear_state()
        still_running = runner.is_processing
        name = runner.progress.current_file_name
        await task
        return still_running, name

    still_running, name = asyncio.run(run())

    assert still_running is True
    assert name == "listing.pdf"

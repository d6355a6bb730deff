"""Steps of the reconciliation screen and the transitions between them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from propimport.domain.model import ImportSource


class ImportStep(IntEnum):
    SOURCE_SELECT = 0
    UPLOAD = 1
    REVIEW = 2
    DONE = 3


@dataclass(slots=True, frozen=True)
class SourceChosen:
    source: ImportSource


@dataclass(slots=True, frozen=True)
class ProcessSucceeded:
    pass


@dataclass(slots=True, frozen=True)
class CommitSucceeded:
    pass


@dataclass(slots=True, frozen=True)
class Cancelled:
    pass


@dataclass(slots=True, frozen=True)
class StepBack:
    pass


@dataclass(slots=True, frozen=True)
class StepForward:
    pass


type ImportEvent = SourceChosen | ProcessSucceeded | CommitSucceeded | Cancelled | StepBack | StepForward


@dataclass(slots=True, frozen=True)
class Rejected:
    reason: str


def _unexpected(step: ImportStep, event: ImportEvent) -> Rejected:
    return Rejected(reason=f"{type(event).__name__} is not allowed at {step.name}")


def transition(step: ImportStep, event: ImportEvent) -> ImportStep | Rejected:
    """Next step for ``event`` at ``step``, or why the event is refused."""

    match event:
        case SourceChosen(source=source):
            if step is not ImportStep.SOURCE_SELECT:
                return _unexpected(step, event)
            if source is not ImportSource.PDF:
                return Rejected(reason=f"Source {source} is not available")
            return ImportStep.UPLOAD
        case StepForward():
            # Later forward moves need their own guarded event.
            if step is ImportStep.SOURCE_SELECT:
                return ImportStep.UPLOAD
            return _unexpected(step, event)
        case ProcessSucceeded():
            return ImportStep.REVIEW if step is ImportStep.UPLOAD else _unexpected(step, event)
        case CommitSucceeded():
            return ImportStep.DONE if step is ImportStep.REVIEW else _unexpected(step, event)
        case Cancelled():
            if step in (ImportStep.UPLOAD, ImportStep.REVIEW):
                return ImportStep.SOURCE_SELECT
            return _unexpected(step, event)
        case StepBack():
            if step in (ImportStep.UPLOAD, ImportStep.REVIEW):
                return ImportStep(step - 1)
            return _unexpected(step, event)


def parse_step_param(raw: str | int | None) -> ImportStep | None:
    """Parse a ``step`` query parameter; anything but 0..3 is ignored."""

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        text = raw.strip()
        if not (text.isascii() and text.isdigit()):
            return None
        raw = int(text)
    try:
        return ImportStep(raw)
    except ValueError:
        return None

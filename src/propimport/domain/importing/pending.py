"""Cross-navigation snapshot of an import waiting for review."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from propimport.domain.importing.state_machine import ImportStep
    from propimport.domain.model import ImportSession

log = getLogger(__name__)


@dataclass(slots=True)
class PendingImportState:
    """In-memory pending session plus the step it belongs to.

    The runner is the only writer of ``save_pending_session``. The controller
    reads it once on mount and clears it after a commit or a cancel. Nothing
    is persisted: a process restart loses the snapshot.
    """

    pending_session: ImportSession | None = None
    pending_step: ImportStep | None = None

    @property
    def has_pending(self) -> bool:
        return self.pending_session is not None and self.pending_step is not None

    def save_pending_session(self, session: ImportSession, step: ImportStep) -> None:
        log.debug(f"Saving pending import session {session.id} at step {step.name}")
        self.pending_session = session
        self.pending_step = step

    def clear_pending_session(self) -> None:
        self.pending_session = None
        self.pending_step = None

    def restore(self) -> tuple[ImportSession, ImportStep] | None:
        """Return the pending session and step, leaving the snapshot in place."""

        if self.pending_session is None or self.pending_step is None:
            return None
        return self.pending_session, self.pending_step

"""Session-scoped follow-up controller.

A ``FollowUpSession`` owns everything that is mutable for one customer in one
user session: the current note snapshot (and the timeline derived from it),
the set of acknowledged notification keys and the customer directory. The
engine functions it calls are pure.

Concurrency model: cooperative (asyncio). While a fetch or a submission is
outstanding the session is "loading" - any further fetch or submit raises
``SessionBusyError``. If the session is closed while a fetch is outstanding,
the late result is discarded and never touches session state.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable

import structlog

from followup.config.settings import get_settings
from followup.engine import (
    classify_notes,
    derive_timeline,
    find_already_shared,
    gate_share,
    scan,
    search_notes,
    validate,
)
from followup.errors import (
    DraftRejectedError,
    FetchError,
    SessionBusyError,
    SessionClosedError,
)
from followup.models import ClassifiedNote, Customer, Note, NoteDraft, Notification, Timeline
from followup.store import NoteStoreClient
from followup.time_utils import reference_now

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    """Classified notes and derived timeline from one successful fetch."""
    notes: tuple[ClassifiedNote, ...]
    timeline: Timeline
    fetched_at: datetime | None = None

    @classmethod
    def empty(cls) -> "SessionSnapshot":
        return cls.from_notes([])

    @classmethod
    def from_notes(
        cls, notes: list[Note | ClassifiedNote], fetched_at: datetime | None = None
    ) -> "SessionSnapshot":
        classified = classify_notes(notes)
        return cls(
            notes=tuple(classified),
            timeline=derive_timeline(classified),
            fetched_at=fetched_at,
        )


class FollowUpSession:
    """Follow-up state for one customer within one user session."""

    def __init__(self, customer_id: str, client: NoteStoreClient):
        self.customer_id = customer_id
        self.client = client
        self.acknowledged: set[str] = set()
        self.directory: tuple[Customer, ...] = ()
        self.snapshot = SessionSnapshot.empty()
        self.last_error: FetchError | None = None
        self._loading = False
        self._closed = False

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def notes(self) -> tuple[ClassifiedNote, ...]:
        return self.snapshot.notes

    @property
    def timeline(self) -> Timeline:
        return self.snapshot.timeline

    def _ensure_ready(self) -> None:
        if self._closed:
            raise SessionClosedError(f"Session for customer {self.customer_id} is closed")
        if self._loading:
            raise SessionBusyError(f"A request is already in progress for customer {self.customer_id}")

    # =========================================================================
    # Fetching
    # =========================================================================

    async def refresh(self) -> SessionSnapshot:
        """Fetch the customer's notes and rebuild the snapshot.

        Raises:
            SessionBusyError: If a fetch is already outstanding.
            SessionClosedError: If the session is (or gets) closed.
            FetchError: If the store could not be read; the note set is then empty.
        """
        self._ensure_ready()
        self._loading = True
        try:
            notes = await self.client.fetch_notes(self.customer_id)
        except FetchError as e:
            if self._closed:
                logger.info("late_fetch_discarded", customer_id=self.customer_id, failed=True)
                raise SessionClosedError("Session closed during fetch") from e
            self.snapshot = SessionSnapshot.empty()
            self.last_error = e
            logger.error("session_refresh_failed", customer_id=self.customer_id, error=str(e))
            raise
        finally:
            self._loading = False

        if self._closed:
            logger.info("late_fetch_discarded", customer_id=self.customer_id, notes=len(notes))
            raise SessionClosedError("Session closed during fetch")

        self.snapshot = SessionSnapshot.from_notes(notes, fetched_at=reference_now())
        self.last_error = None
        logger.info(
            "session_refreshed",
            customer_id=self.customer_id,
            notes=len(self.snapshot.notes),
            current_stage=self.snapshot.timeline.current_stage.value,
        )
        return self.snapshot

    async def load_directory(self) -> tuple[Customer, ...]:
        """Fetch the customer directory for the share picker.

        Raises:
            SessionBusyError: If a fetch is already outstanding.
            SessionClosedError: If the session is (or gets) closed.
            FetchError: If the directory could not be read.
        """
        self._ensure_ready()
        self._loading = True
        try:
            customers = await self.client.fetch_customers()
        except FetchError as e:
            if self._closed:
                raise SessionClosedError("Session closed during fetch") from e
            raise
        finally:
            self._loading = False

        if self._closed:
            raise SessionClosedError("Session closed during fetch")

        self.directory = tuple(customers)
        return self.directory

    # =========================================================================
    # Reminders
    # =========================================================================

    def pending_notifications(self, today: date | None = None) -> list[Notification]:
        """Due reminders not yet acknowledged in this session."""
        return scan(self.snapshot.notes, self.acknowledged, today)

    def acknowledge(self, key: str) -> None:
        """Dismiss a notification for the rest of the session."""
        self.acknowledged.add(key)
        logger.debug("notification_acknowledged", customer_id=self.customer_id, key=key)

    # =========================================================================
    # Sharing and search
    # =========================================================================

    def check_share(self, candidate_ids: list[str], exclude_note_id: str | None = None) -> list[str]:
        """Advisory check: which candidates were already shared."""
        return find_already_shared(self.snapshot.notes, candidate_ids, exclude_note_id)

    def search(self, query: str) -> list[ClassifiedNote]:
        """Notes matching a free-text query."""
        return search_notes(self.snapshot.notes, query)

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit(
        self,
        draft: NoteDraft,
        override_duplicate_share: bool = False,
        today: date | None = None,
    ) -> Note | None:
        """Validate, gate and submit a draft, then refresh the snapshot.

        Local checks run before any I/O. The draft is never modified, so the
        caller can correct and resubmit it after any failure.

        Raises:
            SessionBusyError: If a fetch or another submission is outstanding.
            SessionClosedError: If the session is closed.
            DraftRejectedError: If validation fails.
            DuplicateShareWarning: If candidates were already shared and the
                override flag is not set.
            SubmissionError: If the store rejects the note.
        """
        self._ensure_ready()
        if draft.customer_id != self.customer_id:
            raise ValueError(
                f"Draft for customer {draft.customer_id} submitted to session of {self.customer_id}"
            )

        errors = validate(draft, today=today)
        if errors:
            raise DraftRejectedError(errors)

        candidate_ids = gate_share(self.snapshot.notes, draft, override=override_duplicate_share)

        self._loading = True
        try:
            created = await self.client.submit_note(draft, candidate_ids)
        finally:
            self._loading = False

        if self._closed:
            return created
        try:
            await self.refresh()
        except (FetchError, SessionBusyError, SessionClosedError) as e:
            # The note exists in the store; only the local view is stale
            logger.warning("refresh_after_submit_failed", customer_id=self.customer_id, error=str(e))
        return created

    def close(self) -> None:
        """Tear the session down; outstanding fetch results will be discarded."""
        self._closed = True
        logger.debug("session_closed", customer_id=self.customer_id)


@dataclass
class SessionRegistry:
    """Isolated follow-up sessions per (session id, customer id).

    Sessions are kept in least-recently-used order. Every lookup closes and
    drops sessions idle for longer than ``idle_seconds``, then the least
    recently used ones beyond ``max_sessions``. A session with a request
    outstanding is never evicted.
    """
    client: NoteStoreClient
    max_sessions: int | None = None
    idle_seconds: float | None = None
    clock: Callable[[], float] = time.monotonic
    sessions: OrderedDict = field(default_factory=OrderedDict)
    last_used: dict[tuple[str, str], float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        settings = get_settings()
        if self.max_sessions is None:
            self.max_sessions = settings.max_sessions
        if self.idle_seconds is None:
            self.idle_seconds = settings.session_idle_seconds

    def get(self, session_id: str, customer_id: str) -> FollowUpSession:
        """Get or create the session for a customer."""
        now = self.clock()
        key = (session_id, customer_id)
        self._sweep_idle(now, keep=key)

        session = self.sessions.get(key)
        if session is None or session.closed:
            session = FollowUpSession(customer_id, self.client)
            self.sessions[key] = session
        self.sessions.move_to_end(key)
        self.last_used[key] = now

        self._enforce_limit(keep=key)
        return session

    def close(self, session_id: str) -> int:
        """Close every customer session of a user session; returns how many."""
        keys = [key for key in self.sessions if key[0] == session_id]
        for key in keys:
            self._drop(key)
        return len(keys)

    def _drop(self, key: tuple[str, str]) -> None:
        self.sessions.pop(key).close()
        self.last_used.pop(key, None)

    def _sweep_idle(self, now: float, keep: tuple[str, str]) -> None:
        expired = [
            key
            for key, session in self.sessions.items()
            if key != keep
            and not session.loading
            and now - self.last_used.get(key, now) > self.idle_seconds
        ]
        for key in expired:
            self._drop(key)
        if expired:
            logger.info("idle_sessions_evicted", count=len(expired))

    def _enforce_limit(self, keep: tuple[str, str]) -> None:
        excess = len(self.sessions) - self.max_sessions
        if excess <= 0:
            return
        evictable = [
            key for key, session in self.sessions.items()
            if key != keep and not session.loading
        ]
        evicted = evictable[:excess]
        for key in evicted:
            self._drop(key)
        logger.info("sessions_evicted_over_limit", count=len(evicted), limit=self.max_sessions)

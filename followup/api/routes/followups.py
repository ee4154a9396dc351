"""
Follow-up Routes

Session-scoped endpoints over one customer's follow-up notes. Every
(session id, customer id) pair has its own isolated note snapshot and
acknowledgement set.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from followup.api.deps import get_registry, get_session
from followup.api.schemas import (
    AckResponse,
    DirectoryPageResponse,
    NoteListResponse,
    NotificationListResponse,
    SessionClosedResponse,
    ShareCheckRequest,
    ShareCheckResponse,
    SubmitNoteRequest,
    SubmitNoteResponse,
    TimelineResponse,
)
from followup.engine import describe_customers, paginate, search_customers
from followup.errors import (
    DraftRejectedError,
    DuplicateShareWarning,
    FetchError,
    SessionBusyError,
    SessionClosedError,
    SubmissionError,
)
from followup.session import FollowUpSession, SessionRegistry

router = APIRouter()

CUSTOMER_PATH = "/sessions/{session_id}/customers/{customer_id}"


def _timeline_response(session: FollowUpSession) -> TimelineResponse:
    snapshot = session.snapshot
    return TimelineResponse(
        customer_id=session.customer_id,
        current_stage=snapshot.timeline.current_stage,
        note_count=len(snapshot.notes),
        stages=list(snapshot.timeline.stages),
        fetched_at=snapshot.fetched_at,
    )


def _session_conflict(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


# =============================================================================
# Snapshot
# =============================================================================

@router.post(CUSTOMER_PATH + "/refresh", response_model=TimelineResponse)
async def refresh(session: FollowUpSession = Depends(get_session)) -> TimelineResponse:
    """
    Fetch the customer's notes from the store and rebuild the timeline.
    """
    try:
        await session.refresh()
    except (SessionBusyError, SessionClosedError) as e:
        raise _session_conflict(e)
    except FetchError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return _timeline_response(session)


@router.get(CUSTOMER_PATH + "/timeline", response_model=TimelineResponse)
async def get_timeline(session: FollowUpSession = Depends(get_session)) -> TimelineResponse:
    """
    Get the timeline of the last fetched snapshot.
    """
    return _timeline_response(session)


@router.get(CUSTOMER_PATH + "/notes", response_model=NoteListResponse)
async def list_notes(
    q: Optional[str] = Query(default=None, description="Free-text filter"),
    session: FollowUpSession = Depends(get_session),
) -> NoteListResponse:
    """
    List the classified notes of the last fetched snapshot.
    """
    notes = session.search(q) if q else list(session.notes)
    return NoteListResponse(
        customer_id=session.customer_id,
        notes=notes,
        total_count=len(session.notes),
    )


# =============================================================================
# Reminders
# =============================================================================

@router.get(CUSTOMER_PATH + "/reminders", response_model=NotificationListResponse)
async def list_reminders(
    today: Optional[date] = Query(default=None, description="Override today's date"),
    session: FollowUpSession = Depends(get_session),
) -> NotificationListResponse:
    """
    Reminders due today or tomorrow that were not acknowledged in this session.
    """
    return NotificationListResponse(
        customer_id=session.customer_id,
        notifications=session.pending_notifications(today),
    )


@router.post(CUSTOMER_PATH + "/reminders/{key}/ack", response_model=AckResponse)
async def acknowledge_reminder(
    key: str,
    session: FollowUpSession = Depends(get_session),
) -> AckResponse:
    """
    Dismiss a reminder notification for the rest of the session.
    """
    session.acknowledge(key)
    return AckResponse(key=key)


# =============================================================================
# Sharing
# =============================================================================

@router.post(CUSTOMER_PATH + "/share-check", response_model=ShareCheckResponse)
async def check_share(
    request: ShareCheckRequest,
    session: FollowUpSession = Depends(get_session),
) -> ShareCheckResponse:
    """
    Advisory check of picked customers against the whole share history.
    """
    already_shared = session.check_share(request.candidate_ids, request.exclude_note_id)
    return ShareCheckResponse(
        customer_id=session.customer_id,
        already_shared=already_shared,
        already_shared_names=describe_customers(already_shared, session.directory),
    )


@router.get(CUSTOMER_PATH + "/directory", response_model=DirectoryPageResponse)
async def search_directory(
    q: Optional[str] = Query(default=None, description="Customer id or name"),
    page: int = Query(default=1, ge=1, description="1-indexed page"),
    session: FollowUpSession = Depends(get_session),
) -> DirectoryPageResponse:
    """
    Search the customer directory for the share picker.

    The directory is fetched on first use and kept for the session.
    """
    if not session.directory:
        try:
            await session.load_directory()
        except (SessionBusyError, SessionClosedError) as e:
            raise _session_conflict(e)
        except FetchError as e:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    matches = search_customers(session.directory, q or "")
    result = paginate(matches, page)
    return DirectoryPageResponse(
        customers=result.items,
        page=result.page,
        total_pages=result.total_pages,
        total_items=result.total_items,
    )


# =============================================================================
# Submission
# =============================================================================

@router.post(
    CUSTOMER_PATH + "/notes",
    response_model=SubmitNoteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_note(
    request: SubmitNoteRequest,
    session: FollowUpSession = Depends(get_session),
) -> SubmitNoteResponse:
    """
    Validate, share-check and submit a new note.

    - 422 with field errors when validation fails
    - 409 when profiles were already shared (resend with override_duplicate_share)
    - 502 when the store rejects the note
    """
    draft = request.to_draft(session.customer_id)

    try:
        created = await session.submit(
            draft, override_duplicate_share=request.override_duplicate_share
        )
    except DraftRejectedError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[error.model_dump() for error in e.errors],
        )
    except DuplicateShareWarning as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(e),
                "already_shared": e.already_shared,
                "already_shared_names": describe_customers(e.already_shared, session.directory),
            },
        )
    except (SessionBusyError, SessionClosedError) as e:
        raise _session_conflict(e)
    except SubmissionError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"message": str(e), "field_errors": e.field_errors},
        )

    return SubmitNoteResponse(
        customer_id=session.customer_id,
        note_id=created.id if created else None,
        timeline=_timeline_response(session),
    )


# =============================================================================
# Session teardown
# =============================================================================

@router.delete("/sessions/{session_id}", response_model=SessionClosedResponse)
async def close_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> SessionClosedResponse:
    """
    Close every customer session of a user session and drop its state.
    """
    closed = registry.close(session_id)
    return SessionClosedResponse(session_id=session_id, closed_customers=closed)

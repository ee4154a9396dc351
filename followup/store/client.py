"""Async client for the REST note store.

Endpoints:
- GET  /followup/{customer_id}/  -> paginated ({"results": [...], "next": url}) or flat list of notes
- POST /followup/{customer_id}/  -> create a note from form fields
- GET  /customers/               -> customer directory

httpx errors never escape this module: reads raise ``FetchError`` and writes
raise ``SubmissionError``.
"""

import asyncio
import json
from typing import Any

import httpx
import structlog

from followup.config.settings import Settings, get_settings
from followup.engine.registry import accepts_associated_customers, get_field_spec
from followup.engine.validation import parse_amount
from followup.errors import FetchError, SubmissionError
from followup.models import Customer, Note, NoteDraft

logger = structlog.get_logger(__name__)

NOTE_TYPE = "employee_customer"
RETRY_STATUS_CODES = {502, 503, 504}
MAX_PAGES = 100


def build_submission_form(
    draft: NoteDraft,
    associated_customer_ids: list[str] | None = None,
) -> dict[str, str]:
    """Build the form fields for a note submission.

    Only the fields the draft's stage declares are included, besides the
    envelope fields every note carries.

    Args:
        draft: Validated draft.
        associated_customer_ids: Ids to submit; defaults to the draft's own.
    """
    spec = get_field_spec(draft.stage)
    ids = draft.associated_customer_ids if associated_customer_ids is None else associated_customer_ids
    if not accepts_associated_customers(draft.stage, draft.status):
        ids = []

    form = {
        "note_type": NOTE_TYPE,
        "customer_user_id": draft.customer_id,
        "note": draft.note.strip(),
        "section_heading": draft.stage.value,
        "reminder_date": draft.reminder_date.isoformat() if draft.reminder_date else "",
        "reminder_note": draft.reminder_note or "",
        "associated_customer_ids": json.dumps(list(ids)),
    }

    if spec.status_field:
        form[spec.status_field] = draft.status or ""
    if spec.status_note_field:
        form[spec.status_note_field] = draft.status_note or ""
    if spec.other_note_field:
        form[spec.other_note_field] = draft.other_note or ""
    if spec.declares("payment_amount"):
        amount = parse_amount(draft.payment_amount)
        if amount is not None:
            form["payment_amount"] = f"{amount:g}"
    if spec.declares("payment_note"):
        form["payment_note"] = draft.payment_note or ""
    for name in spec.attachment_fields:
        form[name] = draft.attachments.get(name, "")

    return form


def _error_detail(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class NoteStoreClient:
    """Client for the note store and customer directory.

    Usage:
        async with NoteStoreClient() as client:
            notes = await client.fetch_notes("CUST001")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.settings.store_token:
            headers["Authorization"] = f"Bearer {self.settings.store_token}"
        return headers

    @property
    def http(self) -> httpx.AsyncClient:
        """The underlying httpx client, created on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.store_base_url,
                headers=self._headers(),
                timeout=self.settings.request_timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "NoteStoreClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # =========================================================================
    # Reads
    # =========================================================================

    async def _get_json(self, url: str) -> Any:
        """GET a URL, retrying transient failures, and decode the JSON body."""
        attempts = self.settings.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                response = await self.http.get(url)
                if response.status_code in RETRY_STATUS_CODES and attempt < attempts:
                    logger.warning("store_get_retry", url=url, status=response.status_code, attempt=attempt)
                    await asyncio.sleep(self.settings.retry_delay_seconds)
                    continue
                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status in (401, 403):
                    message = "Authentication with the note store failed"
                else:
                    detail = _error_detail(e.response)
                    message = (
                        detail.get("detail") if isinstance(detail, dict) and detail.get("detail")
                        else f"Note store returned {status}"
                    )
                logger.error("store_get_failed", url=url, status=status)
                raise FetchError(message, status_code=status, url=url) from e

            except httpx.TransportError as e:
                if attempt < attempts:
                    logger.warning("store_get_retry", url=url, error=str(e), attempt=attempt)
                    await asyncio.sleep(self.settings.retry_delay_seconds)
                    continue
                logger.error("store_unreachable", url=url, error=str(e))
                raise FetchError(f"Note store unreachable: {e}", url=url) from e

            except ValueError as e:
                logger.error("store_invalid_json", url=url)
                raise FetchError("Note store returned invalid JSON", url=url) from e

        raise FetchError("Note store request failed", url=url)

    async def _get_records(self, url: str) -> list[dict]:
        """Collect records from a flat or paginated listing."""
        records: list[dict] = []
        next_url: str | None = url
        pages = 0

        while next_url and pages < MAX_PAGES:
            data = await self._get_json(next_url)
            pages += 1
            if isinstance(data, list):
                records.extend(data)
                break
            if not isinstance(data, dict):
                raise FetchError("Unexpected response shape from note store", url=next_url)
            results = data.get("results")
            if isinstance(results, list):
                records.extend(results)
            next_url = data.get("next")

        return [record for record in records if isinstance(record, dict)]

    async def fetch_notes(self, customer_id: str) -> list[Note]:
        """Fetch every follow-up note of a customer.

        Raises:
            FetchError: On network, auth or response-shape failures.
        """
        records = await self._get_records(f"/followup/{customer_id}/")
        notes = [Note.from_record(record) for record in records]
        logger.info("notes_fetched", customer_id=customer_id, count=len(notes))
        return notes

    async def fetch_customers(self) -> list[Customer]:
        """Fetch the customer directory.

        Raises:
            FetchError: On network, auth or response-shape failures.
        """
        records = await self._get_records("/customers/")
        customers = [Customer.from_record(record) for record in records]
        logger.info("customers_fetched", count=len(customers))
        return customers

    # =========================================================================
    # Writes
    # =========================================================================

    async def submit_note(
        self,
        draft: NoteDraft,
        associated_customer_ids: list[str] | None = None,
    ) -> Note | None:
        """Submit a note to the store.

        Returns:
            The created note when the store echoes it back, else None.

        Raises:
            SubmissionError: If the store rejects the note or is unreachable.
        """
        url = f"/followup/{draft.customer_id}/"
        form = build_submission_form(draft, associated_customer_ids)
        # Multipart body: every field goes as a form-data part
        parts = {name: (None, value) for name, value in form.items()}

        try:
            response = await self.http.post(url, files=parts)
            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            detail = _error_detail(e.response)
            field_errors: dict[str, list[str]] = {}
            if isinstance(detail, dict):
                for key, value in detail.items():
                    field_errors[key] = [str(v) for v in value] if isinstance(value, list) else [str(value)]
                details = "; ".join(f"{k}: {', '.join(v)}" for k, v in field_errors.items())
                message = f"Failed to create note. Status: {status}. Details: {details}"
            else:
                message = f"Failed to create note. Status: {status}"
            logger.error("note_submit_failed", customer_id=draft.customer_id, status=status)
            raise SubmissionError(message, status_code=status, field_errors=field_errors) from e

        except httpx.TransportError as e:
            logger.error("note_submit_unreachable", customer_id=draft.customer_id, error=str(e))
            raise SubmissionError(f"Failed to create note: {e}") from e

        logger.info(
            "note_submitted",
            customer_id=draft.customer_id,
            stage=draft.stage.value,
            status=response.status_code,
        )
        body = _error_detail(response)
        if isinstance(body, dict) and body.get("id") is not None:
            return Note.from_record(body)
        return None

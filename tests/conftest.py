"""Pytest configuration and fixtures."""

import asyncio
from datetime import date

import httpx
import pytest

from followup.config.settings import Settings
from followup.engine import classify_notes
from followup.models import Note, NoteDraft, Stage
from followup.store import NoteStoreClient


@pytest.fixture
def today() -> date:
    """Fixed 'today' in the reference timezone."""
    return date(2024, 6, 10)


@pytest.fixture
def make_note():
    """Factory building a raw note from a store-shaped record."""

    def _make(note_id: str, **record) -> Note:
        record.setdefault("customer_user_id", "CUST001")
        return Note.from_record({"id": note_id, **record})

    return _make


@pytest.fixture
def share_record():
    """Factory for a Profile Status / profiles_shared store record."""

    def _record(note_id: str, customer_ids: list[str], created_at: str | None = None) -> dict:
        return {
            "id": note_id,
            "customer_user_id": "CUST001",
            "section_heading": Stage.PROFILE_STATUS.value,
            "profile_status": "profiles_shared",
            "profile_status_note": "Shared profiles",
            "associated_customer_ids": customer_ids,
            "created_at": created_at,
        }

    return _record


@pytest.fixture
def sample_records() -> list[dict]:
    """A customer's note history as returned by the note store."""
    return [
        {
            "id": "1",
            "customer_user_id": "CUST001",
            "section_heading": "General Note",
            "note": "First contact with the family",
            "created_at": "2024-06-01T10:00:00+05:30",
        },
        {
            "id": "2",
            "customer_user_id": "CUST001",
            "section_heading": "Call Status",
            "call_status": "call_completed",
            "call_status_note": "Discussed preferences",
            "reminder_date": "2024-06-10",
            "reminder_note": "Call back about photos",
            "created_at": "2024-06-03T12:30:00+05:30",
        },
        {
            "id": "3",
            "customer_user_id": "CUST001",
            "section_heading": "Profile Status",
            "profile_status": "profiles_shared",
            "profile_status_note": "Sent two profiles",
            "associated_customer_ids": "[\"CUST204\", \"CUST318\"]",
            "reminder_date": "2024-06-11",
            "reminder_note": "Ask for feedback",
            "created_at": "2024-06-05T09:15:00Z",
        },
        {
            "id": "4",
            "customer_user_id": "CUST001",
            "payment_amount": "15000",
            "payment_note": "Gold package",
            "reminder_date": "2024-06-20",
            "reminder_note": "Send receipt",
            "created_at": "2024-06-07T16:00:00+05:30",
        },
    ]


@pytest.fixture
def sample_notes(sample_records) -> list[Note]:
    """Raw notes built from the sample records."""
    return [Note.from_record(record) for record in sample_records]


@pytest.fixture
def classified_notes(sample_notes):
    """Sample notes after classification."""
    return classify_notes(sample_notes)


@pytest.fixture
def valid_draft() -> NoteDraft:
    """A Call Status draft that passes validation."""
    return NoteDraft(
        customer_id="CUST001",
        stage=Stage.CALL_STATUS,
        note="Spoke to the mother",
        status="call_back_requested",
        status_note="Asked to call in the evening",
        reminder_date=date(2024, 6, 12),
        reminder_note="Evening call",
    )


class FakeStore:
    """In-memory note store served through httpx.MockTransport."""

    def __init__(self, records):
        self.records = list(records)
        self.posts = []
        self.fail_reads = False
        self.gate: asyncio.Event | None = None

    async def handler(self, request: httpx.Request) -> httpx.Response:
        if self.gate is not None:
            await self.gate.wait()
        if request.method == "POST":
            self.posts.append(request)
            record = {
                "id": str(100 + len(self.posts)),
                "customer_user_id": "CUST001",
                "section_heading": "General Note",
                "note": "new",
                "created_at": "2024-06-09T10:00:00",
            }
            self.records.append(record)
            return httpx.Response(201, json=record)
        if self.fail_reads:
            return httpx.Response(401)
        if request.url.path.endswith("/customers/"):
            return httpx.Response(200, json=[
                {"user_id": "CUST204", "full_name": "Asha Patil", "gender": 2},
                {"user_id": "CUST318", "full_name": "Meera Kulkarni", "gender": 2},
                {"user_id": "CUST401", "full_name": "Rohan Deshmukh", "gender": 1},
            ])
        return httpx.Response(200, json=self.records)

    def client(self) -> NoteStoreClient:
        settings = Settings(store_base_url="http://store.test/api", max_retries=0)
        return NoteStoreClient(settings=settings, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def store(sample_records) -> FakeStore:
    """Fake note store seeded with the sample history."""
    return FakeStore(sample_records)

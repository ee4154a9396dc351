"""Unit tests for the note store client."""

import json
from datetime import date

import httpx
import pytest

from followup.config.settings import Settings
from followup.engine import STAGE_ORDER, get_field_spec
from followup.errors import FetchError, SubmissionError
from followup.models import NoteDraft, Stage
from followup.store import NoteStoreClient, build_submission_form

BASE_URL = "http://store.test/api"


def make_client(handler, **overrides) -> NoteStoreClient:
    settings = Settings(
        store_base_url=BASE_URL,
        store_token=overrides.pop("store_token", "secret"),
        max_retries=overrides.pop("max_retries", 1),
        retry_delay_seconds=0,
        **overrides,
    )
    return NoteStoreClient(settings=settings, transport=httpx.MockTransport(handler))


def form_fields(request: httpx.Request) -> dict[str, str]:
    """Decode a multipart body built from (None, value) parts."""
    boundary = request.headers["content-type"].split("boundary=")[1].encode()
    fields = {}
    for part in request.read().split(b"--" + boundary):
        if b'name="' not in part:
            continue
        header, _, body = part.partition(b"\r\n\r\n")
        name = header.split(b'name="')[1].split(b'"')[0].decode()
        fields[name] = body.rstrip(b"\r\n").decode()
    return fields


class TestBuildSubmissionForm:
    """Tests for the submitted form fields."""

    def test_envelope_fields(self, valid_draft):
        form = build_submission_form(valid_draft)

        assert form["note_type"] == "employee_customer"
        assert form["customer_user_id"] == "CUST001"
        assert form["section_heading"] == "Call Status"
        assert form["reminder_date"] == "2024-06-12"
        assert form["reminder_note"] == "Evening call"
        assert form["associated_customer_ids"] == "[]"

    def test_only_declared_stage_fields(self, valid_draft):
        form = build_submission_form(valid_draft)

        assert form["call_status"] == "call_back_requested"
        assert form["call_status_note"] == "Asked to call in the evening"
        assert "call_status_other_note" in form
        assert "profile_status" not in form
        assert "payment_amount" not in form

    def test_empty_reminder(self):
        draft = NoteDraft(customer_id="CUST001", stage=Stage.GENERAL_NOTE, note=" Hello ")
        form = build_submission_form(draft)

        assert form["note"] == "Hello"
        assert form["reminder_date"] == ""
        assert form["reminder_note"] == ""

    def test_share_ids_as_json(self):
        draft = NoteDraft(
            customer_id="CUST001",
            stage=Stage.PROFILE_STATUS,
            status="profiles_shared",
            associated_customer_ids=["C1", "C2"],
        )
        form = build_submission_form(draft)
        assert json.loads(form["associated_customer_ids"]) == ["C1", "C2"]

    def test_ids_dropped_outside_share(self, valid_draft):
        draft = valid_draft.model_copy(update={"associated_customer_ids": ["C1"]})
        assert build_submission_form(draft)["associated_customer_ids"] == "[]"

    def test_payment_fields(self):
        draft = NoteDraft(
            customer_id="CUST001",
            stage=Stage.PAYMENT_DETAILS,
            note="Paid",
            payment_amount=" 1500.0 ",
            payment_note="Cash",
            attachments={"payment_image": "receipts/1.png"},
        )
        form = build_submission_form(draft)

        assert form["payment_amount"] == "1500"
        assert form["payment_note"] == "Cash"
        assert form["payment_image"] == "receipts/1.png"
        assert form["file_upload"] == ""

    @pytest.mark.parametrize("stage", STAGE_ORDER)
    def test_audio_part_sent_for_every_stage(self, stage):
        draft = NoteDraft(customer_id="CUST001", stage=stage, note="Recorded the call")
        form = build_submission_form(draft)

        for name in get_field_spec(stage).attachment_fields:
            assert form[name] == ""
        assert form["file_upload"] == ""

    def test_general_note_attachments(self):
        draft = NoteDraft(
            customer_id="CUST001",
            stage=Stage.GENERAL_NOTE,
            note="Family visit",
            attachments={"image": "visits/1.jpg", "file_upload": "calls/1.mp3"},
        )
        form = build_submission_form(draft)

        assert form["image"] == "visits/1.jpg"
        assert form["file_upload"] == "calls/1.mp3"

    def test_status_stage_attachments(self, valid_draft):
        draft = valid_draft.model_copy(
            update={"attachments": {"call_status_image": "shots/1.png", "file_upload": "calls/2.mp3"}}
        )
        form = build_submission_form(draft)

        assert form["note"] == "Spoke to the mother"
        assert form["call_status_image"] == "shots/1.png"
        assert form["file_upload"] == "calls/2.mp3"


class TestFetchNotes:
    """Tests for reading notes."""

    @pytest.mark.asyncio
    async def test_flat_list(self, sample_records):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=sample_records)

        async with make_client(handler) as client:
            notes = await client.fetch_notes("CUST001")

        assert [note.id for note in notes] == ["1", "2", "3", "4"]
        assert str(requests[0].url) == f"{BASE_URL}/followup/CUST001/"
        assert requests[0].headers["authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_follows_pages(self, sample_records):
        def handler(request):
            if request.url.params.get("page") == "2":
                return httpx.Response(200, json={"results": sample_records[2:], "next": None})
            return httpx.Response(
                200,
                json={"results": sample_records[:2], "next": f"{BASE_URL}/followup/CUST001/?page=2"},
            )

        async with make_client(handler) as client:
            notes = await client.fetch_notes("CUST001")

        assert len(notes) == 4

    @pytest.mark.asyncio
    async def test_no_token_no_auth_header(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json=[])

        async with make_client(handler, store_token=None) as client:
            assert await client.fetch_notes("CUST001") == []

        assert seen["auth"] is None

    @pytest.mark.asyncio
    async def test_auth_failure(self):
        async with make_client(lambda request: httpx.Response(401)) as client:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch_notes("CUST001")

        assert exc_info.value.status_code == 401
        assert "Authentication" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_detail_message(self):
        def handler(request):
            return httpx.Response(404, json={"detail": "Customer not found"})

        async with make_client(handler) as client:
            with pytest.raises(FetchError, match="Customer not found"):
                await client.fetch_notes("CUST999")

    @pytest.mark.asyncio
    async def test_retries_transient_status(self, sample_records):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(503)
            return httpx.Response(200, json=sample_records)

        async with make_client(handler) as client:
            notes = await client.fetch_notes("CUST001")

        assert len(calls) == 2
        assert len(notes) == 4

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(FetchError, match="unreachable"):
                await client.fetch_notes("CUST001")

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async with make_client(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(FetchError, match="invalid JSON"):
                await client.fetch_notes("CUST001")

    @pytest.mark.asyncio
    async def test_unexpected_shape(self):
        async with make_client(lambda request: httpx.Response(200, json="nope")) as client:
            with pytest.raises(FetchError, match="Unexpected"):
                await client.fetch_notes("CUST001")


class TestFetchCustomers:
    """Tests for the customer directory."""

    @pytest.mark.asyncio
    async def test_directory(self):
        def handler(request):
            assert request.url.path == "/api/customers/"
            return httpx.Response(200, json=[
                {"user_id": 204, "full_name": "Asha Patil", "gender": 2},
                {"user_id": 318, "full_name": "Rohan Deshmukh", "gender": 1},
            ])

        async with make_client(handler) as client:
            customers = await client.fetch_customers()

        assert [c.id for c in customers] == ["204", "318"]
        assert customers[1].gender.value == "male"


class TestSubmitNote:
    """Tests for creating notes."""

    @pytest.mark.asyncio
    async def test_posts_form(self, valid_draft):
        captured = {}

        def handler(request):
            captured["method"] = request.method
            captured["fields"] = form_fields(request)
            return httpx.Response(201, json={
                "id": 99,
                "customer_user_id": "CUST001",
                "section_heading": "Call Status",
                "call_status": "call_back_requested",
            })

        async with make_client(handler) as client:
            created = await client.submit_note(valid_draft)

        assert captured["method"] == "POST"
        assert captured["fields"]["note_type"] == "employee_customer"
        assert captured["fields"]["section_heading"] == "Call Status"
        assert captured["fields"]["reminder_date"] == "2024-06-12"
        assert created.id == "99"
        assert created.stage == Stage.CALL_STATUS

    @pytest.mark.asyncio
    async def test_empty_response_body(self, valid_draft):
        async with make_client(lambda request: httpx.Response(204)) as client:
            assert await client.submit_note(valid_draft) is None

    @pytest.mark.asyncio
    async def test_field_errors(self, valid_draft):
        def handler(request):
            return httpx.Response(400, json={"reminder_date": ["Date is in the past."]})

        async with make_client(handler) as client:
            with pytest.raises(SubmissionError) as exc_info:
                await client.submit_note(valid_draft)

        error = exc_info.value
        assert error.status_code == 400
        assert error.field_errors == {"reminder_date": ["Date is in the past."]}
        assert str(error) == (
            "Failed to create note. Status: 400. Details: reminder_date: Date is in the past."
        )

    @pytest.mark.asyncio
    async def test_non_json_error(self, valid_draft):
        async with make_client(lambda request: httpx.Response(500, text="oops")) as client:
            with pytest.raises(SubmissionError, match="Status: 500$"):
                await client.submit_note(valid_draft)

    @pytest.mark.asyncio
    async def test_post_not_retried(self, valid_draft):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        async with make_client(handler) as client:
            with pytest.raises(SubmissionError):
                await client.submit_note(valid_draft)

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_submits_given_ids(self):
        draft = NoteDraft(
            customer_id="CUST001",
            stage=Stage.PROFILE_STATUS,
            status="profiles_shared",
            associated_customer_ids=["C1", "C2"],
            reminder_date=date(2024, 6, 12),
            reminder_note="Ask",
        )
        captured = {}

        def handler(request):
            captured.update(form_fields(request))
            return httpx.Response(201, json={})

        async with make_client(handler) as client:
            await client.submit_note(draft, ["C1", "C2"])

        assert json.loads(captured["associated_customer_ids"]) == ["C1", "C2"]

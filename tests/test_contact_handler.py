"""
Tests for the contact submission pipeline.
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from contractor_api.core.request_context import RequestContext
from contractor_api.services.contact_handler import FAILURE_MESSAGE, SUCCESS_MESSAGE, submit_contact
from contractor_api.services.contact_store import StoreFailure


class RecordingStore:
    """Wraps a real store and counts save calls"""

    def __init__(self, inner):
        self.inner = inner
        self.saves = 0

    async def save(self, submission, context=None):
        self.saves += 1
        return await self.inner.save(submission, context)


async def test_scenario_a_primary_down_still_succeeds(offline_store, valid_payload):
    before = datetime.now(timezone.utc)

    result = await submit_contact(valid_payload, RequestContext(), offline_store)

    assert result.status_code == 200
    assert result.body["success"] is True
    assert result.body["message"] == SUCCESS_MESSAGE
    assert result.body["data"]["id"]
    submitted_at = datetime.fromisoformat(result.body["data"]["submittedAt"])
    assert before <= submitted_at <= datetime.now(timezone.utc) + timedelta(seconds=1)
    assert result.accepted
    listed = await offline_store.list()
    assert listed.records[0].id == result.body["data"]["id"]


async def test_primary_up_stores_in_mongo(store, connection, valid_payload):
    result = await submit_contact(valid_payload, RequestContext(), store)

    assert result.status_code == 200
    assert str(connection.collection.documents[0]["_id"]) == result.body["data"]["id"]


async def test_scenario_b_unknown_service_rejected_in_strict_mode(store, valid_payload):
    recording = RecordingStore(store)
    payload = dict(valid_payload, service="Plumbing")

    result = await submit_contact(payload, RequestContext(), recording)

    assert result.status_code == 400
    assert result.body["success"] is False
    assert result.body["message"] == "Please select a valid service"
    assert result.body["errors"] == [{"field": "service", "message": "Please select a valid service"}]
    assert recording.saves == 0


async def test_scenario_b_unknown_service_accepted_in_lenient_mode(store, valid_payload, caplog):
    payload = dict(valid_payload, service="Plumbing")

    with caplog.at_level(logging.WARNING):
        result = await submit_contact(payload, RequestContext(), store, strict_validation=False)

    assert result.status_code == 200
    assert result.record.service == "Plumbing"
    assert "accepting anyway" in caplog.text


async def test_scenario_c_missing_message(store, valid_payload):
    recording = RecordingStore(store)
    payload = dict(valid_payload)
    del payload["message"]

    result = await submit_contact(payload, RequestContext(), recording)

    assert result.status_code == 400
    assert result.body == {"success": False, "message": "Please fill in all required fields."}
    assert recording.saves == 0
    assert not result.accepted


@pytest.mark.parametrize("missing", ["name", "email", "service", "message"])
async def test_any_missing_required_field_never_touches_store(store, valid_payload, missing):
    recording = RecordingStore(store)
    payload = dict(valid_payload, **{missing: ""})

    result = await submit_contact(payload, RequestContext(), recording)

    assert result.status_code == 400
    assert recording.saves == 0


async def test_scenario_d_invalid_email(store, valid_payload):
    recording = RecordingStore(store)
    result = await submit_contact(dict(valid_payload, email="not-an-email"), RequestContext(), recording)

    assert result.status_code == 400
    assert result.body == {"success": False, "message": "Please enter a valid email address."}
    assert recording.saves == 0


@pytest.mark.parametrize("payload", [None, [], "text", 42])
async def test_non_object_body_counts_as_empty(store, payload):
    result = await submit_contact(payload, RequestContext(), store)
    assert result.status_code == 400
    assert result.body["message"] == "Please fill in all required fields."


async def test_store_failure_returns_apology(valid_payload):
    class FailingStore:
        async def save(self, submission, context=None):
            return StoreFailure("both tiers down")

    result = await submit_contact(valid_payload, RequestContext(), FailingStore())

    assert result.status_code == 500
    assert result.body == {"success": False, "message": FAILURE_MESSAGE}


async def test_unexpected_error_is_logged_and_hidden(valid_payload, caplog):
    class ExplodingStore:
        async def save(self, submission, context=None):
            raise RuntimeError("driver bug")

    context = RequestContext()
    with caplog.at_level(logging.ERROR):
        result = await submit_contact(valid_payload, context, ExplodingStore())

    assert result.status_code == 500
    assert result.body == {"success": False, "message": FAILURE_MESSAGE}
    assert context.request_id in caplog.text
    assert "driver bug" in caplog.text


async def test_unexpected_error_details_exposed_when_enabled(valid_payload):
    class ExplodingStore:
        async def save(self, submission, context=None):
            raise RuntimeError("driver bug")

    context = RequestContext()
    result = await submit_contact(valid_payload, context, ExplodingStore(), expose_error_details=True)

    assert result.body["requestId"] == context.request_id
    assert result.body["error"] == "driver bug"


async def test_message_text_is_never_logged(store, valid_payload, caplog):
    secret = "my door code is 4321, call me"
    with caplog.at_level(logging.DEBUG):
        await submit_contact(dict(valid_payload, message=secret), RequestContext(), store)
        await submit_contact(dict(valid_payload, message=secret, email="bad"), RequestContext(), store)

    assert secret not in caplog.text
    assert "[redacted" in caplog.text


async def test_every_transition_is_logged_with_one_correlation_id(store, valid_payload, caplog):
    context = RequestContext()
    with caplog.at_level(logging.INFO):
        await submit_contact(valid_payload, context, store)

    lines = [r.getMessage() for r in caplog.records if context.request_id in r.getMessage()]
    assert any("received" in line for line in lines)
    assert any("saved to MongoDB" in line for line in lines)
    assert any("completed" in line and "service=Civil Work" in line for line in lines)


async def test_stored_values_are_normalised(store, connection, valid_payload):
    payload = dict(valid_payload, name="  Jo  ", email="JO@X.COM", phone="", message="  please call me back soon  ")

    result = await submit_contact(payload, RequestContext(), store)

    assert result.status_code == 200
    document = connection.collection.documents[0]
    assert document["name"] == "Jo"
    assert document["email"] == "jo@x.com"
    assert document["phone"] is None
    assert document["message"] == "please call me back soon"
    assert document["status"] == "new"


@pytest.mark.parametrize("email", [" jo@x.com ", "jo@x.com\n"])
async def test_email_with_surrounding_whitespace_is_rejected(store, connection, valid_payload, email):
    result = await submit_contact(dict(valid_payload, email=email), RequestContext(), store)

    assert result.status_code == 400
    assert result.body["message"] == "Please enter a valid email address."
    assert connection.collection.documents == []

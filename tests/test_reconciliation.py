from decimal import Decimal

import pytest

from conftest import completed_event
from app.core.errors import BookingConflict, PayloadMalformed, StoreError
from app.schemas.stripe_events import CheckoutSessionCompleted, IgnoredEvent, parse_event
from app.services import reconciliation_service
from app.services.booking_service import find_by_provider_session_id, insert_paid_booking
from app.services.reconciliation_service import Outcome, minor_to_major, reconcile_checkout_completed


def test_parse_event_recognises_checkout_completed():
    event = parse_event(completed_event(session_id="sess_9", amount_total=4200))

    assert isinstance(event, CheckoutSessionCompleted)
    assert event.session.id == "sess_9"
    assert event.session.amount_total == 4200
    assert event.session.metadata.nome == "Ana"
    assert event.session.payer_email == "a@x.com"


def test_parse_event_prefers_customer_details_email():
    payload = completed_event()
    payload["data"]["object"]["customer_email"] = None
    payload["data"]["object"]["customer_details"] = {"email": "payer@x.com"}

    assert parse_event(payload).session.payer_email == "payer@x.com"


def test_parse_event_maps_unknown_types_to_ignored():
    event = parse_event({"id": "evt_3", "type": "charge.refunded", "data": {"object": {}}})

    assert isinstance(event, IgnoredEvent)
    assert event.type == "charge.refunded"


@pytest.mark.parametrize("payload", [[], {"id": "evt_4"}, {"type": ""}])
def test_parse_event_rejects_payload_without_type(payload):
    with pytest.raises(PayloadMalformed):
        parse_event(payload)


def test_minor_to_major():
    assert minor_to_major(2500) == Decimal("25.00")
    assert minor_to_major(1) == Decimal("0.01")


def test_concurrent_duplicate_insert_is_treated_as_existing(db, monkeypatch):
    insert_paid_booking(
        db,
        session_id="sess_1",
        customer_name="Ana",
        customer_email="a@x.com",
        date_str="2024-05-01",
        time_slot="10:00",
        description=None,
        amount_paid=Decimal("25.00"),
        currency="eur",
    )

    # The other delivery committed between our lookup and our insert.
    calls = []

    def stale_lookup(db, session_id):
        calls.append(session_id)
        if len(calls) == 1:
            return None
        return find_by_provider_session_id(db, session_id)

    monkeypatch.setattr(reconciliation_service, "find_by_provider_session_id", stale_lookup)

    result = reconcile_checkout_completed(db, parse_event(completed_event()))

    assert result.outcome == Outcome.DUPLICATE
    assert result.email_id is None
    assert result.booking is not None
    assert result.booking.provider_session_id == "sess_1"
    assert len(calls) == 2


def test_conflict_with_no_committed_booking_is_a_store_error(db, monkeypatch):
    def conflicting_insert(*args, **kwargs):
        raise BookingConflict("duplicate key value violates unique constraint")

    monkeypatch.setattr(reconciliation_service, "insert_paid_booking", conflicting_insert)

    with pytest.raises(StoreError):
        reconcile_checkout_completed(db, parse_event(completed_event()))


def test_booking_email_prefers_metadata_then_payer():
    payload = completed_event()
    payload["data"]["object"]["customer_details"] = {"email": "payer@x.com"}
    assert parse_event(payload).session.booking_email == "a@x.com"

    del payload["data"]["object"]["metadata"]["email"]
    assert parse_event(payload).session.booking_email == "payer@x.com"


def test_first_delivery_queues_one_email(db):
    result = reconcile_checkout_completed(db, parse_event(completed_event()))

    assert result.outcome == Outcome.CREATED
    assert result.email_id
    assert result.booking.status == "paid"

    again = reconcile_checkout_completed(db, parse_event(completed_event()))
    assert again.outcome == Outcome.DUPLICATE
    assert again.email_id is None

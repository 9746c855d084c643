"""Shared fixtures.

Settings are read when ``app.core.config`` is imported, so the environment is
prepared here before anything from ``app`` is imported. Every test gets fresh
tables in a throwaway SQLite file and an in-memory outbox instead of SMTP.
"""
import hashlib
import hmac
import json
import os
import tempfile
import time

_tmpdir = tempfile.mkdtemp(prefix="surfschool-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_123"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["FRONTEND_URL"] = "https://surf.test"
os.environ["SENDGRID_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from app.core.errors import EmailError
from app.db.session import Base, SessionLocal, engine
from app.main import app
from app.models import audit_log, booking, email_log  # noqa: F401

WEBHOOK_SECRET = "whsec_test"


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


class Outbox:
    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    def send(self, to_email, subject, html_body):
        if self.fail:
            raise EmailError("SMTP error: connection refused")
        self.sent.append({"to": to_email, "subject": subject, "html": html_body})


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    box = Outbox()
    monkeypatch.setattr("app.services.email_service.send_email", box.send)
    return box


def sign(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Stripe-Signature header for ``payload`` using Stripe's v1 scheme."""
    ts = timestamp if timestamp is not None else int(time.time())
    signed = f"{ts}.".encode("utf-8") + payload
    sig = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


def completed_event(
    session_id: str = "sess_1",
    amount_total: int = 2500,
    metadata: dict | None = None,
    event_id: str = "evt_1",
    currency: str = "eur",
) -> dict:
    if metadata is None:
        metadata = {
            "nome": "Ana",
            "email": "a@x.com",
            "data_agendamento": "2024-05-01",
            "horario": "10:00",
            "descricao": "Aula de grupo",
        }
    return {
        "id": event_id,
        "object": "event",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "amount_total": amount_total,
                "currency": currency,
                "customer_email": metadata.get("email"),
                "customer_details": {"email": metadata.get("email")},
                "payment_status": "paid",
                "metadata": metadata,
            }
        },
    }


@pytest.fixture
def post_event(client):
    def _post(event: dict, secret: str = WEBHOOK_SECRET, path: str = "/webhook"):
        payload = json.dumps(event).encode("utf-8")
        return client.post(
            path,
            content=payload,
            headers={"Stripe-Signature": sign(payload, secret), "Content-Type": "application/json"},
        )
    return _post

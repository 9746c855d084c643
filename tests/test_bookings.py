import pytest
from sqlalchemy import select

from app.core.errors import StoreError
from app.models.audit_log import AuditLog


def _create(client, **overrides):
    body = {"nome": "Ana", "email": "a@x.com", "data_agendamento": "2024-05-01", "horario": "10:00"}
    body.update(overrides)
    return client.post("/agendamentos", json=body)


def test_root_and_health(client):
    assert client.get("/").text == "API de agendamento funcionando!"
    assert client.get("/health").json() == {"status": "ok"}


def test_direct_booking_is_created_unpaid(client, db):
    resp = _create(client)

    assert resp.status_code == 201
    data = resp.json()
    assert data["nome"] == "Ana"
    assert data["email"] == "a@x.com"
    assert data["data_agendamento"] == "2024-05-01"
    assert data["horario"] == "10:00"
    assert data["status"] == "pending"
    assert data["valor_pago"] is None
    assert data["stripe_session_id"] is None
    assert data["descricao"] == "Aula de surf"

    audit = db.execute(select(AuditLog)).scalar_one()
    assert audit.action == "booking.created"
    assert audit.entity_id == data["id"]


def test_direct_booking_requires_fields(client):
    resp = client.post("/agendamentos", json={"nome": "Ana"})
    assert resp.status_code == 422


@pytest.mark.parametrize(
    "field,value",
    [
        ("data_agendamento", "banana-split-sunday"),
        ("data_agendamento", "2024-13-01"),
        ("horario", "10:00 - 11:30 (grupo)"),
        ("nome", "A" * 201),
        ("descricao", "x" * 256),
    ],
)
def test_direct_booking_rejects_values_the_table_cannot_hold(client, db, field, value):
    resp = _create(client, **{field: value})

    assert resp.status_code == 422
    assert db.execute(select(AuditLog)).first() is None


def test_direct_bookings_never_collide_on_session_id(client):
    assert _create(client).status_code == 201
    assert _create(client, horario="11:00").status_code == 201
    assert len(client.get("/agendamentos").json()) == 2


def test_list_orders_by_date_then_time(client):
    _create(client, nome="C", data_agendamento="2024-05-02", horario="09:00")
    _create(client, nome="B", data_agendamento="2024-05-01", horario="14:00")
    _create(client, nome="A", data_agendamento="2024-05-01", horario="10:00")

    resp = client.get("/agendamentos")

    assert resp.status_code == 200
    assert [b["nome"] for b in resp.json()] == ["A", "B", "C"]


def test_list_most_recent_first(client):
    for name in ("first", "second", "third"):
        _create(client, nome=name)

    resp = client.get("/agendamentos", params={"ordem": "recentes"})

    assert [b["nome"] for b in resp.json()] == ["third", "second", "first"]


def test_list_rejects_unknown_order(client):
    assert client.get("/agendamentos", params={"ordem": "preco"}).status_code == 422


def test_store_error_on_create_returns_500(client, monkeypatch):
    def broken(*args, **kwargs):
        raise StoreError("could not insert booking")

    monkeypatch.setattr("app.api.v1.routes.bookings.create_booking", broken)

    resp = _create(client)

    assert resp.status_code == 500
    assert resp.json()["detail"] == {"error": "Erro ao criar agendamento"}


def test_store_error_on_list_returns_500(client, monkeypatch):
    def broken(*args, **kwargs):
        raise StoreError("could not list bookings")

    monkeypatch.setattr("app.api.v1.routes.bookings.list_bookings", broken)

    assert client.get("/agendamentos").status_code == 500

from agenda.models import AppointmentManageToken
from tests.helpers import local, parse_ts, upcoming_day

DAY = upcoming_day()


def _slots(client, world, **params):
    query = {
        "establishment_id": str(world.establishment.id),
        "professional_id": str(world.ana.id),
        "service_id": str(world.haircut.id),
        "date": DAY.isoformat(),
    }
    query.update(params)
    return client.get("/api/v1/public/availability/slots", params=query)


def _book(client, world, hhmm="10:00", **overrides):
    payload = {
        "establishment_id": str(world.establishment.id),
        "service_id": str(world.haircut.id),
        "professional_id": str(world.ana.id),
        "start_at": local(DAY, hhmm).isoformat(),
        "customer_name": "Diego",
        "customer_phone": "+5511988887777",
        "customer_email": "diego@example.com",
    }
    payload.update(overrides)
    return client.post("/api/v1/public/bookings", json=payload)


def test_health(client):
    response = client.get("/health/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_slots_listing(client, world):
    response = _slots(client, world)
    data = response.json()

    assert response.status_code == 200
    assert data["date"] == DAY.isoformat()
    assert data["timezone"] == "America/Sao_Paulo"
    assert data["duration_minutes"] == 30
    assert data["slots"][0] == "09:00"
    assert "10:00" in data["slots"]


def test_slots_for_unknown_service(client, world):
    response = _slots(client, world, service_id=str(world.establishment.id))

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "booking_unavailable"


def test_booking_flow(client, world, sent_notifications):
    response = _book(client, world)
    data = response.json()

    assert response.status_code == 201
    assert data["success"] is True
    assert data["appointment"]["status"] == "booked"
    assert data["manage_token"]
    assert parse_ts(data["appointment"]["start_at"]) == local(DAY, "10:00")
    assert sent_notifications[0]["notification_type"] == "confirmation"

    assert "10:00" not in _slots(client, world).json()["slots"]


def test_double_booking_is_rejected(client, world):
    assert _book(client, world).status_code == 201

    response = _book(client, world, "10:15", customer_phone="+5511900001111")

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "slot_unavailable"


def test_booking_requires_timezone_offset(client, world):
    response = _book(client, world, start_at=f"{DAY.isoformat()}T10:00:00")
    assert response.status_code == 422


def test_manage_link_flow(client, world, db, sent_notifications):
    token = _book(client, world).json()["manage_token"]

    details = client.get("/api/v1/public/manage/appointment", params={"token": token})
    assert details.status_code == 200
    appointment = details.json()
    assert appointment["service"]["name"] == "Haircut"
    assert appointment["establishment"]["slug"] == "studio-bela"

    slots = client.get("/api/v1/public/manage/slots", params={"token": token, "date": DAY.isoformat()})
    assert "10:00" in slots.json()["slots"]

    moved = client.post("/api/v1/public/manage/reschedule", json={
        "token": token,
        "appointment_id": appointment["id"],
        "new_start_at": local(DAY, "10:15").isoformat(),
    })
    assert moved.status_code == 200
    fresh_token = moved.json()["manage_token"]
    assert fresh_token and fresh_token != token
    assert sent_notifications[-1] == {
        "notification_type": "reschedule",
        "appointment_id": appointment["id"],
        "manage_token": fresh_token,
    }

    reused = client.post("/api/v1/public/manage/cancel", json={"token": token, "appointment_id": appointment["id"]})
    assert reused.status_code == 410
    assert reused.json()["detail"]["code"] == "token_already_used"

    canceled = client.post("/api/v1/public/manage/cancel", json={
        "token": fresh_token,
        "appointment_id": appointment["id"],
        "reason": "Travelling",
    })
    assert canceled.status_code == 200
    assert canceled.json()["appointment"]["status"] == "canceled"
    assert db.query(AppointmentManageToken).filter(AppointmentManageToken.used_at.is_(None)).count() == 0


def test_bad_manage_token(client, world):
    response = client.get("/api/v1/public/manage/appointment", params={"token": "nope"})

    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "token_invalid"


def test_booking_rejects_malformed_email(client, world):
    response = _book(client, world, customer_email="not-an-email")

    assert response.status_code == 422


def test_booking_without_email(client, world):
    response = _book(client, world, customer_email=None)

    assert response.status_code == 201


def test_manage_link_can_move_to_another_professional(client, world):
    token = _book(client, world).json()["manage_token"]
    appointment_id = client.get("/api/v1/public/manage/appointment", params={"token": token}).json()["id"]
    _book(client, world, "11:00", professional_id=str(world.bruno.id), customer_phone="+5511900001111")

    slots = client.get("/api/v1/public/manage/slots", params={
        "token": token,
        "date": DAY.isoformat(),
        "professional_id": str(world.bruno.id),
    }).json()["slots"]
    assert "11:00" not in slots
    assert "14:00" in slots

    moved = client.post("/api/v1/public/manage/reschedule", json={
        "token": token,
        "appointment_id": appointment_id,
        "new_start_at": local(DAY, "14:00").isoformat(),
        "new_professional_id": str(world.bruno.id),
    })

    assert moved.status_code == 200
    data = moved.json()["appointment"]
    assert data["professional_id"] == str(world.bruno.id)
    assert parse_ts(data["start_at"]) == local(DAY, "14:00")

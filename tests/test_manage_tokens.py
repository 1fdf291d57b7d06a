from datetime import timedelta

import pytest

from agenda.core.exceptions import TokenAlreadyUsed, TokenExpired, TokenInvalid
from agenda.models import AppointmentManageToken
from agenda.services.appointment.appointment_transaction_service import AppointmentTransactionService
from agenda.services.manage_token.manage_token_service import ManageTokenService
from agenda.utils.timeutils import ensure_utc
from tests.helpers import MONDAY, NOW, SUNDAY, add_appointment, add_token, local


def _customer_reschedule(db, appointment, token, hhmm, day=MONDAY, now=NOW):
    return AppointmentTransactionService.reschedule(
        db,
        appointment_id=appointment.id,
        new_start_at=local(day, hhmm),
        token=token,
        now=now
    )


def test_issue_stores_only_the_hash(db, world):
    appointment = add_appointment(db, world, local(MONDAY, "10:00"))

    raw, row = ManageTokenService.issue(db, appointment, NOW)
    db.commit()

    assert row.token_hash == AppointmentManageToken.hash_token(raw)
    assert row.token_hash != raw
    assert ensure_utc(row.expires_at) == NOW + timedelta(hours=720)
    assert ManageTokenService.resolve(db, raw, NOW).appointment_id == appointment.id


def test_resolve_does_not_spend_the_token(db, world):
    appointment = add_appointment(db, world, local(MONDAY, "10:00"))
    raw = add_token(db, appointment)

    ManageTokenService.resolve(db, raw, NOW)
    ManageTokenService.resolve(db, raw, NOW)

    assert db.query(AppointmentManageToken).one().used_at is None


def test_resolve_rejects_bad_tokens(db, world):
    appointment = add_appointment(db, world, local(MONDAY, "10:00"))
    used = add_token(db, appointment, used_at=NOW)
    expired = add_token(db, appointment, expires_at=NOW - timedelta(minutes=1))

    with pytest.raises(TokenInvalid):
        ManageTokenService.resolve(db, "not-a-token", NOW)
    with pytest.raises(TokenAlreadyUsed):
        ManageTokenService.resolve(db, used, NOW)
    with pytest.raises(TokenExpired):
        ManageTokenService.resolve(db, expired, NOW)


def test_customer_reschedule_rotates_the_token(db, world, sent_notifications):
    appointment = add_appointment(db, world, local(MONDAY, "10:00"))
    raw = add_token(db, appointment)

    result = _customer_reschedule(db, appointment, raw, "14:00")

    assert result.success
    assert result.manage_token and result.manage_token != raw
    assert sent_notifications == [{
        "notification_type": "reschedule",
        "appointment_id": str(appointment.id),
        "manage_token": result.manage_token,
    }]
    assert ManageTokenService.resolve(db, result.manage_token, NOW).appointment_id == appointment.id

    with pytest.raises(TokenAlreadyUsed):
        ManageTokenService.resolve(db, raw, NOW)


def test_used_token_fails_even_if_not_expired(db, world, sent_notifications):
    appointment = add_appointment(db, world, local(MONDAY, "10:00"))
    raw = add_token(db, appointment, used_at=NOW - timedelta(hours=1))

    reschedule = _customer_reschedule(db, appointment, raw, "14:00")
    cancel = AppointmentTransactionService.cancel(db, appointment_id=appointment.id, token=raw, now=NOW)

    assert reschedule.code == "token_already_used"
    assert cancel.code == "token_already_used"
    assert sent_notifications == []


def test_expired_token(db, world):
    appointment = add_appointment(db, world, local(MONDAY, "10:00"))
    raw = add_token(db, appointment, expires_at=NOW)

    assert _customer_reschedule(db, appointment, raw, "14:00").code == "token_expired"


def test_token_for_another_appointment_is_invalid(db, world):
    mine = add_appointment(db, world, local(MONDAY, "10:00"))
    other = add_appointment(db, world, local(MONDAY, "11:00"))
    raw = add_token(db, other)

    assert _customer_reschedule(db, mine, raw, "14:00").code == "token_invalid"
    assert _customer_reschedule(db, mine, "garbage", "14:00").code == "token_invalid"


def test_cancel_spends_the_token(db, world):
    appointment = add_appointment(db, world, local(MONDAY, "10:00"))
    raw = add_token(db, appointment)

    first = AppointmentTransactionService.cancel(db, appointment_id=appointment.id, token=raw, now=NOW)
    second = AppointmentTransactionService.cancel(db, appointment_id=appointment.id, token=raw, now=NOW)

    assert first.success
    assert first.manage_token is None
    assert second.code == "token_already_used"


def test_failed_change_leaves_the_token_usable(db, world):
    add_appointment(db, world, local(MONDAY, "14:00"))
    appointment = add_appointment(db, world, local(MONDAY, "10:00"))
    raw = add_token(db, appointment)

    assert _customer_reschedule(db, appointment, raw, "14:00").code == "slot_unavailable"
    assert _customer_reschedule(db, appointment, raw, "15:00").success


def test_minimum_notice_on_current_start(db, world):
    world.establishment.reschedule_min_hours = 48
    db.commit()
    appointment = add_appointment(db, world, local(SUNDAY, "10:00"))  # 25h after NOW
    raw = add_token(db, appointment)

    assert _customer_reschedule(db, appointment, raw, "14:00").code == "minimum_notice_violation"
    cancel = AppointmentTransactionService.cancel(db, appointment_id=appointment.id, token=raw, now=NOW)
    assert cancel.code == "minimum_notice_violation"


def test_minimum_notice_on_new_start(db, world):
    world.establishment.reschedule_min_hours = 24
    db.commit()
    appointment = add_appointment(db, world, local(MONDAY, "10:00"))
    raw = add_token(db, appointment)

    too_soon = _customer_reschedule(db, appointment, raw, "15:00", day=NOW.date())
    assert too_soon.code == "minimum_notice_violation"
    assert _customer_reschedule(db, appointment, raw, "15:00").success


def test_terminal_appointment_with_valid_token(db, world):
    appointment = add_appointment(db, world, local(MONDAY, "10:00"), status="canceled")
    raw = add_token(db, appointment)

    assert _customer_reschedule(db, appointment, raw, "14:00").code == "terminal_appointment"

# ============================================================================
# agenda/services/manage_token/manage_token_service.py
# Issue and validate customer self-service (manage link) tokens
# ============================================================================
from datetime import datetime, timedelta
from typing import Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from agenda.config.settings import get_settings
from agenda.core.exceptions import TokenAlreadyUsed, TokenExpired, TokenInvalid
from agenda.models.appointment import Appointment
from agenda.models.manage_token import AppointmentManageToken
from agenda.utils.timeutils import ensure_utc, utcnow

logger = logging.getLogger(__name__)


class ManageTokenService:
    """Tokens are stored as SHA-256 hashes; the raw value is returned once, at issue time."""

    @staticmethod
    def issue(
            db: Session,
            appointment: Appointment,
            now: Optional[datetime] = None
    ) -> Tuple[str, AppointmentManageToken]:
        """
        Create a token for an appointment. Adds the row to the session without
        committing, so it lands in the caller's transaction.
        """
        now = ensure_utc(now or utcnow())
        raw_token = AppointmentManageToken.generate_token()

        token = AppointmentManageToken(
            token_hash=AppointmentManageToken.hash_token(raw_token),
            appointment_id=appointment.id,
            expires_at=now + timedelta(hours=get_settings().MANAGE_TOKEN_TTL_HOURS)
        )
        db.add(token)
        return raw_token, token

    @staticmethod
    def _find(db: Session, raw_token: str, for_update: bool = False) -> Optional[AppointmentManageToken]:
        if not raw_token:
            return None
        query = db.query(AppointmentManageToken).filter(
            AppointmentManageToken.token_hash == AppointmentManageToken.hash_token(raw_token)
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def _check_usable(token: AppointmentManageToken, now: datetime) -> None:
        if token.is_used:
            raise TokenAlreadyUsed()
        if token.is_expired(now):
            raise TokenExpired()

    @staticmethod
    def resolve(
            db: Session,
            raw_token: str,
            now: Optional[datetime] = None
    ) -> AppointmentManageToken:
        """Read-only lookup for showing the appointment behind a link"""
        now = now or utcnow()
        token = ManageTokenService._find(db, raw_token)
        if token is None:
            raise TokenInvalid()
        ManageTokenService._check_usable(token, now)
        return token

    @staticmethod
    def authorize(
            db: Session,
            raw_token: str,
            appointment_id: UUID,
            now: Optional[datetime] = None
    ) -> AppointmentManageToken:
        """
        Validate a token for a mutation on ``appointment_id`` and lock its row
        so a concurrent request cannot spend it too.
        """
        now = now or utcnow()
        token = ManageTokenService._find(db, raw_token, for_update=True)

        if token is None or token.appointment_id != appointment_id:
            logger.warning(f"Manage token rejected for appointment {appointment_id}")
            raise TokenInvalid()

        ManageTokenService._check_usable(token, now)
        return token

    @staticmethod
    def mark_used(token: AppointmentManageToken, now: Optional[datetime] = None) -> None:
        token.used_at = ensure_utc(now or utcnow())

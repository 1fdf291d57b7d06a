# agenda/core/security.py
"""Authorization scope resolved from a dashboard credential"""
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from agenda.models.appointment import ActorType


@dataclass(frozen=True)
class AuthScope:
    """
    What an authenticated caller may touch: one establishment, and either one
    professional's calendar or all of them (``professional_id`` is None).
    """
    establishment_id: UUID
    professional_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    actor_type: str = ActorType.STAFF.value

    def covers(self, establishment_id: UUID, professional_id: UUID) -> bool:
        if establishment_id != self.establishment_id:
            return False
        return self.professional_id is None or self.professional_id == professional_id

# callcrm/services/user_services.py
import logging
from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from callcrm.crud import user as crud_user
from callcrm.models import User
from callcrm.services.audit import AuditService
from callcrm.services.clock import Clock, system_clock
from callcrm.services.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class UserServices:

    def __init__(self, db: AsyncSession, clock: Clock = system_clock):
        self.db = db
        self.clock = clock
        self.audit = AuditService(db, clock)

    async def list_users(self) -> List[User]:
        return await crud_user.list_users(self.db)

    async def set_active(self, user_id: UUID, is_active: bool, actor_id: UUID) -> User:
        """
        Activate or deactivate a user. For agents this takes them in or out of
        the assignment rotation from the next lead on; their existing leads stay.
        """
        user = await crud_user.get_user(self.db, user_id)
        if not user:
            raise NotFoundError("User not found")

        name = user.name
        try:
            user.is_active = is_active
            user.updated_at = self.clock.now()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("User %s %s by %s", user_id, "activated" if is_active else "deactivated", actor_id)
        await self.audit.log(actor_id, "ACTIVATE" if is_active else "DEACTIVATE", "user", user_id, {
            "targetUser": name,
        })

        return await crud_user.get_user(self.db, user_id)

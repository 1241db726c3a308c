# callcrm/services/lead_assignment.py
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from callcrm.crud import lead as crud_lead
from callcrm.crud import user as crud_user

logger = logging.getLogger(__name__)

# Agents who never received a lead rank as assigned longest ago
NEVER_ASSIGNED = datetime.min


class LeadAssignmentManager:
    """
        Picks the agent (`asesora`) who receives a new lead.

        Round-robin by load:
        - Only agents with `is_active = True` are candidates.
        - Active load = leads assigned to the agent whose status is not `cerrado`.
        - Fewer active leads wins; ties go to whoever was assigned longest ago
          (agents with no leads yet count as assigned at the earliest time).

        The ranking is rebuilt from the database on every call instead of keeping
        a rotating pointer, so deactivations, reactivations and manual reassignment
        are absorbed on the next call. The read is not atomic with the lead insert
        that follows; two simultaneous intakes may pick the same agent.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def rank_agents(self) -> List[Dict[str, Any]]:
        agents = await crud_user.list_agents(self.db, only_active=True)

        candidates = []
        for agent in agents:
            active_load = await crud_lead.count_active_leads(self.db, agent.user_id)
            last_assigned_at = await crud_lead.get_last_assigned_at(self.db, agent.user_id)
            candidates.append({
                "agent_id": agent.user_id,
                "name": agent.name,
                "active_load": active_load,
                "last_assigned_at": last_assigned_at or NEVER_ASSIGNED,
            })

        candidates.sort(key=lambda c: (c["active_load"], c["last_assigned_at"]))
        return candidates

    async def next_agent(self) -> Optional[UUID]:
        """Id of the agent who should receive the next lead, or None if nobody is active."""
        candidates = await self.rank_agents()
        if not candidates:
            logger.warning("No active agents; lead will stay unassigned")
            return None

        chosen = candidates[0]
        logger.info(
            "Next agent %s (active_load=%s, last_assigned_at=%s)",
            chosen["agent_id"], chosen["active_load"], chosen["last_assigned_at"],
        )
        return chosen["agent_id"]

    async def distribution(self) -> List[Dict[str, Any]]:
        """Total and active lead counts for every agent, active or not."""
        agents = await crud_user.list_agents(self.db)
        rows = []
        for agent in agents:
            rows.append({
                "agent_id": agent.user_id,
                "name": agent.name,
                "is_active": agent.is_active,
                "total_leads": await crud_lead.count_leads(self.db, agent.user_id),
                "active_leads": await crud_lead.count_active_leads(self.db, agent.user_id),
            })
        return rows

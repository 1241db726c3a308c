# callcrm/services/conversion_services.py
import logging
from datetime import datetime
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from callcrm.crud import case as crud_case
from callcrm.crud import client as crud_client
from callcrm.crud import lead as crud_lead
from callcrm.models import Case, CaseStatus, Client, Lead
from callcrm.services.audit import AuditService
from callcrm.services.clock import Clock, system_clock
from callcrm.services.exceptions import AlreadyConvertedError, NotFoundError

logger = logging.getLogger(__name__)


async def open_client_case(db: AsyncSession, lead: Lead, actor_id: UUID, now: datetime) -> tuple[Client, Case]:
    """
    Create the client, its case and the initial history row for a lead.
    Does not commit; callers own the transaction.
    """
    client = await crud_client.create_client_from_lead(db, lead, now)
    new_case = await crud_case.create_case(db, client, now)
    await crud_case.add_status_history(
        db,
        case_id=new_case.case_id,
        previous_status=None,
        new_status=CaseStatus.NUEVO.value,
        user_id=actor_id,
        now=now,
    )
    await db.flush()
    return client, new_case


class ConversionService:

    def __init__(self, db: AsyncSession, clock: Clock = system_clock):
        self.db = db
        self.clock = clock
        self.audit = AuditService(db, clock)

    async def convert_lead_to_client(self, lead_id: UUID, actor_id: UUID) -> Dict[str, Any]:
        """
        Convert an existing lead into a client.

        Workflow (one transaction):
        1. Create the Client from the lead's name/phone/email.
        2. Create its Case with status `nuevo`.
        3. Record the initial StatusHistory row (previous_status = None).
        4. Move the lead to `contactado`; its assigned agent is untouched.
        Then audit `CONVERT_LEAD`. Prior lead history is never rewritten.

        Raises:
            NotFoundError: lead does not exist.
            AlreadyConvertedError: a client already references this lead.
        """
        lead = await crud_lead.get_lead_by_id(self.db, lead_id)
        if not lead:
            raise NotFoundError("Lead not found")

        if await crud_client.get_client_by_lead(self.db, lead_id):
            raise AlreadyConvertedError("Lead was already converted to a client")

        now = self.clock.now()
        try:
            client, new_case = await open_client_case(self.db, lead, actor_id, now)
            await crud_lead.update_lead_status(self.db, lead, CaseStatus.CONTACTADO.value, now)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        client_id, case_id = client.client_id, new_case.case_id
        logger.info("Lead %s converted to client %s (case %s)", lead_id, client_id, case_id)

        await self.audit.log(actor_id, "CONVERT_LEAD", "client", client_id, {
            "fromLeadId": lead_id,
            "caseId": case_id,
        })

        return {
            "client": await crud_client.get_client_detail(self.db, client_id),
            "case": await crud_case.get_case_detail(self.db, case_id),
        }

    async def list_clients(self) -> List[Client]:
        return await crud_client.list_clients(self.db)

    async def get_client(self, client_id: UUID) -> Client:
        client = await crud_client.get_client_detail(self.db, client_id)
        if not client:
            raise NotFoundError("Client not found")
        return client

# callcrm/services/lead_services.py
import json
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from callcrm.crud import case as crud_case
from callcrm.crud import client as crud_client
from callcrm.crud import lead as crud_lead
from callcrm.crud import lead_sources as crud_sources
from callcrm.db.redis_client import LEAD_CACHE_TTL
from callcrm.models import Lead, UserRole
from callcrm.services.audit import AuditService
from callcrm.services.clock import Clock, system_clock
from callcrm.services.conversion_services import open_client_case
from callcrm.services.exceptions import ConflictError, DuplicateLeadError, NotFoundError
from callcrm.services.lead_assignment import LeadAssignmentManager

logger = logging.getLogger(__name__)


def phone_cache_key(phone: str) -> str:
    return f"lead:phone:{phone}"


def external_cache_key(external_id: str) -> str:
    return f"lead:external:{external_id}"


class LeadServices:
    """
        Lead intake: deduplication, source resolution and automatic assignment.

        `redis` is optional. When present it holds recently created phones and
        external ids so repeated webhook deliveries are rejected before touching
        the database; the database checks remain authoritative.
    """

    def __init__(self, db: AsyncSession, redis=None, clock: Clock = system_clock):
        self.db = db
        self.redis = redis
        self.clock = clock
        self.audit = AuditService(db, clock)
        self.assignment = LeadAssignmentManager(db)

    async def create_lead(
        self,
        name: str,
        phone: str,
        email: Optional[str] = None,
        source: Optional[str] = None,
        external_id: Optional[str] = None,
    ) -> Lead:
        """
        Create a lead coming from an integration (Zapier, n8n, web form).

        Workflow:
        1. Reject if a lead with the same `external_id` exists.
        2. Reject if a lead with the same phone exists (always checked).
        3. Resolve the lead source by name, creating it if absent.
        4. Pick the agent via `LeadAssignmentManager` and stamp `assigned_at`.
        5. Insert the lead with status `nuevo`.
        6. Audit `CREATE lead` with the assigned agent as actor.

        Raises:
            DuplicateLeadError: external id or phone already registered.
        """
        if external_id:
            if await self._cached(external_cache_key(external_id)):
                raise DuplicateLeadError("Duplicate lead: externalId already exists (cache)")
            if await crud_lead.get_lead_by_external_id(self.db, external_id):
                raise DuplicateLeadError("Duplicate lead: externalId already exists")

        await self._ensure_phone_is_new(phone)

        try:
            source_id = None
            if source:
                lead_source = await crud_sources.get_or_create_source(self.db, source)
                source_id = lead_source.source_id

            assigned_user_id = await self.assignment.next_agent()
            lead = await crud_lead.create_lead(
                self.db,
                now=self.clock.now(),
                name=name,
                phone=phone,
                email=email,
                source_id=source_id,
                external_id=external_id,
                assigned_user_id=assigned_user_id,
            )
            await self.db.commit()
        except IntegrityError:
            # Lost the race against a concurrent insert of the same phone/externalId
            await self.db.rollback()
            raise DuplicateLeadError("Duplicate lead: phone or externalId already exists")
        except Exception:
            await self.db.rollback()
            raise

        lead_id = lead.lead_id
        logger.info("Lead %s created and assigned to %s", lead_id, assigned_user_id)

        await self._remember(lead)
        await self.audit.log(assigned_user_id, "CREATE", "lead", lead_id, {
            "name": name,
            "phone": phone,
            "assignedTo": assigned_user_id,
        })

        return await crud_lead.get_lead_detail(self.db, lead_id)

    async def create_manual(
        self,
        name: str,
        phone: str,
        source: str,
        actor_id: UUID,
        email: Optional[str] = None,
        observations: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Manual load by a supervisor/admin: the lead is created already worked,
        so its client, case and initial history row are opened in the same
        transaction. The lead keeps status `nuevo`.
        """
        await self._ensure_phone_is_new(phone)

        try:
            lead_source = await crud_sources.get_or_create_source(self.db, source)
            assigned_user_id = await self.assignment.next_agent()
            now = self.clock.now()
            lead = await crud_lead.create_lead(
                self.db,
                now=now,
                name=name,
                phone=phone,
                email=email,
                source_id=lead_source.source_id,
                assigned_user_id=assigned_user_id,
                created_manually=True,
                observations=observations,
            )
            client, new_case = await open_client_case(self.db, lead, actor_id, now)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateLeadError(f"Phone {phone} already exists")
        except Exception:
            await self.db.rollback()
            raise

        lead_id, client_id, case_id = lead.lead_id, client.client_id, new_case.case_id
        logger.info("Manual lead %s loaded by %s (case %s)", lead_id, actor_id, case_id)

        await self._remember(lead)
        await self.audit.log(actor_id, "CREATE_MANUAL", "lead", lead_id, {
            "source": source,
            "assignedTo": assigned_user_id,
        })

        return {
            "lead": await crud_lead.get_lead_detail(self.db, lead_id),
            "client": await crud_client.get_client_detail(self.db, client_id),
            "case": await crud_case.get_case_detail(self.db, case_id),
        }

    async def create_bulk(self, items: List[Dict[str, Any]], actor_id: UUID) -> Dict[str, Any]:
        """Manual load of many rows; failures are collected, not raised."""
        results = {"created": 0, "skipped": 0, "errors": []}

        for item in items:
            try:
                await self.create_manual(actor_id=actor_id, **item)
                results["created"] += 1
            except ConflictError as e:
                results["skipped"] += 1
                results["errors"].append(f"{item.get('name')} ({item.get('phone')}): {e}")

        logger.info("Bulk load by %s: %s created, %s skipped", actor_id, results["created"], results["skipped"])
        return results

    async def list_leads(self, actor_id: UUID, role: str) -> List[Lead]:
        # Agents only see the leads assigned to them
        if role == UserRole.ASESORA.value:
            return await crud_lead.list_leads(self.db, assigned_user_id=actor_id)
        return await crud_lead.list_leads(self.db)

    async def get_lead(self, lead_id: UUID) -> Lead:
        lead = await crud_lead.get_lead_detail(self.db, lead_id)
        if not lead:
            raise NotFoundError("Lead not found")
        return lead

    async def distribution(self) -> List[Dict[str, Any]]:
        return await self.assignment.distribution()

    # --- helpers ---

    async def _ensure_phone_is_new(self, phone: str) -> None:
        if await self._cached(phone_cache_key(phone)):
            raise DuplicateLeadError("Duplicate lead: phone already exists (cache)")
        if await crud_lead.get_lead_by_phone(self.db, phone):
            raise DuplicateLeadError("Duplicate lead: phone already exists")

    async def _cached(self, key: str) -> bool:
        if self.redis is None:
            return False
        try:
            return bool(await self.redis.get(key))
        except RedisError as e:
            logger.warning("Lead cache lookup failed for %s: %s", key, e)
            return False

    async def _remember(self, lead: Lead) -> None:
        if self.redis is None:
            return
        payload = json.dumps({"lead_id": str(lead.lead_id)})
        keys = [phone_cache_key(lead.phone)]
        if lead.external_id:
            keys.append(external_cache_key(lead.external_id))
        try:
            for key in keys:
                await self.redis.set(key, payload, ex=LEAD_CACHE_TTL)
        except RedisError as e:
            logger.warning("Lead cache write failed for %s: %s", lead.lead_id, e)

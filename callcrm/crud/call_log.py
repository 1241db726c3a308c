# callcrm/crud/call_log.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional
from uuid import UUID, uuid4
from datetime import datetime

from callcrm.models import CallLog


async def create_call(
    db: AsyncSession,
    case_id: UUID,
    user_id: UUID,
    date: datetime,
    duration: int,
    result: str,
    observations: Optional[str],
    now: datetime,
) -> CallLog:
    call = CallLog(
        call_id=uuid4(),
        case_id=case_id,
        user_id=user_id,
        date=date,
        duration=duration,
        result=result,
        observations=observations,
        created_at=now,
        updated_at=now,
    )
    db.add(call)
    await db.flush()
    return call


async def list_calls_for_case(db: AsyncSession, case_id: UUID) -> List[CallLog]:
    result = await db.execute(
        select(CallLog).where(CallLog.case_id == case_id).order_by(CallLog.created_at.desc())
    )
    return result.scalars().all()


async def get_call(db: AsyncSession, call_id: UUID) -> Optional[CallLog]:
    result = await db.execute(select(CallLog).where(CallLog.call_id == call_id))
    return result.scalar_one_or_none()


async def count_calls_since(db: AsyncSession, user_id: UUID, since: datetime) -> int:
    result = await db.execute(
        select(func.count(CallLog.call_id)).where(CallLog.user_id == user_id, CallLog.created_at >= since)
    )
    return result.scalar() or 0

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID
import logging
import traceback

from callcrm.db.session import get_db
from callcrm.routers.deps import get_current_actor
from callcrm.schemas.case import CallLogOut, CaseDetail, CaseStatusUpdate
from callcrm.schemas.case_note import CaseNoteCreate, CaseNoteOut
from callcrm.schemas.user import Actor
from callcrm.services.call_services import CallServices
from callcrm.services.case_notes import CaseNoteService
from callcrm.services.case_status import CaseStatusMachine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/cases", tags=["Cases"])


@router.get("", response_model=List[CaseDetail], summary="List cases, most recently touched first")
async def list_cases(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await CaseStatusMachine(db).list_cases(actor.user_id, actor.role)
    except Exception as e:
        logger.error("Error in list_cases: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/{case_id}", response_model=CaseDetail)
async def get_case(
    case_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await CaseStatusMachine(db).get_case(case_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in get_case: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.patch("/{case_id}/status", response_model=CaseDetail, summary="Change a case's status")
async def update_case_status(
    case_id: UUID,
    request: CaseStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await CaseStatusMachine(db).set_status(case_id, request.status, actor.user_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Error in update_case_status: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post("/{case_id}/notes", response_model=CaseNoteOut, status_code=201, summary="Add a note to a case")
async def create_case_note(
    case_id: UUID,
    request: CaseNoteCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await CaseNoteService(db).create(
            case_id,
            management_type=request.management_type,
            content=request.content,
            actor_id=actor.user_id,
            next_follow_up_date=request.next_follow_up_date,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Error in create_case_note: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/{case_id}/notes", response_model=List[CaseNoteOut])
async def list_case_notes(
    case_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await CaseNoteService(db).list_for_case(case_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in list_case_notes: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/{case_id}/calls", response_model=List[CallLogOut])
async def list_case_calls(
    case_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await CallServices(db).list_for_case(case_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in list_case_calls: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID
import logging
import traceback

from callcrm.db.session import get_db
from callcrm.routers.deps import get_current_actor
from callcrm.schemas.case_note import CaseNoteOut, CaseNoteUpdate
from callcrm.schemas.user import Actor
from callcrm.services.case_notes import CaseNoteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/notes", tags=["Case Notes"])


@router.patch(
    "/{note_id}",
    response_model=CaseNoteOut,
    summary="Edit a note",
    description="Agents: own notes, first 10 minutes. Supervisors: any note not written by an admin. Admins: any."
)
async def update_note(
    note_id: UUID,
    request: CaseNoteUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await CaseNoteService(db).update(
            note_id, request.model_dump(exclude_unset=True), actor.user_id, actor.role
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Error in update_note: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.patch("/{note_id}/annul", response_model=CaseNoteOut, summary="Annul a note (irreversible)")
async def annul_note(
    note_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await CaseNoteService(db).annul(note_id, actor.user_id, actor.role)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Error in annul_note: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")

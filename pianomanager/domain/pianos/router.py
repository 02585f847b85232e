"""Piano router - FastAPI endpoints for the piano registry"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import PianoCreate, PianoResponse, PianoUpdate
from .service import PianoService

router = APIRouter(prefix="/pianos", tags=["Pianos"])


def get_piano_service(db: Session = Depends(get_db)) -> PianoService:
    return PianoService(db)


@router.get("", response_model=list[PianoResponse])
async def get_pianos(
    clientId: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: PianoService = Depends(get_piano_service),
):
    """List pianos, optionally for a single client"""
    return [PianoResponse.from_model(p) for p in service.get_pianos(current_user, clientId)]


@router.get("/{piano_id}", response_model=PianoResponse)
async def get_piano(
    piano_id: int,
    current_user: User = Depends(get_current_user),
    service: PianoService = Depends(get_piano_service),
):
    return PianoResponse.from_model(service.get_piano(piano_id, current_user))


@router.post("", response_model=PianoResponse)
async def create_piano(
    data: PianoCreate,
    current_user: User = Depends(get_current_user),
    service: PianoService = Depends(get_piano_service),
):
    return PianoResponse.from_model(service.create_piano(data, current_user))


@router.patch("/{piano_id}", response_model=PianoResponse)
async def update_piano(
    piano_id: int,
    data: PianoUpdate,
    current_user: User = Depends(get_current_user),
    service: PianoService = Depends(get_piano_service),
):
    return PianoResponse.from_model(service.update_piano(piano_id, data, current_user))


@router.delete("/{piano_id}")
async def delete_piano(
    piano_id: int,
    current_user: User = Depends(get_current_user),
    service: PianoService = Depends(get_piano_service),
):
    """Delete a piano and its service history"""
    return service.delete_piano(piano_id, current_user)

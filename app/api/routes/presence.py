from fastapi import APIRouter
from app.models.identity import Identity
from app.services.registry import registry

router = APIRouter(prefix="/clients")

@router.get("", response_model=list[Identity])
async def list_clients():
    return registry.snapshot_all()

@router.get("/{room}", response_model=list[Identity])
async def list_room_clients(room: str):
    return registry.snapshot_all(room)

from fastapi import APIRouter, WebSocket, Query
from app.services.session import RoomSession

router = APIRouter(prefix="/ws")

@router.websocket("")
async def ws_endpoint(ws: WebSocket, nickname: str = Query(""), room: str = Query("")):
    await RoomSession(ws, nickname, room).run()

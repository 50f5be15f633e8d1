from fastapi import APIRouter
from app.api.routes import presence, websocket

api = APIRouter(prefix="/api")
api.include_router(presence.router, tags=["presence"])
api.include_router(websocket.router, tags=["ws"])

from fastapi import FastAPI
from app.core.config import settings
from app.core.errors import CLOSE_GOING_AWAY
from app.core.logging import configure_logging
from app.api.router import api
from app.services.registry import registry

app = FastAPI(title=settings.APP_NAME)

@app.on_event("startup")
async def startup():
    configure_logging()

@app.on_event("shutdown")
async def shutdown():
    # Sessions see the close handshake and tear themselves down
    for conn in registry.connections():
        await conn.close(CLOSE_GOING_AWAY, "Server shutting down")

app.include_router(api)

@app.get("/health")
def health():
    return {"ok": True, "connections": len(registry)}

import logging
import os
from datetime import datetime, timezone
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from routine_admin.api import routine, timeline
from routine_admin.services.realtime import hub
from routine_admin.services.storage import get_storage

LOG_LEVEL = os.getenv("ROUTINES_LOG_LEVEL", "INFO").strip().upper() or "INFO"
SERVER_PORT = int(os.getenv("ROUTINES_SERVER_PORT", "8000"))
CORS_ORIGINS = [origin.strip() for origin in os.getenv("ROUTINES_CORS_ORIGINS", "*").split(",") if origin.strip()]
QUIET_ACCESS_LOG = os.getenv("ROUTINES_QUIET_ACCESS_LOG", "1").strip().lower() in {"1", "true", "yes", "on"}

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)

if QUIET_ACCESS_LOG:
    # Keep warning/error lines, suppress normal access noise (200/201 etc).
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

app = FastAPI(title="Routine Admin")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", ())[1:]), "message": err.get("msg", "Invalid value")}
        for err in exc.errors()
    ]
    return JSONResponse({"error": "Validation failed", "details": details}, status_code=400)


@app.get("/")
def root():
    return {
        "ok": True,
        "service": "routine-admin",
        "time_utc": datetime.now(timezone.utc).isoformat(),
        "docs": "/docs",
    }


@app.get("/healthz")
def healthz():
    return {"ok": True, "storage": get_storage().backend, "server_port": SERVER_PORT, "revision": hub.revision}


@app.websocket("/ws/updates")
async def ws_updates(websocket: WebSocket):
    await hub.subscribe(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await hub.unsubscribe(websocket)


@app.on_event("startup")
def startup_events() -> None:
    storage = get_storage()
    logger.info("routine admin started with %s storage", storage.backend)


app.include_router(routine.router)
app.include_router(timeline.router)

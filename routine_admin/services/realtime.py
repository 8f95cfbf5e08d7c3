import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)

ROUTINES_CHANGED = "routines_changed"
OPERATIONS = ("created", "updated", "status_changed", "deleted")


@dataclass
class RoutineEvent:
    operation: str
    routine_id: str
    revision: int
    routine: dict[str, Any] | None = None
    ts: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_message(self) -> str:
        return json.dumps(
            {
                "type": ROUTINES_CHANGED,
                "revision": self.revision,
                "operation": self.operation,
                "routineId": self.routine_id,
                "routine": self.routine,
                "ts": self.ts,
            }
        )


class RoutineEventHub:
    """
    Tells websocket subscribers which routine changed, so clients can drop
    their cached list and re-fetch. The revision only moves on real changes.
    """

    def __init__(self) -> None:
        self._sockets: set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._revision = 0
        self._last_event: RoutineEvent | None = None

    async def subscribe(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._sockets.add(websocket)
            last = self._last_event
        await websocket.send_json(
            {
                "type": "hello",
                "revision": self._revision,
                "lastRoutineId": last.routine_id if last else None,
            }
        )

    async def unsubscribe(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._sockets.discard(websocket)

    async def routine_changed(self, operation: str, routine_id: str, routine: dict[str, Any] | None = None) -> RoutineEvent:
        if operation not in OPERATIONS:
            raise ValueError(f"unknown routine operation: {operation}")
        async with self._lock:
            self._revision += 1
            event = RoutineEvent(operation=operation, routine_id=routine_id, revision=self._revision, routine=routine)
            self._last_event = event
            sockets = list(self._sockets)

        message = event.to_message()
        results = await asyncio.gather(*(ws.send_text(message) for ws in sockets), return_exceptions=True)
        stale = [ws for ws, result in zip(sockets, results) if isinstance(result, Exception)]
        if stale:
            logger.debug("dropping %d stale websocket subscriber(s)", len(stale))
            async with self._lock:
                self._sockets.difference_update(stale)
        return event

    @property
    def revision(self) -> int:
        return self._revision


hub = RoutineEventHub()

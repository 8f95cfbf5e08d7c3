import logging
import os
import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from routine_admin import db as database
from routine_admin.models.routine import Routine
from routine_admin.schemas.routine import RoutineIn, RoutineOut
from routine_admin.seed import SEED_ROUTINES

logger = logging.getLogger(__name__)

SEED_MEMORY = os.getenv("ROUTINES_SEED_MEMORY", "1").strip().lower() in {"1", "true", "yes", "on"}

_ROUTINE_FIELDS = tuple(RoutineIn.model_fields)


class StorageError(RuntimeError):
    """Raised when the persistence backend fails (connection loss, bad schema, ...)."""


def _sort_key(item: tuple[int, RoutineOut]) -> tuple[str, int]:
    position, routine = item
    return routine.start_time, position


def _merge(existing: RoutineOut, changes: dict[str, Any]) -> RoutineOut:
    data = existing.model_dump()
    data.update({key: value for key, value in changes.items() if key in _ROUTINE_FIELDS})
    # Raises pydantic.ValidationError (a ValueError) if the merged record is incomplete.
    return RoutineOut.model_validate(data)


class RoutineStorage(ABC):
    backend = "abstract"

    @abstractmethod
    def list_all(self) -> list[RoutineOut]:
        """All routines ordered by start_time, ties kept in insertion order."""
        raise NotImplementedError

    @abstractmethod
    def get_one(self, routine_id: str) -> RoutineOut | None:
        raise NotImplementedError

    @abstractmethod
    def create(self, candidate: RoutineIn) -> RoutineOut:
        raise NotImplementedError

    @abstractmethod
    def update(self, routine_id: str, changes: dict[str, Any]) -> RoutineOut | None:
        raise NotImplementedError

    @abstractmethod
    def update_status(self, routine_id: str, is_active: bool) -> RoutineOut | None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, routine_id: str) -> bool:
        raise NotImplementedError


class MemStorage(RoutineStorage):
    backend = "memory"

    def __init__(self, seed_routines: list[RoutineIn] | None = None) -> None:
        self._routines: dict[str, tuple[int, RoutineOut]] = {}
        self._lock = threading.Lock()
        self._next_position = 1
        for candidate in seed_routines or []:
            self.create(candidate)

    def list_all(self) -> list[RoutineOut]:
        with self._lock:
            entries = sorted(self._routines.values(), key=_sort_key)
        return [routine.model_copy() for _, routine in entries]

    def get_one(self, routine_id: str) -> RoutineOut | None:
        with self._lock:
            entry = self._routines.get(routine_id)
        return entry[1].model_copy() if entry else None

    def create(self, candidate: RoutineIn) -> RoutineOut:
        routine_id = str(uuid.uuid4())
        routine = RoutineOut.model_validate({**candidate.model_dump(), "id": routine_id})
        with self._lock:
            self._routines[routine_id] = (self._next_position, routine)
            self._next_position += 1
        return routine.model_copy()

    def update(self, routine_id: str, changes: dict[str, Any]) -> RoutineOut | None:
        with self._lock:
            entry = self._routines.get(routine_id)
            if entry is None:
                return None
            position, existing = entry
            updated = _merge(existing, changes)
            self._routines[routine_id] = (position, updated)
        return updated.model_copy()

    def update_status(self, routine_id: str, is_active: bool) -> RoutineOut | None:
        return self.update(routine_id, {"is_active": is_active})

    def delete(self, routine_id: str) -> bool:
        with self._lock:
            return self._routines.pop(routine_id, None) is not None


class DatabaseStorage(RoutineStorage):
    backend = "database"

    def __init__(self, session_factory=None) -> None:
        self._session_factory = session_factory or database.SessionLocal
        if self._session_factory is None:
            raise StorageError("DATABASE_URL is not configured")

    @contextmanager
    def _session(self):
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            raise StorageError(str(exc)) from exc
        finally:
            db.close()

    def list_all(self) -> list[RoutineOut]:
        with self._session() as db:
            rows = db.query(Routine).order_by(Routine.start_time.asc(), Routine.position.asc()).all()
            return [RoutineOut.model_validate(row) for row in rows]

    def get_one(self, routine_id: str) -> RoutineOut | None:
        with self._session() as db:
            row = db.get(Routine, routine_id)
            return RoutineOut.model_validate(row) if row else None

    def create(self, candidate: RoutineIn) -> RoutineOut:
        with self._session() as db:
            position = (db.query(func.max(Routine.position)).scalar() or 0) + 1
            row = Routine(**candidate.model_dump(), position=position)
            db.add(row)
            db.commit()
            db.refresh(row)
            return RoutineOut.model_validate(row)

    def update(self, routine_id: str, changes: dict[str, Any]) -> RoutineOut | None:
        with self._session() as db:
            row = db.get(Routine, routine_id)
            if not row:
                return None
            updated = _merge(RoutineOut.model_validate(row), changes)
            for key in _ROUTINE_FIELDS:
                setattr(row, key, getattr(updated, key))
            db.commit()
            db.refresh(row)
            return RoutineOut.model_validate(row)

    def update_status(self, routine_id: str, is_active: bool) -> RoutineOut | None:
        with self._session() as db:
            row = db.get(Routine, routine_id)
            if not row:
                return None
            row.is_active = is_active
            db.commit()
            db.refresh(row)
            return RoutineOut.model_validate(row)

    def delete(self, routine_id: str) -> bool:
        with self._session() as db:
            row = db.get(Routine, routine_id)
            if not row:
                return False
            db.delete(row)
            db.commit()
            return True


def create_storage() -> RoutineStorage:
    if database.DATABASE_URL:
        database.ensure_schema()
        return DatabaseStorage()
    return MemStorage(SEED_ROUTINES if SEED_MEMORY else None)


_storage: RoutineStorage | None = None
_storage_lock = threading.Lock()


def get_storage() -> RoutineStorage:
    global _storage
    with _storage_lock:
        if _storage is None:
            _storage = create_storage()
            logger.info("Routine storage ready (backend=%s)", _storage.backend)
        return _storage

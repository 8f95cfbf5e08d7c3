import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from routine_admin.schemas.routine import (
    RoutineOut,
    ValidationResult,
    merge_routine,
    result_from_error,
    validate_partial,
    validate_routine,
    validate_status,
)
from routine_admin.services import filters
from routine_admin.services.realtime import hub
from routine_admin.services.storage import RoutineStorage, StorageError, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/routines", tags=["routines"])

NOT_FOUND = "Routine not found"


def get_routine_storage() -> RoutineStorage:
    return get_storage()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _invalid(result: ValidationResult) -> JSONResponse:
    return JSONResponse({"error": "Validation failed", "details": result.details()}, status_code=400)


def _storage_failure(message: str) -> JSONResponse:
    logger.exception(message)
    return _error(500, message)


def check_frequency(frequency: str) -> str | None:
    if frequency in filters.FREQUENCY_FILTERS:
        return None
    return f"Invalid frequency filter. Use one of: {', '.join(filters.FREQUENCY_FILTERS)}."


@router.get("", response_model=list[RoutineOut])
def list_routines(
    frequency: str = filters.ALL_FREQUENCIES,
    search: str | None = None,
    active_only: bool = Query(default=False, alias="activeOnly"),
    storage: RoutineStorage = Depends(get_routine_storage),
):
    problem = check_frequency(frequency)
    if problem:
        return _error(400, problem)
    try:
        routines = storage.list_all()
    except StorageError:
        return _storage_failure("Failed to fetch routines")

    if active_only:
        return filters.search(filters.active_routines_view(routines, frequency), search)
    return filters.routines_view(routines, frequency, search)


@router.get("/stats")
def routine_stats(storage: RoutineStorage = Depends(get_routine_storage)):
    try:
        routines = storage.list_all()
    except StorageError:
        return _storage_failure("Failed to fetch routine stats")
    return filters.summarize(routines)


@router.get("/{routine_id}", response_model=RoutineOut)
def get_routine(routine_id: str, storage: RoutineStorage = Depends(get_routine_storage)):
    try:
        routine = storage.get_one(routine_id)
    except StorageError:
        return _storage_failure("Failed to fetch routine")
    if routine is None:
        return _error(404, NOT_FOUND)
    return routine


def _announce(background_tasks: BackgroundTasks, operation: str, routine_id: str, routine: RoutineOut | None = None) -> None:
    snapshot = routine.model_dump(by_alias=True) if routine is not None else None
    background_tasks.add_task(hub.routine_changed, operation, routine_id, snapshot)


@router.post("", response_model=RoutineOut, status_code=201)
def create_routine(
    background_tasks: BackgroundTasks,
    payload: Any = Body(default=None),
    storage: RoutineStorage = Depends(get_routine_storage),
):
    result = validate_routine(payload)
    if not result.ok:
        return _invalid(result)
    try:
        routine = storage.create(result.value)
    except StorageError:
        return _storage_failure("Failed to create routine")
    logger.info("created routine %s (%s)", routine.id, routine.name)
    _announce(background_tasks, "created", routine.id, routine)
    return routine


@router.patch("/{routine_id}", response_model=RoutineOut)
def update_routine(
    routine_id: str,
    background_tasks: BackgroundTasks,
    payload: Any = Body(default=None),
    storage: RoutineStorage = Depends(get_routine_storage),
):
    result = validate_partial(payload)
    if not result.ok:
        return _invalid(result)
    patch = result.value
    try:
        existing = storage.get_one(routine_id)
        if existing is None:
            return _error(404, NOT_FOUND)
        merged = merge_routine(existing, patch)
        if not merged.ok:
            return _invalid(merged)
        routine = storage.update(routine_id, patch.changes())
    except ValidationError as exc:
        # The record changed between the lookup and the write.
        return _invalid(result_from_error(exc))
    except StorageError:
        return _storage_failure("Failed to update routine")
    if routine is None:
        return _error(404, NOT_FOUND)
    _announce(background_tasks, "updated", routine.id, routine)
    return routine


@router.patch("/{routine_id}/status", response_model=RoutineOut)
def update_routine_status(
    routine_id: str,
    background_tasks: BackgroundTasks,
    payload: Any = Body(default=None),
    storage: RoutineStorage = Depends(get_routine_storage),
):
    result = validate_status(payload)
    if not result.ok:
        return _invalid(result)
    try:
        routine = storage.update_status(routine_id, result.value.is_active)
    except StorageError:
        return _storage_failure("Failed to update routine status")
    if routine is None:
        return _error(404, NOT_FOUND)
    _announce(background_tasks, "status_changed", routine.id, routine)
    return routine


@router.delete("/{routine_id}", status_code=204)
def delete_routine(
    routine_id: str,
    background_tasks: BackgroundTasks,
    storage: RoutineStorage = Depends(get_routine_storage),
):
    try:
        deleted = storage.delete(routine_id)
    except StorageError:
        return _storage_failure("Failed to delete routine")
    if not deleted:
        return _error(404, NOT_FOUND)
    logger.info("deleted routine %s", routine_id)
    _announce(background_tasks, "deleted", routine_id)
    return Response(status_code=204, background=background_tasks)

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from routine_admin.api.routine import check_frequency, get_routine_storage
from routine_admin.schemas.timeline import TimelineOut
from routine_admin.services import filters
from routine_admin.services.storage import RoutineStorage, StorageError
from routine_admin.services.timeline import build_timeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/timeline", tags=["timeline"])


@router.get("", response_model=TimelineOut)
def get_timeline(
    frequency: str = filters.ALL_FREQUENCIES,
    active_only: bool = Query(default=False, alias="activeOnly"),
    storage: RoutineStorage = Depends(get_routine_storage),
):
    problem = check_frequency(frequency)
    if problem:
        return JSONResponse({"error": problem}, status_code=400)
    try:
        routines = storage.list_all()
    except StorageError:
        logger.exception("Failed to build timeline")
        return JSONResponse({"error": "Failed to build timeline"}, status_code=500)

    if active_only:
        routines = filters.active_routines_view(routines, frequency)
    else:
        routines = filters.filter_by_frequency(routines, frequency)
    return build_timeline(routines)

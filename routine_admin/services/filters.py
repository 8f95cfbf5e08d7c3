from routine_admin.schemas.routine import FREQUENCY_TYPES, RoutineOut

ALL_FREQUENCIES = "all"
FREQUENCY_FILTERS = (ALL_FREQUENCIES, *FREQUENCY_TYPES)


def filter_by_frequency(routines: list[RoutineOut], frequency: str = ALL_FREQUENCIES) -> list[RoutineOut]:
    if frequency == ALL_FREQUENCIES:
        return list(routines)
    return [routine for routine in routines if routine.frequency_type == frequency]


def _matches(routine: RoutineOut, needle: str) -> bool:
    if needle in routine.name.lower():
        return True
    return routine.description is not None and needle in routine.description.lower()


def search(routines: list[RoutineOut], query: str | None) -> list[RoutineOut]:
    needle = (query or "").lower()
    if not needle:
        return list(routines)
    return [routine for routine in routines if _matches(routine, needle)]


def active_only(routines: list[RoutineOut]) -> list[RoutineOut]:
    return [routine for routine in routines if routine.is_active is True]


def routines_view(
    routines: list[RoutineOut],
    frequency: str = ALL_FREQUENCIES,
    query: str | None = None,
) -> list[RoutineOut]:
    return search(filter_by_frequency(routines, frequency), query)


def active_routines_view(routines: list[RoutineOut], frequency: str = ALL_FREQUENCIES) -> list[RoutineOut]:
    return filter_by_frequency(active_only(routines), frequency)


def summarize(routines: list[RoutineOut]) -> dict:
    active = len(active_only(routines))
    return {
        "total": len(routines),
        "active": active,
        "inactive": len(routines) - active,
        "byFrequency": {
            frequency: len(filter_by_frequency(routines, frequency)) for frequency in FREQUENCY_TYPES
        },
    }

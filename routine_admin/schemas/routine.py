from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

FREQUENCY_TYPES = ("second", "minute", "hour")
START_TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"

TimeUnit = Literal["second", "minute", "hour"]

_JSON_NAMES = {
    "name": "name",
    "description": "description",
    "frequency_type": "frequencyType",
    "frequency_value": "frequencyValue",
    "start_time": "startTime",
    "duration": "duration",
    "duration_unit": "durationUnit",
    "is_active": "isActive",
}

_CONSTRAINT_MESSAGES = {
    ("name", "string_too_short"): "Name is required",
    ("frequencyValue", "greater_than_equal"): "Value must be greater than 0",
    ("duration", "greater_than_equal"): "Duration must be greater than 0",
    ("startTime", "string_pattern_mismatch"): "Invalid time format, use HH:MM",
}

_TYPE_MESSAGES = {
    "missing": "Required",
    "literal_error": "Must be one of: second, minute, hour",
    "int_type": "Must be an integer",
    "int_from_float": "Must be an integer",
    "bool_type": "Must be a boolean",
    "string_type": "Must be a string",
}


class RoutineIn(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None
    frequency_type: TimeUnit = Field(alias="frequencyType")
    frequency_value: int = Field(alias="frequencyValue", ge=1, strict=True)
    start_time: str = Field(alias="startTime", pattern=START_TIME_PATTERN)
    duration: int = Field(ge=1, strict=True)
    duration_unit: TimeUnit = Field(alias="durationUnit")
    is_active: bool = Field(alias="isActive", strict=True)

    class Config:
        populate_by_name = True


class RoutineOut(RoutineIn):
    id: str

    class Config:
        populate_by_name = True
        from_attributes = True


class RoutinePatch(BaseModel):
    """Any subset of routine fields. Absent fields are left as they are on the stored record."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    frequency_type: TimeUnit | None = Field(default=None, alias="frequencyType")
    frequency_value: int | None = Field(default=None, alias="frequencyValue", ge=1, strict=True)
    start_time: str | None = Field(default=None, alias="startTime", pattern=START_TIME_PATTERN)
    duration: int | None = Field(default=None, ge=1, strict=True)
    duration_unit: TimeUnit | None = Field(default=None, alias="durationUnit")
    is_active: bool | None = Field(default=None, alias="isActive", strict=True)

    class Config:
        populate_by_name = True

    # Defaults are not validated, so this only fires on an explicit null.
    @field_validator(
        "name", "frequency_type", "frequency_value", "start_time", "duration", "duration_unit", "is_active"
    )
    @classmethod
    def _reject_null(cls, value):
        if value is None:
            raise PydanticCustomError("null_not_allowed", "Must not be null")
        return value

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class RoutineStatusIn(BaseModel):
    is_active: bool = Field(alias="isActive", strict=True)

    class Config:
        populate_by_name = True


@dataclass
class FieldError:
    field: str
    message: str


@dataclass
class ValidationResult:
    value: Any = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def details(self) -> list[dict[str, str]]:
        return [{"field": item.field, "message": item.message} for item in self.errors]


def _field_errors(exc: ValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    for err in exc.errors():
        loc = err.get("loc") or ("",)
        raw = str(loc[0])
        name = _JSON_NAMES.get(raw, raw)
        kind = err.get("type", "")
        message = _CONSTRAINT_MESSAGES.get((name, kind)) or _TYPE_MESSAGES.get(kind) or err.get("msg", "Invalid value")
        errors.append(FieldError(field=name, message=message))
    return errors


def _validate(model: type[BaseModel], candidate: Any) -> ValidationResult:
    if not isinstance(candidate, dict):
        return ValidationResult(errors=[FieldError(field="", message="Expected a JSON object")])
    try:
        return ValidationResult(value=model.model_validate(candidate))
    except ValidationError as exc:
        return result_from_error(exc)


def validate_routine(candidate: Any) -> ValidationResult:
    """Strict mode: every field except description must be present and valid."""
    return _validate(RoutineIn, candidate)


def validate_partial(candidate: Any) -> ValidationResult:
    """Partial mode: only the fields present in the candidate are checked."""
    return _validate(RoutinePatch, candidate)


def validate_status(candidate: Any) -> ValidationResult:
    return _validate(RoutineStatusIn, candidate)


def merge_routine(existing: RoutineIn, patch: RoutinePatch) -> ValidationResult:
    """Apply the patch onto a copy of the existing record and validate the merged whole."""
    data = existing.model_dump(include=set(RoutineIn.model_fields))
    data.update(patch.changes())
    return validate_routine(data)


def result_from_error(exc: ValidationError) -> ValidationResult:
    return ValidationResult(errors=_field_errors(exc))

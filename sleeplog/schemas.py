"""
Wire-format models for the request layer.

Inputs are validated here, before anything reaches the duration engine.
Outputs serialise with camelCase aliases via model_dump(by_alias=True).
"""
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from sleeplog.utils.errors import ValidationError
from sleeplog.utils.time_utils import DATE_FORMAT, TIMESTAMP_FORMAT, format_date, parse_date

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIMESTAMP_PATTERN = r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}$"


class SleepFieldsInput(BaseModel):
    """Body of an upsert: the day's full set of sleep fields."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    bedtime: Optional[str] = Field(default=None, pattern=TIMESTAMP_PATTERN)
    wake_time: Optional[str] = Field(default=None, alias="wakeTime", pattern=TIMESTAMP_PATTERN)
    nap_duration_minutes: int = Field(default=0, alias="napDurationMin", ge=0, strict=True)

    @field_validator("bedtime", "wake_time", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        """Treat '' as not logged."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("bedtime", "wake_time")
    @classmethod
    def real_calendar_time(cls, v):
        # The pattern only checks shape; 2024-02-30 25:00 must still be rejected
        if v is not None:
            datetime.strptime(v, TIMESTAMP_FORMAT)
        return v


class HabitLabelInput(BaseModel):
    label: str = Field(min_length=1, max_length=255)

    @field_validator("label")
    @classmethod
    def strip_label(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("label must not be blank")
        return v


class HabitCheck(BaseModel):
    key: str
    value: bool


class SleepView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bedtime: Optional[str] = None
    wake_time: Optional[str] = Field(default=None, alias="wakeTime")
    nap_duration_minutes: int = Field(default=0, alias="napDurationMin")
    duration_minutes: int = Field(default=0, alias="durationMin")


class DailyEntryView(BaseModel):
    id: str
    date: str
    sleep: SleepView
    habits: List[HabitCheck] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: Any) -> "DailyEntryView":
        day = format_date(record.date)
        return cls(
            id=day,
            date=day,
            sleep=SleepView(
                bedtime=record.bedtime,
                wake_time=record.wake_time,
                nap_duration_minutes=record.nap_duration_minutes,
                duration_minutes=record.duration_minutes,
            ),
            habits=[HabitCheck(**h) for h in record.habits],
        )


class SleepStatsPeriod(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bedtime: Optional[str] = None
    wake_time: Optional[str] = Field(default=None, alias="wakeTime")
    duration: Optional[str] = None


class SleepStatsResponse(BaseModel):
    week: SleepStatsPeriod
    month: SleepStatsPeriod
    year: SleepStatsPeriod

    @classmethod
    def from_stats(cls, stats: Dict[str, Dict[str, Optional[str]]]) -> "SleepStatsResponse":
        return cls(**{period: SleepStatsPeriod(**values) for period, values in stats.items()})


class HabitDefinitionView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    key: str
    label: str
    created_at: Optional[str] = Field(default=None, alias="createdAt")


# =========================================================================
# Boundary helpers
# =========================================================================

def _describe(e: PydanticValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


def validate_date(value: Union[str, date]) -> date:
    """Parse a YYYY-MM-DD path parameter or raise ValidationError."""
    if isinstance(value, str):
        if not re.fullmatch(DATE_PATTERN, value):
            raise ValidationError(f"Invalid date '{value}', expected {DATE_FORMAT}")
    try:
        return parse_date(value)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def validate_sleep_fields(data: Union[Dict[str, Any], SleepFieldsInput, None]) -> SleepFieldsInput:
    if isinstance(data, SleepFieldsInput):
        return data
    try:
        return SleepFieldsInput.model_validate(data or {})
    except PydanticValidationError as e:
        raise ValidationError(_describe(e)) from e


def validate_habit_label(label: Any) -> str:
    try:
        return HabitLabelInput(label=label).label
    except PydanticValidationError as e:
        raise ValidationError(_describe(e)) from e


def validate_habit_key(key: Any) -> str:
    if not isinstance(key, str) or not key.strip():
        raise ValidationError("Habit key must be a non-empty string")
    return key.strip()

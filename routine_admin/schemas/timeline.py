from pydantic import BaseModel, Field


class TimelineBar(BaseModel):
    id: str
    name: str
    is_active: bool = Field(alias="isActive")
    frequency_type: str = Field(alias="frequencyType")
    start_time: str = Field(alias="startTime")
    left: float
    width: float
    display_width: float = Field(alias="displayWidth")
    frequency_label: str = Field(alias="frequencyLabel")
    duration_label: str = Field(alias="durationLabel")

    class Config:
        populate_by_name = True


class TimelineOut(BaseModel):
    hours: list[str]
    now: float
    bars: list[TimelineBar]

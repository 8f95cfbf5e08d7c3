import uuid
from sqlalchemy import Boolean, Column, Enum, Integer, String, Text
from routine_admin.db import Base

TIME_UNITS = ("second", "minute", "hour")


class Routine(Base):
    __tablename__ = "routines"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    frequency_type = Column(Enum(*TIME_UNITS, name="frequency_type_enum"), nullable=False)
    frequency_value = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False, index=True)
    duration = Column(Integer, nullable=False)
    duration_unit = Column(Enum(*TIME_UNITS, name="duration_unit_enum"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    # Insertion order, used to break ties between equal start times.
    position = Column(Integer, nullable=False, default=0)

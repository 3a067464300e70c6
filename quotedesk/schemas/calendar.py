from datetime import date as Date, datetime, time
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from quotedesk.schemas.organization import DayHours
from quotedesk.schemas.types import TimeStr

EventType = Literal["unavailable", "booked", "requested"]


class CalendarEventCreate(BaseModel):
    date: Date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    type: EventType = "unavailable"
    title: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    quotation_id: Optional[int] = None
    employee_id: Optional[int] = None

    @model_validator(mode="after")
    def check_times(self):
        if self.end_time is not None and self.start_time is None:
            raise ValueError("end_time requires start_time")
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class CalendarEventUpdate(BaseModel):
    date: Optional[Date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    type: Optional[EventType] = None
    title: Optional[str] = None
    notes: Optional[str] = None
    employee_id: Optional[int] = None


class CalendarEventResponse(BaseModel):
    id: int
    date: Date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    type: str
    title: Optional[str] = None
    notes: Optional[str] = None
    quotation_id: Optional[int] = None
    employee_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UnavailableDatesResponse(BaseModel):
    dates: List[Date]


class BookedTimesResponse(BaseModel):
    date: Date
    times: List[TimeStr]


class SlotsResponse(BaseModel):
    date: Date
    blocked: bool
    slots: List[TimeStr]


class OpeningHoursResponse(BaseModel):
    opening_hours: Dict[str, DayHours]

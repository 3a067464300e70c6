from sqlalchemy import Column, Integer, String, Date, Time, DateTime, Text, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID

from quotedesk.database import Base, utcnow


class CalendarEvent(Base):
    """
    Calendar entry for an organization.

    type:
        unavailable - staff-entered block
        booked      - confirmed job (created on quote approval)
        requested   - tentative, created when a lead picks a date
    An event without start_time covers the whole day.
    """

    __tablename__ = "calendar_events"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(
        UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    type = Column(String(20), nullable=False, default="unavailable")
    title = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="SET NULL"), nullable=True, index=True)
    employee_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_calendar_events_org_date", "organization_id", "date"),
    )

    def __repr__(self):
        return f"<CalendarEvent {self.type} {self.date}>"

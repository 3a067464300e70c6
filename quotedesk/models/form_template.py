from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import UUID

from quotedesk.database import Base, utcnow


class FormTemplate(Base):
    """Configurable copy and extra fields for the public lead form."""

    __tablename__ = "form_templates"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(
        UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(255), nullable=False, default="Offerte aanvragen")
    subtitle = Column(Text, nullable=True)
    submit_text = Column(String(100), nullable=False, default="Verstuur aanvraag")
    success_message = Column(Text, nullable=True)
    # [{"name": ..., "label": ..., "type": "text", "required": false}, ...]
    fields = Column(JSON, nullable=False, default=list)
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

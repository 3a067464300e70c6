"""
Dossier: post-sale workspace per invoiced quotation.

Status moves open -> completed -> signed (services.dossier_workflow).
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.dialects.postgresql import UUID

from quotedesk.database import Base, utcnow


class Dossier(Base):
    __tablename__ = "dossiers"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(
        UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, unique=True)
    client_user_id = Column(Integer, ForeignKey("client_users.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="open")
    assigned_employee_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Dossier {self.id} {self.status}>"


class DossierEntry(Base):
    """Photo, file or note attached to a dossier by the tenant or the client."""

    __tablename__ = "dossier_entries"

    id = Column(Integer, primary_key=True, index=True)
    dossier_id = Column(Integer, ForeignKey("dossiers.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False, default="note")  # photo, file, note
    content = Column(Text, nullable=True)
    file_path = Column(String(500), nullable=True)
    caption = Column(Text, nullable=True)
    created_by = Column(String(20), nullable=False, default="tenant")  # tenant, client
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class DossierMessage(Base):
    __tablename__ = "dossier_messages"

    id = Column(Integer, primary_key=True, index=True)
    dossier_id = Column(Integer, ForeignKey("dossiers.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_type = Column(String(20), nullable=False)  # tenant, client
    sender_name = Column(String(255), nullable=True)
    message = Column(Text, nullable=False)
    file_path = Column(String(500), nullable=True)
    # Read from the recipient's point of view
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class DossierSignature(Base):
    __tablename__ = "dossier_signatures"

    id = Column(Integer, primary_key=True, index=True)
    dossier_id = Column(Integer, ForeignKey("dossiers.id", ondelete="CASCADE"), nullable=False, unique=True)
    signature = Column(Text, nullable=False)
    rating = Column(Integer, nullable=True)
    feedback = Column(Text, nullable=True)
    signed_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

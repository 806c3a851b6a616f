from sqlalchemy import Column, String, DateTime, ForeignKey, func, Enum, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from eventhub.db.session import Base, generate_id, utcnow
import enum


class RSVPStatusEnum(str, enum.Enum):
    attending = "attending"
    declined = "declined"


class RSVP(Base):
    __tablename__ = "rsvps"
    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    status = Column(Enum(RSVPStatusEnum, name="rsvp_status"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    user = relationship("User")
    event = relationship("Event", back_populates="rsvps")

    # One RSVP per (user, event); the constraint name is matched on IntegrityError
    __table_args__ = (
        UniqueConstraint('user_id', 'event_id', name='uq_user_event_rsvp'),
        Index('idx_rsvp_user', 'user_id'),
        Index('idx_rsvp_event_status', 'event_id', 'status'),
    )

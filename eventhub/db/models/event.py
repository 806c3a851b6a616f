from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func, Index
from sqlalchemy.orm import relationship
from eventhub.db.session import Base, generate_id, utcnow


class Event(Base):
    __tablename__ = "events"
    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    # Free-form date as entered by the organizer
    date = Column(String(64), nullable=False)
    # NULL means unlimited
    capacity = Column(Integer, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    creator = relationship("User")
    rsvps = relationship("RSVP", back_populates="event", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index('idx_event_organizer', 'created_by'),
        Index('idx_event_created_at', 'created_at'),
    )

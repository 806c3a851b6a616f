from sqlalchemy import Column, String, DateTime, ForeignKey, func, Index
from sqlalchemy.orm import relationship
from eventhub.db.session import Base, generate_id, utcnow


class User(Base):
    """Identity owned by the auth module; the domain only reads it."""

    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    accounts = relationship("Account", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)


class Account(Base):
    """Login credentials for a user (one row per provider)."""

    __tablename__ = "accounts"
    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    provider_id = Column(String(64), nullable=False, default="credential")
    hashed_password = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="accounts")

    __table_args__ = (
        Index('idx_account_user', 'user_id'),
    )

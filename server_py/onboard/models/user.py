from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from onboard.core.database import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(60), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=True)
    role = Column(String(16), default="user", nullable=False, index=True)  # user, admin
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    chat_messages = relationship("ChatMessage", back_populates="sender")

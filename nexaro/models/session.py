"""
Server-side Session Model

A session row only records which user it belongs to. Role and organization
are always read from the user row at request time, never copied here.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from nexaro.database import Base
from nexaro.utils.clock import utcnow


class UserSession(Base):
    __tablename__ = "user_sessions"

    # Opaque random id, carried inside the signed session cookie
    id = Column(String(64), primary_key=True)

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)

    user = relationship("User", back_populates="sessions")

    def __repr__(self):
        return f"<UserSession user={self.user_id} expires={self.expires_at}>"

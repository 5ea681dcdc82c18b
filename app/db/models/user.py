from sqlalchemy import Column, String, Integer, Boolean, DateTime, Uuid, false, func
import uuid
from app.db.session import Base


class User(Base):
    """Public profile of a platform user, as embedded in RSVP request listings."""
    __tablename__ = "users"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, index=True, nullable=True)
    name = Column(String(255), nullable=True)
    username = Column(String(100), unique=True, nullable=True)
    mobile = Column(String(32), nullable=True)
    image_url = Column(String(512), nullable=True)
    thumbnail_url = Column(String(512), nullable=True)
    total_gamification_points = Column(Integer, nullable=False, default=0, server_default="0")
    total_gamification_points_weekly = Column(Integer, nullable=False, default=0, server_default="0")
    is_deleted = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), server_default=func.now())

from sqlalchemy import Column, String, Boolean, DateTime, JSON, Text
from sqlalchemy.sql import func
from database import Base


# CONSOLE SESSION - one row per logged-in browser (admin or student)
class ConsoleSession(Base):
    __tablename__ = "console_sessions"

    id = Column(String(64), primary_key=True, index=True)  # Cookie value
    role = Column(String(20), nullable=False)  # admin, student

    # Upstream service credentials
    access_token = Column(Text, nullable=False)
    user_id = Column(String(64), nullable=True)
    display_name = Column(String(255), nullable=True)

    # Login response payload (student profile for the portal)
    info = Column(JSON, default=dict)

    # UI preference
    sidebar_collapsed = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

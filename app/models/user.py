from sqlalchemy import Column, String, DateTime, Boolean, JSON, Uuid
from sqlalchemy.sql import func
import uuid
from app.core.database import Base


class User(Base):
    """
    LabelLens account.

    The health profile (conditions and allergies) personalizes AI analysis
    of scanned products.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    username = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)

    health_conditions = Column(JSON, nullable=False, default=list)
    allergies = Column(JSON, nullable=False, default=list)

    is_verified = Column(Boolean, nullable=False, default=False)
    is_logged_in = Column(Boolean, nullable=False, default=False)

    # Password reset: one-time code, its expiry, and whether it has been verified
    otp = Column(String, nullable=True)
    otp_expiry = Column(DateTime(timezone=True), nullable=True)
    otp_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

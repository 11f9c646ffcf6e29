from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from confbot.core.database import Base


class GlobalRole(str, enum.Enum):
    user = "user"
    conference_admin = "conference_admin"
    main_admin = "main_admin"


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    identity = Column(String(64), unique=True, nullable=False, index=True)  # External chat user id
    username = Column(String(255), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    global_role = Column(SAEnum(GlobalRole, name="global_role"), nullable=False, default=GlobalRole.user)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    profiles = relationship("Profile", back_populates="account", cascade="all, delete-orphan")

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        return self.username or self.identity

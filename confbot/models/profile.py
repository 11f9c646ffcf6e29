from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from confbot.core.database import Base


class ProfileRole(str, enum.Enum):
    speaker = "speaker"
    investor = "investor"
    participant = "participant"
    organizer = "organizer"


class Profile(Base):
    __tablename__ = "profiles"
    __table_args__ = (
        # One profile per (account, conference)
        UniqueConstraint("account_id", "conference_id", name="uq_profile_account_conference"),
    )

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    conference_id = Column(Integer, ForeignKey("conferences.id", ondelete="CASCADE"), nullable=False, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    interests = Column(JSON, nullable=False, default=list)
    offerings = Column(JSON, nullable=False, default=list)
    looking_for = Column(JSON, nullable=False, default=list)
    roles = Column(JSON, nullable=False, default=list)  # Subset of ProfileRole values
    onboarding_completed = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    account = relationship("Account", back_populates="profiles")
    conference = relationship("Conference", back_populates="profiles")

    def has_role(self, role: ProfileRole) -> bool:
        return role.value in (self.roles or [])

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        return self.account.display_name if self.account else f"#{self.id}"

import secrets
import string
from sqlalchemy import Boolean, Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from confbot.core.database import Base


def generate_conference_code(length: int = 6) -> str:
    """Generate a random human-typeable conference code."""
    alphabet = string.ascii_uppercase + string.digits
    # Exclude confusing characters like 0, O, I, 1
    alphabet = alphabet.replace('0', '').replace('O', '').replace('I', '').replace('1', '')
    return ''.join(secrets.choice(alphabet) for _ in range(length))


class ConferenceAccess(str, enum.Enum):
    public = "public"
    private = "private"


class Conference(Base):
    __tablename__ = "conferences"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    code = Column(String(20), unique=True, nullable=False, index=True)
    access = Column(SAEnum(ConferenceAccess, name="conference_access"), nullable=False, default=ConferenceAccess.public)
    starts_at = Column(DateTime(timezone=True), nullable=True)
    ends_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_ended = Column(Boolean, nullable=False, default=False)
    current_slide_url = Column(String(2048), nullable=True)
    current_slide_title = Column(String(200), nullable=True)
    created_by = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships with cascades to avoid orphan rows
    admin_links = relationship(
        "ConferenceAdmin",
        back_populates="conference",
        cascade="all, delete-orphan",
        order_by="ConferenceAdmin.id",
    )
    profiles = relationship("Profile", back_populates="conference", cascade="all, delete-orphan")
    questions = relationship("Question", back_populates="conference", cascade="all, delete-orphan")
    polls = relationship("Poll", back_populates="conference", cascade="all, delete-orphan")
    creator = relationship("Account", foreign_keys=[created_by])

    @property
    def admin_profile_ids(self):
        return [link.profile_id for link in self.admin_links]


class ConferenceAdmin(Base):
    __tablename__ = "conference_admins"
    __table_args__ = (
        UniqueConstraint("conference_id", "profile_id", name="uq_conference_admin"),
    )

    id = Column(Integer, primary_key=True, index=True)
    conference_id = Column(Integer, ForeignKey("conferences.id", ondelete="CASCADE"), nullable=False, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    conference = relationship("Conference", back_populates="admin_links")
    profile = relationship("Profile")


def normalize_code(code: str) -> str:
    """Codes are typed by hand; compare them case-insensitively."""
    return (code or "").strip().upper()

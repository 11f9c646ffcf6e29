from sqlalchemy import Boolean, Column, Integer, Text, DateTime, ForeignKey
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from confbot.core.database import Base


class QuestionStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    conference_id = Column(Integer, ForeignKey("conferences.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)  # Null = anonymous
    text = Column(Text, nullable=False)
    status = Column(SAEnum(QuestionStatus, name="question_status"), nullable=False, default=QuestionStatus.pending, index=True)
    target_speaker_id = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)  # Null = all speakers
    answer = Column(Text, nullable=True)
    answered_by_id = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    is_answered = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    conference = relationship("Conference", back_populates="questions")
    author = relationship("Profile", foreign_keys=[author_id])
    target_speaker = relationship("Profile", foreign_keys=[target_speaker_id])
    answered_by = relationship("Profile", foreign_keys=[answered_by_id])

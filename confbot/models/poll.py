from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from confbot.core.database import Base


class Poll(Base):
    __tablename__ = "polls"

    id = Column(Integer, primary_key=True, index=True)
    conference_id = Column(Integer, ForeignKey("conferences.id", ondelete="CASCADE"), nullable=False, index=True)
    question = Column(String(200), nullable=False)
    options_json = Column(JSON, nullable=False)  # List of {"id": int, "text": str}, ids 0-based
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    conference = relationship("Conference", back_populates="polls")
    votes = relationship("PollVote", back_populates="poll", cascade="all, delete-orphan")

    def option(self, option_id: int):
        for opt in self.options_json or []:
            if opt["id"] == option_id:
                return opt
        return None


class PollVote(Base):
    __tablename__ = "poll_votes"
    __table_args__ = (
        # A voter appears on at most one option per poll
        UniqueConstraint("poll_id", "voter_identity", name="uq_poll_vote_poll_voter"),
    )

    id = Column(Integer, primary_key=True, index=True)
    poll_id = Column(Integer, ForeignKey("polls.id", ondelete="CASCADE"), nullable=False, index=True)
    option_id = Column(Integer, nullable=False)  # Validated in the poll service against options_json
    voter_identity = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    poll = relationship("Poll", back_populates="votes")

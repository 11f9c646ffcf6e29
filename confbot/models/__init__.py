# Import all models here so Base.metadata is complete for Alembic
from confbot.models.account import Account, GlobalRole
from confbot.models.conference import Conference, ConferenceAdmin, ConferenceAccess
from confbot.models.profile import Profile, ProfileRole
from confbot.models.question import Question, QuestionStatus
from confbot.models.poll import Poll, PollVote

__all__ = [
    "Account",
    "GlobalRole",
    "Conference",
    "ConferenceAdmin",
    "ConferenceAccess",
    "Profile",
    "ProfileRole",
    "Question",
    "QuestionStatus",
    "Poll",
    "PollVote",
]

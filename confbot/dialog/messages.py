"""User-facing texts."""

from confbot.core.errors import DomainError, ErrorCode

RETRY_HINT = 'Try again or send "cancel" to exit.'

WELCOME = "👋 Welcome to the conference networking bot!"
MAIN_MENU = "🏠 Main menu\n\nChoose an action:"
CANCELLED = "✅ Current action cancelled."
NO_ACTIVE_ACTION = "ℹ️ There is no active action. Choose one from the menu or send /start."
SESSION_RESET = "ℹ️ Your previous action could not be continued and was reset. Use the menu to start again."
UNKNOWN_COMMAND = "ℹ️ Unknown command. Use /start to open the menu."
HELP = (
    "Use the menu buttons to join conferences, ask questions and vote in polls.\n"
    'Send "cancel" at any time to abort the current action.'
)
JOIN_FIRST = "❌ Join a conference first."
GENERIC_FAILURE = "❌ Something went wrong. Please try again later."

ERROR_MESSAGES = {
    ErrorCode.ACCESS_DENIED: "❌ Access denied.",
    ErrorCode.NOT_SPEAKER: "❌ You don't have the speaker role in this conference.",
    ErrorCode.QUESTION_NOT_FOR_YOU: "❌ This question is addressed to another speaker.",
    ErrorCode.CONFERENCE_NOT_FOUND: "❌ Conference not found or already ended. Check the code.",
    ErrorCode.TARGET_USER_NOT_FOUND: "❌ User not found. They must open the bot and join the conference first.",
    ErrorCode.QUESTION_NOT_FOUND: "❌ Question not found.",
    ErrorCode.POLL_NOT_FOUND: "❌ Poll not found.",
    ErrorCode.TARGET_USER_NOT_ADMIN: "❌ This user is not an admin of the conference.",
    ErrorCode.ALREADY_VOTED: "❌ You have already voted in this poll.",
    ErrorCode.POLL_INACTIVE: "❌ This poll is closed.",
    ErrorCode.CONFERENCE_ENDED: "❌ The conference has ended; it can no longer be changed.",
    ErrorCode.INVALID_TRANSITION: "❌ This question has already been moderated.",
    ErrorCode.CODE_GENERATION_FAILED: "❌ Could not generate a conference code. Please try again.",
    ErrorCode.STORAGE_FAILURE: GENERIC_FAILURE,
}


def error_text(error: DomainError) -> str:
    if error.code is ErrorCode.VALIDATION_ERROR:
        return f"❌ Invalid input: {error.details}" if error.details else "❌ Invalid input."
    return ERROR_MESSAGES.get(error.code, GENERIC_FAILURE)

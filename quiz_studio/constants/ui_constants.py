"""User-facing text shared by the desktop shell and the web page."""

WINDOW_TITLE: str = "QuizStudio"
PAGE_TITLE: str = "QuizStudio"

FEEDBACK_CORRECT: str = "Correct!"
FEEDBACK_INCORRECT: str = "Incorrect."

QUIZ_SAVED_MESSAGE: str = "Quiz saved successfully!"
SAVE_FAILED_TEMPLATE: str = "Failed to save quiz: {error}"
LOAD_FAILED_TEMPLATE: str = "Failed to load quizzes: {error}"
VALIDATION_FAILED_PREFIX: str = "Cannot save quiz"
SESSION_FAILED_TEMPLATE: str = "Could not sign in: {error}"
STARTUP_FAILED_TITLE: str = "QuizStudio failed to start"

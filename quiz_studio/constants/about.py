"""Static metadata describing QuizStudio."""

APP_NAME = "QuizStudio"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "QuizStudio lets you browse shared quizzes, take them one question at a time "
    "with instant feedback, and author new multiple-choice quizzes."
)

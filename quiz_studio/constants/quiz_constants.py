"""Quiz-related constants shared across UI and core layers."""

OPTIONS_PER_QUESTION: int = 4
NOTICE_DURATION_SECONDS: int = 3
DEFAULT_APP_ID: str = "default-app-id"
QUIZ_COLLECTION_PATH_TEMPLATE: str = "artifacts/{app_id}/public/data/quizzes"

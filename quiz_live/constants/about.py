"""Static metadata describing QuizLive."""

APP_NAME = "QuizLive"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "QuizLive runs timed, resumable quiz attempts over WebSockets with "
    "automatic submission on expiry and a live monitoring surface for teachers."
)

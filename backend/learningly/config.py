import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    DATABASE_PATH = os.getenv("LEARNINGLY_DB_PATH", "data/highlights.db")

    # Quiet period after a pointer release before the selection is evaluated
    SELECTION_DEBOUNCE_MS = int(os.getenv("SELECTION_DEBOUNCE_MS", "150"))

    DEFAULT_HIGHLIGHT_COLOR = os.getenv("DEFAULT_HIGHLIGHT_COLOR", "#ffff00")
    HIGHLIGHT_OPACITY = 0.4
    HIGHLIGHT_STORAGE_KEY_PREFIX = "learningly-highlights"

    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "8000"))

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"

    @classmethod
    def debounce_seconds(cls) -> float:
        return cls.SELECTION_DEBOUNCE_MS / 1000

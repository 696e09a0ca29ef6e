import os
from dotenv import load_dotenv


class Settings:
    def __init__(self) -> None:
        # Load variables from .env into environment
        load_dotenv()
        self.MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
        self.MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "billing")
        self.MONGODB_TIMEOUT_MS: int = int(os.getenv("MONGODB_TIMEOUT_MS", "30000"))
        # Reporting currency; only USD amounts are converted into it
        self.BASE_CURRENCY: str = os.getenv("BASE_CURRENCY", "INR")
        self.DASHBOARD_TOP_CLIENTS: int = int(os.getenv("DASHBOARD_TOP_CLIENTS", "5"))
        self.DASHBOARD_RECENT_TASKS: int = int(os.getenv("DASHBOARD_RECENT_TASKS", "10"))
        # Frontend base URL (used in CORS)
        self.FRONTEND_BASE_URL: str = os.getenv("FRONTEND_BASE_URL", "")
        # Optional comma-separated list of additional allowed origins for CORS
        self.ALLOWED_ORIGINS: list[str] = [
            o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()
        ]
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()

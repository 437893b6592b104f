import os
from pydantic_settings import BaseSettings
from typing import List, Literal

# Get the root path of the project (the 'backend' directory)
# This assumes the script is run from the 'backend' directory.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

class Settings(BaseSettings):
    """
    Pydantic settings class to manage application configuration.
    It automatically reads environment variables from a .env file.
    """
    # --- Core Application Settings ---
    PROJECT_NAME: str = "Planipeda Planning API"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # --- Database Settings ---
    # The default URL points to a SQLite database file in the project's backend root.
    DATABASE_URL: str = f"sqlite:///{os.path.join(PROJECT_ROOT, 'planipeda.db')}"

    # --- Composition Engine Settings ---
    # Upper bound on the per-kind fetches / channels dispatched in parallel.
    SYNC_MAX_WORKERS: int = 3

    # "drop" filters association rows whose master record is gone and logs a
    # warning; "strict" reports them as an error on the affected kind.
    DANGLING_REFERENCE_POLICY: Literal["drop", "strict"] = "drop"

    # When enabled, an empty objectives/knowledge/capabilities list is rendered
    # as a single placeholder string ("no objective", ...).
    EMPTY_LIST_SENTINELS: bool = True

    class Config:
        """
        Pydantic config subclass to specify the .env file location.
        """
        env_file = os.path.join(PROJECT_ROOT, ".env")
        env_file_encoding = 'utf-8'
        extra = "ignore" # Allow extra fields from .env to be ignored

# Instantiate the settings object that will be used throughout the application.
settings = Settings()

import sys

from pydantic_settings import BaseSettings

_ENV_FILE = None if "pytest" in sys.modules else ".env"


class Settings(BaseSettings):
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # memory | workbook | google_sheets
    STORE_BACKEND: str = "workbook"
    WORKBOOK_PATH: str = "data/portal.xlsx"
    ROSTER_SHEET_NAME: str = "List"
    DETAIL_SHEET_NAME: str = "Data"

    GOOGLE_SPREADSHEET_ID: str = ""
    GOOGLE_SERVICE_ACCOUNT_FILE: str = ""

    LOCK_TIMEOUT_SECONDS: float = 10.0
    PHOTO_MAX_CHARS: int = 50000

    model_config = {
        "env_file": _ENV_FILE,
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()

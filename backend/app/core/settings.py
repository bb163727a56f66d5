import os


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings:
    def __init__(self):
        self.app_name = "Zoravo OMS"
        self.api_version = "1.0.0"
        self.environment = os.getenv("APP_ENV", "development")
        self.secret_key = os.getenv("SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./zoravo.db")
        # Cron endpoints are open when no secret is configured
        self.cron_secret = os.getenv("CRON_SECRET") or None
        self.platform_tenant_id = os.getenv("PLATFORM_TENANT_ID", "00000000-0000-0000-0000-000000000001")
        self.default_due_days = int(os.getenv("DEFAULT_DUE_DAYS", "30"))
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.cors_origins = _env_list("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance

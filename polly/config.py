import os
from datetime import timedelta
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent  # project root (where wsgi.py is)
load_dotenv(BASE_DIR / ".env")


def _optional_float(name: str):
    value = os.getenv(name)
    return float(value) if value else None


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    APP_ENV = os.getenv("APP_ENV", "development")
    IS_PRODUCTION = APP_ENV == "production"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Supabase (identity + data)
    SUPABASE_URL = os.getenv("SUPABASE_URL")
    SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
    SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
    SUPABASE_TIMEOUT_SECONDS = _optional_float("SUPABASE_TIMEOUT_SECONDS")

    # Session cookies
    SESSION_ACCESS_COOKIE = os.getenv("SESSION_ACCESS_COOKIE", "sb-access-token")
    SESSION_REFRESH_COOKIE = os.getenv("SESSION_REFRESH_COOKIE", "sb-refresh-token")
    SESSION_COOKIE_MAX_AGE = timedelta(
        seconds=int(os.getenv("SESSION_COOKIE_MAX_AGE_SECONDS", str(7 * 24 * 3600)))
    )
    SESSION_COOKIE_SECURE = IS_PRODUCTION

    # CSRF
    CSRF_COOKIE_NAME = os.getenv("CSRF_COOKIE_NAME", "csrf_token")
    CSRF_TTL_SECONDS = int(os.getenv("CSRF_TTL_SECONDS", "3600"))  # 1 hour
    CSRF_COOKIE_SECURE = IS_PRODUCTION

    # Rate limiting
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    REGISTER_RATE_LIMIT_SCOPE = os.getenv("REGISTER_RATE_LIMIT_SCOPE", "global")

    # Redirect targets
    LOGIN_PATH = os.getenv("LOGIN_PATH", "/login")
    POLLS_INDEX_PATH = os.getenv("POLLS_INDEX_PATH", "/polls")

    SWAGGER = {"title": "Polly API", "uiversion": 3}


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SUPABASE_URL = "http://supabase.test"
    SUPABASE_ANON_KEY = "anon-key"
    SUPABASE_JWT_SECRET = None
    RATELIMIT_STORAGE_URI = "memory://"
    REGISTER_RATE_LIMIT_SCOPE = "global"

import os
from dotenv import load_dotenv
load_dotenv()

def _db_url():
    uri = os.getenv("DATABASE_URL", "sqlite:///studygroups.db")
    if uri.startswith("postgres://"):
        uri = uri.replace("postgres://", "postgresql://", 1)
    return uri

def _flag(name, default="0"):
    return os.getenv(name, default).strip() in ("1", "true", "True", "yes")

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-jwt-change")
    SQLALCHEMY_DATABASE_URI = _db_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SESSION_COOKIE_SECURE = False
    REMEMBER_COOKIE_SECURE = False
    WTF_CSRF_TIME_LIMIT = None
    MAINTENANCE_MODE = _flag("MAINTENANCE_MODE")
    # seeded with role=admin by `flask seed`
    ADMIN_USER_NAME = os.getenv("ADMIN_USER_NAME", "admin")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    WTF_CSRF_ENABLED = False
    MAINTENANCE_MODE = False

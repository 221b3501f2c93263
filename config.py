"""
Configuration for the forum Flask app.
Production (Railway/Render): uses DATABASE_URL only; fails if missing.
Local: DATABASE_URL, DB_* PostgreSQL settings, or a SQLite file in instance/.
"""
import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
from urllib.parse import quote_plus

BASE_DIR = Path(__file__).parent
INSTANCE_DIR = BASE_DIR / "instance"

DEFAULT_CAPTCHA_COLORS = (
    "#ff6b6b", "#4ecdc4", "#45b7d1", "#96ceb4",
    "#ffeaa7", "#a29bfe", "#fd79a8", "#fdcb6e",
)


def _is_production():
    """True when running on Railway, Render, or explicit production."""
    return (
        os.environ.get("RENDER") == "true"
        or os.environ.get("RAILWAY_ENVIRONMENT") is not None
        or os.environ.get("FLASK_ENV") == "production"
    )


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ("true", "on", "1")


def _normalize_database_url(url):
    """Convert postgres:// to postgresql+psycopg2:// for SQLAlchemy/psycopg2."""
    if not url:
        return url
    url = url.strip()
    if url.startswith("postgres://"):
        return "postgresql+psycopg2://" + url[11:]
    if url.startswith("postgresql://") and "psycopg2" not in url:
        return "postgresql+psycopg2://" + url[13:]
    return url


def _get_database_uri():
    """Database URI: production = DATABASE_URL only; local = DATABASE_URL, DB_* or SQLite."""
    if _is_production():
        url = os.environ.get("DATABASE_URL")
        if not url or not url.strip():
            raise RuntimeError(
                "DATABASE_URL is required in production (Railway/Render). "
                "Set it in your service environment variables."
            )
        return _normalize_database_url(url.strip())

    url = os.environ.get("DATABASE_URL")
    if url and url.strip():
        return _normalize_database_url(url.strip())

    if os.environ.get("DB_HOST"):
        host = os.environ.get("DB_HOST")
        port = os.environ.get("DB_PORT", "5432")
        name = os.environ.get("DB_NAME", "forum")
        user = os.environ.get("DB_USER", "forum")
        password = os.environ.get("DB_PASSWORD", "")
        if password:
            password = quote_plus(password)
        return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"

    try:
        INSTANCE_DIR.mkdir(exist_ok=True)
    except OSError:
        pass
    return f"sqlite:///{INSTANCE_DIR / 'forum.db'}"


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get("SECRET_KEY") or "dev-secret-key-change-in-production"

    SQLALCHEMY_DATABASE_URI = _get_database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    SITE_TITLE = os.environ.get("SITE_TITLE", "Secure Forum")
    REGISTRATION_OPEN = _env_flag("REGISTRATION_OPEN", "true")
    MAINTENANCE_MODE = _env_flag("MAINTENANCE_MODE", "false")
    MAINTENANCE_MESSAGE = os.environ.get(
        "MAINTENANCE_MESSAGE",
        "The forum is currently undergoing maintenance. Please check back later.",
    )

    CAPTCHA_CHARACTERS = int(os.environ.get("CAPTCHA_CHARACTERS") or 6)
    CAPTCHA_FONT = os.environ.get("CAPTCHA_FONT") or None
    CAPTCHA_SIZE = int(os.environ.get("CAPTCHA_SIZE") or 60)
    CAPTCHA_WIDTH = int(os.environ.get("CAPTCHA_WIDTH") or 400)
    CAPTCHA_HEIGHT = int(os.environ.get("CAPTCHA_HEIGHT") or 150)
    CAPTCHA_COLOR_MODE = _env_flag("CAPTCHA_COLOR_MODE", "true")
    CAPTCHA_COLORS = tuple(
        c.strip() for c in os.environ.get("CAPTCHA_COLORS", ",".join(DEFAULT_CAPTCHA_COLORS)).split(",")
        if c.strip()
    )
    CAPTCHA_BACKGROUND = os.environ.get("CAPTCHA_BACKGROUND", "#f0f0f0")
    CAPTCHA_TRACE_COLOR = os.environ.get("CAPTCHA_TRACE_COLOR", "#2d3436")
    CAPTCHA_TRACE_SIZE = int(os.environ.get("CAPTCHA_TRACE_SIZE") or 3)
    CAPTCHA_ROTATE = float(os.environ.get("CAPTCHA_ROTATE") or 25)
    CAPTCHA_SKEW = _env_flag("CAPTCHA_SKEW", "true")
    CAPTCHA_SKEW_RANGE = float(os.environ.get("CAPTCHA_SKEW_RANGE") or 0.3)
    CAPTCHA_NOISE_LINES = int(os.environ.get("CAPTCHA_NOISE_LINES") or 5)
    CAPTCHA_NOISE_DOTS = int(os.environ.get("CAPTCHA_NOISE_DOTS") or 50)
    CAPTCHA_DOT_SIZE = int(os.environ.get("CAPTCHA_DOT_SIZE") or 2)
    CAPTCHA_EXPIRY_MS = int(os.environ.get("CAPTCHA_EXPIRY_MS") or 300000)
    CAPTCHA_CLEANUP_INTERVAL_MS = int(os.environ.get("CAPTCHA_CLEANUP_INTERVAL_MS") or 60000)
    CAPTCHA_RECLAIMER_ENABLED = _env_flag("CAPTCHA_RECLAIMER_ENABLED", "true")


class ScriptConfig(Config):
    """Configuration for one-off maintenance scripts: no background sweeper."""
    CAPTCHA_RECLAIMER_ENABLED = False


@dataclass(frozen=True)
class CaptchaSettings:
    """
    Render and expiry settings, built once at startup and shared read-only
    by the image renderer and the captcha service.
    """
    characters: int = 6
    font: Optional[str] = None
    size: int = 60
    width: int = 400
    height: int = 150
    color_mode: bool = True
    colors: tuple = field(default=DEFAULT_CAPTCHA_COLORS)
    background: str = "#f0f0f0"
    trace_color: str = "#2d3436"
    trace_size: int = 3
    rotate: float = 25.0
    skew: bool = True
    skew_range: float = 0.3
    noise_lines: int = 5
    noise_dots: int = 50
    dot_size: int = 2
    expiry_ms: int = 300000
    cleanup_interval_ms: int = 60000

    def __post_init__(self):
        if self.characters < 1:
            raise ValueError("CAPTCHA_CHARACTERS must be at least 1")
        if self.width <= 0 or self.height <= 0 or self.size <= 0:
            raise ValueError("CAPTCHA_WIDTH, CAPTCHA_HEIGHT and CAPTCHA_SIZE must be positive")
        if not self.colors:
            raise ValueError("CAPTCHA_COLORS must contain at least one colour")
        if self.expiry_ms <= 0:
            raise ValueError("CAPTCHA_EXPIRY_MS must be positive")
        if self.cleanup_interval_ms <= 0:
            raise ValueError("CAPTCHA_CLEANUP_INTERVAL_MS must be positive")
        # Accept lists from config mappings but keep the instance hashable.
        object.__setattr__(self, "colors", tuple(self.colors))

    @classmethod
    def from_config(cls, config):
        """Build settings from a Flask config (or any mapping of CAPTCHA_* keys)."""
        return cls(
            characters=int(config.get("CAPTCHA_CHARACTERS", 6)),
            font=config.get("CAPTCHA_FONT"),
            size=int(config.get("CAPTCHA_SIZE", 60)),
            width=int(config.get("CAPTCHA_WIDTH", 400)),
            height=int(config.get("CAPTCHA_HEIGHT", 150)),
            color_mode=bool(config.get("CAPTCHA_COLOR_MODE", True)),
            colors=tuple(config.get("CAPTCHA_COLORS", DEFAULT_CAPTCHA_COLORS)),
            background=config.get("CAPTCHA_BACKGROUND", "#f0f0f0"),
            trace_color=config.get("CAPTCHA_TRACE_COLOR", "#2d3436"),
            trace_size=int(config.get("CAPTCHA_TRACE_SIZE", 3)),
            rotate=float(config.get("CAPTCHA_ROTATE", 25)),
            skew=bool(config.get("CAPTCHA_SKEW", True)),
            skew_range=float(config.get("CAPTCHA_SKEW_RANGE", 0.3)),
            noise_lines=int(config.get("CAPTCHA_NOISE_LINES", 5)),
            noise_dots=int(config.get("CAPTCHA_NOISE_DOTS", 50)),
            dot_size=int(config.get("CAPTCHA_DOT_SIZE", 2)),
            expiry_ms=int(config.get("CAPTCHA_EXPIRY_MS", 300000)),
            cleanup_interval_ms=int(config.get("CAPTCHA_CLEANUP_INTERVAL_MS", 60000)),
        )

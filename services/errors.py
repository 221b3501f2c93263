"""
CAPTCHA error taxonomy.
Routes map these to generic client messages; none of them carry answer text.
"""


class CaptchaError(Exception):
    """Base class for CAPTCHA lifecycle failures."""


class CaptchaNotFound(CaptchaError):
    """Key absent, already consumed, or expired."""


class RenderError(CaptchaError):
    """Image could not be generated or encoded."""


class StoreError(CaptchaError):
    """Underlying persistence failure."""


class ConflictError(StoreError):
    """A record already exists for this key."""

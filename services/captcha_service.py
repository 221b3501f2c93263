"""
CAPTCHA lifecycle: issue, serve, verify (single use) and reclaim.

A challenge is ISSUED when stored and reaches a terminal state only by being
deleted: consumed by a verification attempt (right or wrong answer), dropped
on an expired read, or swept by reclaim_expired().
"""
import logging
from dataclasses import dataclass
from typing import Optional

from services.captcha_store import CaptchaStore
from services.errors import CaptchaNotFound, RenderError
from utils.captcha_helper import (
    answers_match,
    expiry_cutoff,
    generate_captcha_text,
    generate_token,
    is_expired,
    now_ms,
    short_token,
)
from utils.captcha_image import render_captcha_image

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60000


@dataclass(frozen=True)
class IssuedCaptcha:
    """What a caller may see of a new challenge. The answer is never included."""
    token: str
    expiry_minutes: int
    image: Optional[bytes] = None


class CaptchaService:

    def __init__(self, settings, store=None, clock=now_ms, renderer=render_captcha_image):
        self.settings = settings
        self.store = store or CaptchaStore()
        self._clock = clock
        self._renderer = renderer

    def _render(self, token, text):
        try:
            return self._renderer(text, self.settings)
        except RenderError:
            logger.error("Rendering CAPTCHA %s failed", short_token(token), exc_info=True)
            raise
        except Exception as e:
            logger.error("Rendering CAPTCHA %s failed", short_token(token), exc_info=True)
            raise RenderError("Unable to render CAPTCHA image") from e

    def _is_expired(self, record, now=None):
        if now is None:
            now = self._clock()
        return is_expired(record.issued_at, self.settings.expiry_ms, now)

    def _create(self, with_image):
        text = generate_captcha_text(self.settings.characters)
        token = generate_token()
        # Render before storing so a failed render leaves nothing behind.
        image = self._render(token, text) if with_image else None
        self.store.put(token, text, self._clock())
        return IssuedCaptcha(token=token, expiry_minutes=self.get_expiry_minutes(), image=image)

    def issue(self) -> IssuedCaptcha:
        """New challenge with its image rendered now."""
        return self._create(with_image=True)

    def issue_deferred(self) -> IssuedCaptcha:
        """New challenge whose image is fetched later with fetch_image()."""
        return self._create(with_image=False)

    def fetch_image(self, token: str) -> bytes:
        """
        Re-render the image for a live challenge. The record is not consumed,
        but an expired one is deleted and reported as not found.
        """
        record = self.store.get(token) if token else None
        if record is None:
            raise CaptchaNotFound("CAPTCHA not found or expired")
        if self._is_expired(record):
            self.store.delete(token)
            logger.info("CAPTCHA %s expired before image fetch", short_token(token))
            raise CaptchaNotFound("CAPTCHA not found or expired")
        return self._render(token, record.answer_text)

    def verify(self, token: str, user_answer: str) -> bool:
        """
        Check an answer. The challenge is consumed by this call whatever the
        outcome, so a second attempt with the same key always fails.
        """
        if not token or user_answer is None:
            return False
        record = self.store.take(token)
        if record is None:
            logger.debug("CAPTCHA %s not found or already used", short_token(token))
            return False
        if self._is_expired(record):
            logger.info("CAPTCHA %s rejected: expired", short_token(token))
            return False
        accepted = answers_match(user_answer, record.answer_text)
        if not accepted:
            logger.info("CAPTCHA %s rejected: wrong answer", short_token(token))
        return accepted

    def reclaim_expired(self) -> int:
        """Delete every expired challenge; return the number removed."""
        cutoff = expiry_cutoff(self.settings.expiry_ms, self._clock())
        removed = self.store.delete_older_than(cutoff)
        if removed:
            logger.info("Reclaimed %d expired CAPTCHA(s)", removed)
        else:
            logger.debug("No expired CAPTCHAs to reclaim")
        return removed

    def is_record_expired(self, record, now=None) -> bool:
        """Expiry status of a stored record, for maintenance listings."""
        return self._is_expired(record, now)

    def get_expiry_minutes(self) -> int:
        return self.settings.expiry_ms // MS_PER_MINUTE

    def get_stats(self) -> dict:
        return {
            "total_live": self.store.count(),
            "expiry_minutes": self.get_expiry_minutes(),
            "sweep_interval_minutes": self.settings.cleanup_interval_ms // MS_PER_MINUTE,
        }

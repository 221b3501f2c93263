"""
CAPTCHA text, token and expiry helpers.
The expiry predicate here is the only one used by verification, image fetch
and the background sweep.
"""
import hmac
import secrets
import time

# Excludes characters that are easy to confuse once distorted (0/O, 1/I/l).
CAPTCHA_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

TOKEN_BYTES = 16


def generate_captcha_text(length: int) -> str:
    """Return `length` characters drawn independently from CAPTCHA_ALPHABET."""
    if length < 1:
        raise ValueError("CAPTCHA length must be at least 1")
    return ''.join(secrets.choice(CAPTCHA_ALPHABET) for _ in range(length))


def generate_token() -> str:
    """Unguessable challenge key: 128 random bits, hex encoded."""
    return secrets.token_hex(TOKEN_BYTES)


def now_ms() -> int:
    return int(time.time() * 1000)


def is_expired(issued_at: int, expiry_ms: int, now: int) -> bool:
    return now - issued_at > expiry_ms


def expiry_cutoff(expiry_ms: int, now: int) -> int:
    """Records issued strictly before this timestamp satisfy is_expired()."""
    return now - expiry_ms


def answers_match(user_answer: str, expected: str) -> bool:
    """Trimmed, case-insensitive comparison of a submitted answer."""
    if not user_answer or not expected:
        return False
    given = user_answer.strip().lower().encode("utf-8")
    wanted = expected.strip().lower().encode("utf-8")
    return hmac.compare_digest(given, wanted)


def short_token(token) -> str:
    """Truncated key for log lines."""
    return f"{str(token)[:8]}..."

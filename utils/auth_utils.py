"""
Bearer key utilities: keys are random, shown once, and stored only as hashes
"""
import secrets
import uuid
from werkzeug.security import generate_password_hash, check_password_hash

USER_KEY_BYTES = 16


def generate_user_key():
    """Generate a new bearer key (32 hex characters)."""
    return secrets.token_hex(USER_KEY_BYTES)


def generate_user_id():
    return str(uuid.uuid4())


def hash_key(key):
    """Generate key hash"""
    return generate_password_hash(key)


def verify_key(key_hash, key):
    """Verify key against hash"""
    if not key_hash or not key:
        return False
    return check_password_hash(key_hash, key)

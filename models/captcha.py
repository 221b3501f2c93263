"""
CAPTCHA challenge model.
One row per live challenge; rows are never updated, only inserted and deleted.
"""
from models import db


class CaptchaChallenge(db.Model):
    """Distorted-text CAPTCHA awaiting an answer. One-time use."""
    __tablename__ = 'captcha_challenge'

    token = db.Column(db.String(64), primary_key=True)
    answer_text = db.Column(db.String(32), nullable=False)
    issued_at = db.Column(db.BigInteger, nullable=False, index=True)  # ms since epoch

    def __repr__(self):
        return f'<CaptchaChallenge {self.token[:8]}...>'

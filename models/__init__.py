"""
Models package for the forum application
"""
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# Import all models here to ensure they're registered
from models.user import User
from models.captcha import CaptchaChallenge

__all__ = [
    'db',
    'User',
    'CaptchaChallenge',
]

"""
Routes package for the forum application
"""
# Export blueprints for registration in app.py
from routes.captcha import captcha_bp
from routes.auth import auth_bp

__all__ = [
    'captcha_bp',
    'auth_bp',
]

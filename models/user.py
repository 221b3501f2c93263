"""
User model definition
"""
from models import db
from datetime import datetime


class User(db.Model):
    """Forum author identified by a bearer key; only the key hash is stored."""
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True)
    author_name = db.Column(db.String(100), unique=True, nullable=False)
    key_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<User {self.author_name}>'

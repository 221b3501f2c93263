"""
DB-backed CAPTCHA challenge store.
Each mutation is a single SQL statement committed on its own, so the
database's row locking decides which of two concurrent deleters wins.
Must be used inside a Flask app context.
"""
import logging
from contextlib import contextmanager
from typing import List, NamedTuple, Optional

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.captcha import CaptchaChallenge
from services.errors import ConflictError, StoreError
from utils.captcha_helper import short_token

logger = logging.getLogger(__name__)

_table = CaptchaChallenge.__table__
_columns = (_table.c.token, _table.c.answer_text, _table.c.issued_at)


class ChallengeRecord(NamedTuple):
    token: str
    answer_text: str
    issued_at: int


def _record(row) -> Optional[ChallengeRecord]:
    if row is None:
        return None
    return ChallengeRecord(row.token, row.answer_text, int(row.issued_at))


class CaptchaStore:
    """Interface: put, get, take, delete, delete_older_than, count."""

    @contextmanager
    def _transaction(self, action):
        session = db.session
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            if action == "put":
                raise ConflictError("CAPTCHA key already exists") from e
            logger.error("CAPTCHA store %s failed: %s", action, e)
            raise StoreError(f"CAPTCHA store {action} failed") from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("CAPTCHA store %s failed: %s", action, e)
            raise StoreError(f"CAPTCHA store {action} failed") from e

    def put(self, token: str, answer_text: str, issued_at: int) -> None:
        """Insert a new record. Never overwrites: an existing key raises ConflictError."""
        with self._transaction("put") as session:
            session.execute(
                insert(_table).values(token=token, answer_text=answer_text, issued_at=issued_at)
            )
        logger.debug("Stored CAPTCHA %s", short_token(token))

    def get(self, token: str) -> Optional[ChallengeRecord]:
        """Return the record or None if not found."""
        with self._transaction("get") as session:
            row = session.execute(select(*_columns).where(_table.c.token == token)).first()
        return _record(row)

    def take(self, token: str) -> Optional[ChallengeRecord]:
        """
        Atomically remove and return the record. Of any number of concurrent
        callers for the same key, at most one gets the record back.
        """
        with self._transaction("take") as session:
            row = session.execute(
                delete(_table).where(_table.c.token == token).returning(*_columns)
            ).first()
        return _record(row)

    def delete(self, token: str) -> None:
        """Remove a record. Deleting a missing key is not an error."""
        with self._transaction("delete") as session:
            session.execute(delete(_table).where(_table.c.token == token))

    def delete_older_than(self, cutoff: int) -> int:
        """Remove every record with issued_at < cutoff; return how many went."""
        with self._transaction("sweep") as session:
            result = session.execute(delete(_table).where(_table.c.issued_at < cutoff))
        return result.rowcount or 0

    def count(self) -> int:
        with self._transaction("count") as session:
            return session.execute(select(func.count()).select_from(_table)).scalar_one()

    def list_records(self) -> List[ChallengeRecord]:
        """All records, newest first (maintenance only)."""
        with self._transaction("list") as session:
            rows = session.execute(select(*_columns).order_by(_table.c.issued_at.desc())).all()
        return [_record(row) for row in rows]

    def clear(self) -> int:
        """Remove every record regardless of age (maintenance only)."""
        with self._transaction("clear") as session:
            result = session.execute(delete(_table))
        return result.rowcount or 0

"""
User and refresh-token stores over a SQLAlchemy session.

The repositories never commit; the caller's unit of work decides when the
writes become durable.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from .models import RefreshToken, User


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def add(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> User:
        user = User(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
        )
        self.db.add(user)
        # flush so the unique email constraint fires here, not at commit
        self.db.flush()
        return user


class RefreshTokenRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, *, user_id: str, token: str, expires_at: datetime) -> RefreshToken:
        row = RefreshToken(user_id=user_id, token=token, expires_at=expires_at, is_revoked=False)
        self.db.add(row)
        self.db.flush()
        return row

    def find_active(self, token: str) -> Optional[RefreshToken]:
        return (
            self.db.query(RefreshToken)
            .filter(RefreshToken.token == token, RefreshToken.is_revoked.is_(False))
            .first()
        )

    def revoke(self, row: RefreshToken) -> None:
        row.is_revoked = True
        self.db.flush()

    def revoke_by_value(self, token: str) -> int:
        result = self.db.execute(
            update(RefreshToken)
            .where(RefreshToken.token == token)
            .values(is_revoked=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def revoke_expired(self, now: datetime) -> int:
        result = self.db.execute(
            update(RefreshToken)
            .where(RefreshToken.is_revoked.is_(False), RefreshToken.expires_at <= now)
            .values(is_revoked=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

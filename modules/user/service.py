"""
User Module - Service Layer
=============================
Lookups used by the cart and order engines.
"""

from sqlalchemy.orm import Session

from common.exceptions import NotFoundError
from modules.user.models import User


class UserService:

    def get_by_id(self, db: Session, user_id: int) -> User:
        """Return the user or raise NotFoundError."""
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def create(self, db: Session, name: str, email: str = None) -> User:
        user = User(name=name, email=email)
        db.add(user)
        db.flush()
        return user


# Singleton
user_service = UserService()

"""
User Repository.
"""

from sqlalchemy import select

from notesphere.backend.models.user import User
from notesphere.backend.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model."""

    model = User

    async def get_by_email(self, email: str) -> User | None:
        """Look up a user by e-mail, case-insensitively."""
        result = await self.session.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        result = await self.session.execute(
            select(User.id).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none() is not None

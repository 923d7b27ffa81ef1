"""
User data model and storage interface.

User records are created by the '/register-user' flow and never updated or
deleted afterwards. The same identifier is mirrored in the presence provider
(see 'chat_relay.chat_provider'), but the two stores are not transactionally
linked.

Concrete implementations: 'InMemoryUserDatabase', 'PostgreSQLUserDatabase'.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class User(BaseModel):
    """
    A registered user.

    'user_id' is derived from the email address with 'derive_user_id' and acts
    as the primary key. 'created_at' is assigned by the store on insert.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    name: str
    email: str
    created_at: datetime | None = None


class UserAlreadyExistsError(Exception):
    """Raised by 'create_user' when the identifier is already taken."""

    def __init__(self, user_id: str):
        super().__init__(f"User {user_id} already exists")
        self.user_id = user_id


class UserDatabase(ABC):
    """Abstract repository for 'User' records."""

    @abstractmethod
    async def create_user(self, user: User) -> User:
        """Insert 'user'. Fails if a user with the same 'user_id' already exists."""
        pass

    @abstractmethod
    async def get_user_by_id(self, user_id: str) -> User | None:
        pass

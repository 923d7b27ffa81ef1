"""
PostgreSQL repositories built on SQLAlchemy's asyncio extension.

The schema mirrors the two tables of the relay: 'users' (keyed by the derived
user id) and 'chats' (an append-only log of turns). Primary keys of 'chats'
and all 'created_at' values are assigned by the database server.

'PostgreSQLConnection' owns the engine and session factory; the repositories
share it so a single connection pool serves the whole process. Any SQLAlchemy
async URL works, which lets the tests run the same code against SQLite.
"""

from typing import Any

from loguru import logger
from sqlalchemy import Column, DateTime, Integer, Text, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from chat_relay.conversation_database.data_models.chat import ChatDatabase, ChatTurn
from chat_relay.conversation_database.data_models.user import User, UserDatabase


class Base(DeclarativeBase):
    pass


class UserRecord(Base):
    __tablename__ = "users"

    user_id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class ChatRecord(Base):
    __tablename__ = "chats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # No foreign key: the controller checks that the user exists before inserting.
    user_id = Column(Text, nullable=False, index=True)
    message = Column(Text, nullable=False)
    reply = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


def to_async_url(database_url: str) -> str:
    """Rewrite plain 'postgres://' / 'postgresql://' URLs to use the asyncpg driver."""
    for prefix in ("postgres://", "postgresql://"):
        if database_url.startswith(prefix):
            return "postgresql+asyncpg://" + database_url[len(prefix) :]
    return database_url


def _to_user(record: UserRecord) -> User:
    return User(user_id=record.user_id, name=record.name, email=record.email, created_at=record.created_at)


def _to_chat(record: ChatRecord) -> ChatTurn:
    return ChatTurn(
        id=record.id,
        user_id=record.user_id,
        message=record.message,
        reply=record.reply,
        created_at=record.created_at,
    )


class PostgreSQLConnection:
    def __init__(self, database_url: str, **engine_kwargs: Any):
        self.engine = create_async_engine(to_async_url(database_url), **engine_kwargs)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

    async def create_tables(self) -> None:
        """Create the 'users' and 'chats' tables if they do not exist yet."""
        async with self.engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)
        logger.info("Database tables are ready")

    async def close(self) -> None:
        await self.engine.dispose()


class PostgreSQLUserDatabase(UserDatabase):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create_user(self, user: User) -> User:
        record = UserRecord(user_id=user.user_id, name=user.name, email=user.email)
        async with self.session_factory() as session:
            session.add(record)
            await session.flush()
            await session.refresh(record)
            await session.commit()
        return _to_user(record)

    async def get_user_by_id(self, user_id: str) -> User | None:
        async with self.session_factory() as session:
            record = await session.scalar(select(UserRecord).where(UserRecord.user_id == user_id))
        return _to_user(record) if record is not None else None


class PostgreSQLChatDatabase(ChatDatabase):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create_chat(self, user_id: str, message: str, reply: str) -> ChatTurn:
        record = ChatRecord(user_id=user_id, message=message, reply=reply)
        async with self.session_factory() as session:
            session.add(record)
            await session.flush()
            await session.refresh(record)
            await session.commit()
        return _to_chat(record)

    async def get_chats_by_user_id(self, user_id: str, limit: int | None = None) -> list[ChatTurn]:
        query = select(ChatRecord).where(ChatRecord.user_id == user_id)
        if limit is None:
            query = query.order_by(ChatRecord.created_at, ChatRecord.id)
        else:
            query = query.order_by(ChatRecord.created_at.desc(), ChatRecord.id.desc()).limit(limit)

        async with self.session_factory() as session:
            records = list((await session.scalars(query)).all())

        if limit is not None:
            records.reverse()
        return [_to_chat(record) for record in records]

"""SQLite document store implementation."""

import dataclasses
import json
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import Chat, Message, User

USER_COLUMNS = "id, username, password, date_joined, biography"
MESSAGE_COLUMNS = "id, msg, msg_from, msg_date_time, type"
CHAT_COLUMNS = "id, participants, messages, created_at, updated_at"

# Fields a caller may change through update_user()
UPDATABLE_USER_FIELDS = ("biography", "password")


class IStorage(Protocol):
    """Document store for users, messages and chats."""

    async def init(self) -> None:
        """Open the connection and create collections."""
        ...

    async def close(self) -> None:
        """Close the connection."""
        ...

    # Users
    async def create_user(self, user: User) -> User:
        """Insert a user and return it with its assigned id."""
        ...

    async def find_user_by_username(self, username: str) -> User | None:
        """Look a user up by username."""
        ...

    async def update_user(self, username: str, fields: dict[str, Any]) -> User | None:
        """Update profile fields; return the updated user or None if absent."""
        ...

    async def delete_user(self, username: str) -> User | None:
        """Delete a user; return the removed user or None if absent."""
        ...

    # Messages
    async def create_message(self, message: Message) -> Message:
        """Insert a message and return it with its assigned id."""
        ...

    async def get_message(self, message_id: str) -> Message | None:
        """Get a message by id."""
        ...

    async def delete_messages(self, message_ids: list[str]) -> int:
        """Delete messages by id, returning how many were removed."""
        ...

    # Chats
    async def create_chat(self, chat: Chat) -> Chat:
        """Insert a chat and return it with id and timestamps assigned."""
        ...

    async def get_chat(self, chat_id: str) -> Chat | None:
        """Get a chat by id."""
        ...

    async def push_chat_message(self, chat_id: str, message_id: str) -> Chat | None:
        """Append a message id to a chat; None if the chat does not exist."""
        ...

    async def push_chat_participant(self, chat_id: str, username: str) -> Chat | None:
        """Append a participant; None if no chat matched or already listed."""
        ...

    async def find_chats_by_participants(self, usernames: list[str]) -> list[Chat]:
        """Get chats whose participants include every given username."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


def _as_utc(ts: datetime) -> datetime:
    """Naive values are taken as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _to_db_timestamp(ts: datetime) -> str:
    """Normalize to UTC ISO-8601 so stored values sort chronologically."""
    return _as_utc(ts).isoformat()


def _from_db_timestamp(value: str) -> datetime:
    return _as_utc(datetime.fromisoformat(value))


@asynccontextmanager
async def _transaction(conn: aiosqlite.Connection) -> AsyncIterator[aiosqlite.Connection]:
    """Commit on success, roll back on any error so the write lock is released."""
    try:
        yield conn
    except BaseException:
        await conn.rollback()
        raise
    await conn.commit()


async def _execute_returning(
    conn: aiosqlite.Connection, sql: str, parameters: tuple
) -> tuple | None:
    """Run a RETURNING statement to completion in one call; first row or None."""
    rows = list(await conn.execute_fetchall(sql, parameters))
    return rows[0] if rows else None


def _row_to_user(row: tuple) -> User:
    return User(
        id=row[0],
        username=row[1],
        password=row[2],
        date_joined=_from_db_timestamp(row[3]),
        biography=row[4],
    )


def _row_to_message(row: tuple) -> Message:
    return Message(
        id=row[0],
        msg=row[1],
        msg_from=row[2],
        msg_date_time=_from_db_timestamp(row[3]),
        type=row[4],
    )


def _row_to_chat(row: tuple) -> Chat:
    return Chat(
        id=row[0],
        participants=json.loads(row[1]),
        messages=json.loads(row[2]),
        created_at=_from_db_timestamp(row[3]),
        updated_at=_from_db_timestamp(row[4]),
    )


class Storage:
    """SQLite document store.

    Each public method is a single statement, so every mutation of one
    document (including array appends) is atomic.
    """

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Open the connection and create collections."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close the connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Users
    async def create_user(self, user: User) -> User:
        """Insert a user and return it with its assigned id."""
        conn = self._require_conn()

        created = dataclasses.replace(
            user,
            id=user.id or str(uuid.uuid4()),
            date_joined=_as_utc(user.date_joined),
        )
        async with _transaction(conn):
            await conn.execute(
                f"INSERT INTO users ({USER_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                (
                    created.id,
                    created.username,
                    created.password,
                    _to_db_timestamp(created.date_joined),
                    created.biography,
                ),
            )
        return created

    async def find_user_by_username(self, username: str) -> User | None:
        """Look a user up by username."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"SELECT {USER_COLUMNS} FROM users WHERE username = ?",
            (username,),
        )
        row = await cursor.fetchone()
        return _row_to_user(row) if row else None

    async def update_user(self, username: str, fields: dict[str, Any]) -> User | None:
        """Update profile fields; return the updated user or None if absent."""
        conn = self._require_conn()

        unknown = set(fields) - set(UPDATABLE_USER_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)}")
        if not fields:
            return await self.find_user_by_username(username)

        assignments = ", ".join(f"{name} = ?" for name in fields)
        async with _transaction(conn):
            row = await _execute_returning(
                conn,
                f"""
                UPDATE users SET {assignments}
                WHERE username = ?
                RETURNING {USER_COLUMNS}
                """,
                (*fields.values(), username),
            )
        return _row_to_user(row) if row else None

    async def delete_user(self, username: str) -> User | None:
        """Delete a user; return the removed user or None if absent."""
        conn = self._require_conn()

        async with _transaction(conn):
            row = await _execute_returning(
                conn,
                f"DELETE FROM users WHERE username = ? RETURNING {USER_COLUMNS}",
                (username,),
            )
        return _row_to_user(row) if row else None

    # Messages
    async def create_message(self, message: Message) -> Message:
        """Insert a message and return it with its assigned id."""
        conn = self._require_conn()

        created = dataclasses.replace(
            message,
            id=message.id or str(uuid.uuid4()),
            msg_date_time=_as_utc(message.msg_date_time),
        )
        async with _transaction(conn):
            await conn.execute(
                f"INSERT INTO messages ({MESSAGE_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                (
                    created.id,
                    created.msg,
                    created.msg_from,
                    _to_db_timestamp(created.msg_date_time),
                    created.type,
                ),
            )
        return created

    async def get_message(self, message_id: str) -> Message | None:
        """Get a message by id."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"SELECT {MESSAGE_COLUMNS} FROM messages WHERE id = ?",
            (message_id,),
        )
        row = await cursor.fetchone()
        return _row_to_message(row) if row else None

    async def delete_messages(self, message_ids: list[str]) -> int:
        """Delete messages by id, returning how many were removed."""
        conn = self._require_conn()

        if not message_ids:
            return 0

        placeholders = ",".join("?" * len(message_ids))
        async with _transaction(conn):
            cursor = await conn.execute(
                f"DELETE FROM messages WHERE id IN ({placeholders})",
                message_ids,
            )
        return cursor.rowcount

    # Chats
    async def create_chat(self, chat: Chat) -> Chat:
        """Insert a chat and return it with id and timestamps assigned."""
        conn = self._require_conn()

        now = datetime.now(timezone.utc)
        created = dataclasses.replace(
            chat,
            id=chat.id or str(uuid.uuid4()),
            participants=list(chat.participants),
            messages=list(chat.messages),
            created_at=now,
            updated_at=now,
        )
        async with _transaction(conn):
            await conn.execute(
                f"INSERT INTO chats ({CHAT_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                (
                    created.id,
                    json.dumps(created.participants),
                    json.dumps(created.messages),
                    _to_db_timestamp(now),
                    _to_db_timestamp(now),
                ),
            )
        return created

    async def get_chat(self, chat_id: str) -> Chat | None:
        """Get a chat by id."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"SELECT {CHAT_COLUMNS} FROM chats WHERE id = ?",
            (chat_id,),
        )
        row = await cursor.fetchone()
        return _row_to_chat(row) if row else None

    async def push_chat_message(self, chat_id: str, message_id: str) -> Chat | None:
        """Append a message id to a chat; None if the chat does not exist."""
        conn = self._require_conn()

        async with _transaction(conn):
            row = await _execute_returning(
                conn,
                f"""
                UPDATE chats
                SET messages = json_insert(messages, '$[#]', ?), updated_at = ?
                WHERE id = ?
                RETURNING {CHAT_COLUMNS}
                """,
                (message_id, _to_db_timestamp(datetime.now(timezone.utc)), chat_id),
            )
        return _row_to_chat(row) if row else None

    async def push_chat_participant(self, chat_id: str, username: str) -> Chat | None:
        """Append a participant; None if no chat matched or already listed."""
        conn = self._require_conn()

        async with _transaction(conn):
            row = await _execute_returning(
                conn,
                f"""
                UPDATE chats
                SET participants = json_insert(participants, '$[#]', ?), updated_at = ?
                WHERE id = ?
                  AND NOT EXISTS (
                      SELECT 1 FROM json_each(chats.participants) AS p
                      WHERE p.value = ?
                  )
                RETURNING {CHAT_COLUMNS}
                """,
                (
                    username,
                    _to_db_timestamp(datetime.now(timezone.utc)),
                    chat_id,
                    username,
                ),
            )
        return _row_to_chat(row) if row else None

    async def find_chats_by_participants(self, usernames: list[str]) -> list[Chat]:
        """Get chats whose participants include every given username.

        An empty list matches no chats.
        """
        conn = self._require_conn()

        wanted = list(dict.fromkeys(usernames))
        if not wanted:
            return []

        placeholders = ",".join("?" * len(wanted))
        cursor = await conn.execute(
            f"""
            SELECT {CHAT_COLUMNS}
            FROM chats
            WHERE (
                SELECT COUNT(DISTINCT p.value)
                FROM json_each(chats.participants) AS p
                WHERE p.value IN ({placeholders})
            ) = ?
            ORDER BY created_at ASC, rowid ASC
            """,
            (*wanted, len(wanted)),
        )
        rows = await cursor.fetchall()
        return [_row_to_chat(row) for row in rows]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        async with _transaction(conn):
            for table in ["chats", "messages", "users"]:
                await conn.execute(f"DELETE FROM {table}")

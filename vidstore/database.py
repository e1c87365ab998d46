"""SQLite storage for users, refresh tokens and video metadata."""

from __future__ import annotations

import sqlite3
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        password TEXT NOT NULL,
        email TEXT UNIQUE NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS refresh_tokens (
        token TEXT PRIMARY KEY,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        revoked_at TIMESTAMP,
        user_id TEXT NOT NULL,
        expires_at TIMESTAMP NOT NULL,
        FOREIGN KEY(user_id) REFERENCES users(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS videos (
        id TEXT PRIMARY KEY,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        title TEXT NOT NULL,
        description TEXT,
        thumbnail_url TEXT,
        video_url TEXT TEXT,
        user_id INTEGER,
        FOREIGN KEY(user_id) REFERENCES users(id)
    );
    """,
)


def _parse_ts(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class CreateUserParams:
    """Fields needed to create a user."""

    email: str
    password: str


@dataclass
class User:
    """A stored user account."""

    id: uuid.UUID
    email: str
    password: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Return the JSON representation of the user."""
        return {
            "id": str(self.id),
            "created_at": _format_ts(self.created_at),
            "updated_at": _format_ts(self.updated_at),
            "email": self.email,
            "password": self.password,
        }


@dataclass
class CreateVideoParams:
    """Fields needed to create a video record."""

    title: str
    description: str
    user_id: uuid.UUID


@dataclass
class Video:
    """Metadata for a stored video."""

    id: uuid.UUID
    title: str
    description: str
    user_id: uuid.UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None

    def to_dict(self) -> dict:
        """Return the JSON representation of the video."""
        return {
            "id": str(self.id),
            "created_at": _format_ts(self.created_at),
            "updated_at": _format_ts(self.updated_at),
            "thumbnail_url": self.thumbnail_url,
            "video_url": self.video_url,
            "title": self.title,
            "description": self.description,
            "user_id": str(self.user_id),
        }


@dataclass
class CreateRefreshTokenParams:
    """Fields needed to store a refresh token."""

    token: str
    user_id: uuid.UUID
    expires_at: datetime


@dataclass
class RefreshToken:
    """A stored refresh token."""

    token: str
    user_id: uuid.UUID
    expires_at: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = field(default=None)

    def to_dict(self) -> dict:
        """Return the JSON representation of the token."""
        return {
            "token": self.token,
            "user_id": str(self.user_id),
            "expires_at": _format_ts(self.expires_at),
            "created_at": _format_ts(self.created_at),
            "updated_at": _format_ts(self.updated_at),
            "revoked_at": _format_ts(self.revoked_at),
        }


_VIDEO_COLUMNS = (
    "id, created_at, updated_at, title, description, thumbnail_url, video_url, user_id"
)
_USER_COLUMNS = "id, created_at, updated_at, email, password"


def _row_to_video(row: Iterable[Any]) -> Video:
    vid, created, updated, title, description, thumb, video_url, user_id = row
    return Video(
        id=uuid.UUID(str(vid)),
        title=title,
        description=description or "",
        user_id=uuid.UUID(str(user_id)),
        created_at=_parse_ts(created),
        updated_at=_parse_ts(updated),
        thumbnail_url=thumb,
        video_url=video_url,
    )


def _row_to_user(row: Iterable[Any]) -> User:
    uid, created, updated, email, password = row
    return User(
        id=uuid.UUID(str(uid)),
        email=email,
        password=password,
        created_at=_parse_ts(created),
        updated_at=_parse_ts(updated),
    )


class Client:
    """A connection to the application database; creates the schema on open."""

    def __init__(self, path: str) -> None:
        self._conn = sqlite3.connect(
            path, isolation_level=None, check_same_thread=False
        )
        self._lock = threading.Lock()
        with self._lock:
            for statement in _SCHEMA:
                self._conn.execute(statement)

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying connection."""
        self._conn.close()

    def _execute(self, query: str, params: tuple = ()) -> None:
        with self._lock:
            self._conn.execute(query, params)

    def _fetchone(self, query: str, params: tuple = ()) -> Optional[tuple]:
        with self._lock:
            return self._conn.execute(query, params).fetchone()

    def _fetchall(self, query: str, params: tuple = ()) -> list:
        with self._lock:
            return self._conn.execute(query, params).fetchall()

    def reset(self) -> None:
        """Delete every row from every table."""
        for table in ("refresh_tokens", "users", "videos"):
            try:
                self._execute(f"DELETE FROM {table}")
            except sqlite3.Error as exc:
                raise sqlite3.DatabaseError(
                    f"failed to reset table {table}: {exc}"
                ) from exc

    # Refresh tokens

    def create_refresh_token(self, params: CreateRefreshTokenParams) -> Optional[RefreshToken]:
        """Store a refresh token and return the stored record."""
        self._execute(
            """
            INSERT INTO refresh_tokens (token, created_at, updated_at, user_id, expires_at)
            VALUES (?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP, ?, ?)
            """,
            (params.token, str(params.user_id), params.expires_at.isoformat(sep=" ")),
        )
        return self.get_refresh_token(params.token)

    def revoke_refresh_token(self, token: str) -> None:
        """Mark a refresh token as revoked now."""
        self._execute(
            "UPDATE refresh_tokens SET revoked_at = CURRENT_TIMESTAMP WHERE token = ?",
            (token,),
        )

    def get_refresh_token(self, token: str) -> Optional[RefreshToken]:
        """Return the refresh token record, or None when it does not exist."""
        row = self._fetchone(
            """
            SELECT token, created_at, updated_at, user_id, expires_at, revoked_at
            FROM refresh_tokens WHERE token = ?
            """,
            (token,),
        )
        if row is None:
            return None
        tok, created, updated, user_id, expires, revoked = row
        return RefreshToken(
            token=tok,
            user_id=uuid.UUID(str(user_id)),
            expires_at=_parse_ts(expires),
            created_at=_parse_ts(created),
            updated_at=_parse_ts(updated),
            revoked_at=_parse_ts(revoked),
        )

    def delete_refresh_token(self, token: str) -> None:
        """Remove a refresh token."""
        self._execute("DELETE FROM refresh_tokens WHERE token = ?", (token,))

    # Users

    def get_users(self) -> list[User]:
        """Return every user with only id and email filled in."""
        rows = self._fetchall("SELECT id, email FROM users")
        return [User(id=uuid.UUID(str(uid)), email=email) for uid, email in rows]

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Return the user with this email, or None."""
        row = self._fetchone(
            f"SELECT {_USER_COLUMNS} FROM users WHERE email = ?", (email,)
        )
        return _row_to_user(row) if row is not None else None

    def get_user_by_refresh_token(self, token: str) -> Optional[User]:
        """Return the user owning a refresh token, or None."""
        row = self._fetchone(
            """
            SELECT u.id, u.created_at, u.updated_at, u.email, u.password
            FROM users u
            JOIN refresh_tokens rt ON u.id = rt.user_id
            WHERE rt.token = ?
            """,
            (token,),
        )
        return _row_to_user(row) if row is not None else None

    def create_user(self, params: CreateUserParams) -> Optional[User]:
        """Insert a user with a fresh id and return it."""
        user_id = uuid.uuid4()
        self._execute(
            """
            INSERT INTO users (id, created_at, updated_at, email, password)
            VALUES (?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP, ?, ?)
            """,
            (str(user_id), params.email, params.password),
        )
        return self.get_user(user_id)

    def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        """Return the user with this id, or None."""
        row = self._fetchone(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (str(user_id),)
        )
        return _row_to_user(row) if row is not None else None

    def delete_user(self, user_id: uuid.UUID) -> None:
        """Remove a user."""
        self._execute("DELETE FROM users WHERE id = ?", (str(user_id),))

    # Videos

    def get_videos(self, user_id: uuid.UUID) -> list[Video]:
        """Return a user's videos, newest first."""
        rows = self._fetchall(
            f"SELECT {_VIDEO_COLUMNS} FROM videos WHERE user_id = ? ORDER BY created_at DESC",
            (str(user_id),),
        )
        return [_row_to_video(row) for row in rows]

    def create_video(self, params: CreateVideoParams) -> Optional[Video]:
        """Insert a video with a fresh id and return it."""
        video_id = uuid.uuid4()
        self._execute(
            """
            INSERT INTO videos (id, created_at, updated_at, title, description, user_id)
            VALUES (?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP, ?, ?, ?)
            """,
            (str(video_id), params.title, params.description, str(params.user_id)),
        )
        return self.get_video(video_id)

    def get_video(self, video_id: uuid.UUID) -> Optional[Video]:
        """Return the video with this id, or None."""
        row = self._fetchone(
            f"SELECT {_VIDEO_COLUMNS} FROM videos WHERE id = ?", (str(video_id),)
        )
        return _row_to_video(row) if row is not None else None

    def update_video(self, video: Video) -> None:
        """Write a video's editable fields back to storage."""
        self._execute(
            """
            UPDATE videos
            SET title = ?, description = ?, thumbnail_url = ?, video_url = ?, user_id = ?
            WHERE id = ?
            """,
            (
                video.title,
                video.description,
                video.thumbnail_url,
                video.video_url,
                str(video.user_id),
                str(video.id),
            ),
        )

    def delete_video(self, video_id: uuid.UUID) -> None:
        """Remove a video."""
        self._execute("DELETE FROM videos WHERE id = ?", (str(video_id),))
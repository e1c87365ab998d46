import sqlite3
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from vidstore.database import (
    Client,
    CreateRefreshTokenParams,
    CreateUserParams,
    CreateVideoParams,
    RefreshToken,
    User,
    Video,
)


@pytest.fixture
def client(tmp_path):
    with Client(str(tmp_path / "app.db")) as c:
        yield c


def _user(client, email="alice@example.com"):
    password = "password"
    return client.create_user(CreateUserParams(email=email, password=password))


def test_create_and_get_user(client):
    user = _user(client)
    assert user.email == "alice@example.com"
    assert user.password == "password"
    assert user.created_at.tzinfo is not None
    assert client.get_user(user.id) == user


def test_get_user_by_email(client):
    user = _user(client)
    assert client.get_user_by_email("alice@example.com") == user
    assert client.get_user_by_email("nobody@example.com") is None


def test_missing_user_returns_none(client):
    assert client.get_user(uuid.uuid4()) is None


def test_duplicate_email_rejected(client):
    _user(client)
    with pytest.raises(sqlite3.IntegrityError):
        _user(client)


def test_get_users_and_delete(client):
    a = _user(client, "a@example.com")
    b = _user(client, "b@example.com")
    users = client.get_users()
    assert {(u.id, u.email) for u in users} == {(a.id, a.email), (b.id, b.email)}
    client.delete_user(a.id)
    assert [u.id for u in client.get_users()] == [b.id]


def test_refresh_token_roundtrip(client):
    user = _user(client)
    expires = datetime(2030, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    stored = client.create_refresh_token(
        CreateRefreshTokenParams(token="token", user_id=user.id, expires_at=expires)
    )
    assert stored.token == "token"
    assert stored.user_id == user.id
    assert stored.expires_at == expires
    assert stored.revoked_at is None
    assert client.get_user_by_refresh_token("token") == user


def test_revoke_refresh_token(client):
    user = _user(client)
    client.create_refresh_token(
        CreateRefreshTokenParams(
            token="token",
            user_id=user.id,
            expires_at=datetime.now(timezone.utc) + timedelta(days=60),
        )
    )
    client.revoke_refresh_token("token")
    revoked = client.get_refresh_token("token")
    assert isinstance(revoked.revoked_at, datetime)
    assert revoked.revoked_at.tzinfo == timezone.utc


def test_delete_refresh_token(client):
    user = _user(client)
    client.create_refresh_token(
        CreateRefreshTokenParams(
            token="token", user_id=user.id, expires_at=datetime.now(timezone.utc)
        )
    )
    client.delete_refresh_token("token")
    assert client.get_refresh_token("token") is None
    assert client.get_user_by_refresh_token("token") is None


def test_video_create_get_update_delete(client):
    user = _user(client)
    video = client.create_video(
        CreateVideoParams(title="Boots", description="A film", user_id=user.id)
    )
    assert video.title == "Boots"
    assert video.description == "A film"
    assert video.user_id == user.id
    assert video.thumbnail_url is None and video.video_url is None
    assert client.get_video(video.id) == video

    video.thumbnail_url = "http://localhost:8091/assets/x.png"
    video.title = "Boots 2"
    client.update_video(video)
    updated = client.get_video(video.id)
    assert updated.thumbnail_url == "http://localhost:8091/assets/x.png"
    assert updated.title == "Boots 2"

    client.delete_video(video.id)
    assert client.get_video(video.id) is None


def test_get_videos_filters_by_user(client):
    alice = _user(client, "a@example.com")
    bob = _user(client, "b@example.com")
    v1 = client.create_video(CreateVideoParams("one", "", alice.id))
    v2 = client.create_video(CreateVideoParams("two", "", alice.id))
    client.create_video(CreateVideoParams("three", "", bob.id))
    assert {v.id for v in client.get_videos(alice.id)} == {v1.id, v2.id}
    assert client.get_videos(uuid.uuid4()) == []


def test_reset_clears_everything(client):
    user = _user(client)
    client.create_video(CreateVideoParams("one", "", user.id))
    client.create_refresh_token(
        CreateRefreshTokenParams("token", user.id, datetime.now(timezone.utc))
    )
    client.reset()
    assert client.get_users() == []
    assert client.get_videos(user.id) == []
    assert client.get_refresh_token("token") is None


def test_data_persists_across_connections(tmp_path):
    path = str(tmp_path / "app.db")
    with Client(path) as first:
        user = _user(first)
    with Client(path) as second:
        assert second.get_user(user.id) == user


def test_to_dict_shapes():
    uid = uuid.uuid4()
    ts = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
    video = Video(id=uid, title="t", description="d", user_id=uid, created_at=ts, updated_at=ts)
    data = video.to_dict()
    assert data["id"] == str(uid)
    assert data["thumbnail_url"] is None
    assert datetime.fromisoformat(data["created_at"]) == ts
    user = User(id=uid, email="a@example.com", created_at=ts)
    assert set(user.to_dict()) == {"id", "created_at", "updated_at", "email", "password"}
    token = RefreshToken(token="token", user_id=uid, expires_at=ts)
    assert token.to_dict()["revoked_at"] is None
    assert token.to_dict()["user_id"] == str(uid)
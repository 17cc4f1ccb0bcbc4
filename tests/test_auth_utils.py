from datetime import timedelta

from campus_assistant.config import Config
from campus_assistant.utils.auth_utils import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_hashed_password_verifies():
    hashed = hash_password("s3cret")

    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)


def test_plain_configured_password():
    assert verify_password("s3cret", "s3cret")
    assert not verify_password("", "s3cret")
    assert not verify_password("s3cret", "")


def test_token_roundtrip_and_expiry():
    token = create_access_token({"sub": "admin", "role": "admin"})
    assert decode_access_token(token)["role"] == "admin"

    expired = create_access_token({"sub": "admin"}, expires_delta=timedelta(seconds=-1))
    assert decode_access_token(expired) is None
    assert decode_access_token("garbage") is None


def test_login_with_hashed_admin_password(client, monkeypatch):
    monkeypatch.setattr(Config, "ADMIN_PASSWORD", hash_password("hashed-admin"))

    assert client.post("/api/admin/login", json={"password": "hashed-admin"}).status_code == 200
    assert client.post("/api/admin/login", json={"password": "nope"}).status_code == 401

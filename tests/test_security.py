"""Tests for password hashing, token generation and cookie parsing."""
import string

import pytest

from app.core import security
from app.core.security import (
    burn_password_check,
    generate_session_token,
    generate_verification_token,
    hash_password,
    parse_cookies,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_is_salted(self):
        h1 = hash_password("password123", rounds=4)
        h2 = hash_password("password123", rounds=4)
        assert h1 != h2
        assert h1.startswith("$2")

    def test_verify_correct_password(self):
        h = hash_password("password123", rounds=4)
        assert verify_password("password123", h) is True

    def test_verify_wrong_password(self):
        h = hash_password("password123", rounds=4)
        assert verify_password("password124", h) is False

    def test_malformed_hash_is_false_not_error(self):
        assert verify_password("password123", "not-a-bcrypt-hash") is False

    def test_missing_hash_is_false(self):
        assert verify_password("password123", None) is False
        assert verify_password("", "$2b$04$abc") is False

    def test_empty_password_rejected(self):
        with pytest.raises(ValueError):
            hash_password("")

    def test_burn_password_check_runs_bcrypt(self, monkeypatch):
        calls = []
        real_checkpw = security.bcrypt.checkpw
        monkeypatch.setattr(security.bcrypt, "checkpw", lambda pw, h: calls.append(h) or real_checkpw(pw, h))

        burn_password_check("password123", rounds=4)
        burn_password_check("", rounds=4)

        assert len(calls) == 2
        assert calls[0] == calls[1]


class TestTokens:
    def test_verification_token_shape(self):
        for _ in range(50):
            token = generate_verification_token()
            assert len(token) == 6
            assert set(token) <= set(string.ascii_uppercase + string.digits)

    def test_session_token_shape(self):
        token = generate_session_token()
        assert len(token) == 64
        assert set(token) <= set(string.ascii_letters + string.digits + "_-")

    def test_session_tokens_are_unique(self):
        tokens = {generate_session_token() for _ in range(200)}
        assert len(tokens) == 200


class TestParseCookies:
    def test_empty_header(self):
        assert parse_cookies(None) == {}
        assert parse_cookies("") == {}

    def test_multiple_pairs(self):
        cookies = parse_cookies("a=1; app_session_id=abc; theme=dark")
        assert cookies == {"a": "1", "app_session_id": "abc", "theme": "dark"}

    def test_values_are_url_decoded(self):
        assert parse_cookies("name=%D8%B9%D9%84%D9%8A")["name"] == "علي"

    def test_value_with_equals_sign_kept(self):
        assert parse_cookies("t=abc==")["t"] == "abc=="

    def test_malformed_pairs_skipped(self):
        cookies = parse_cookies(";;=novalue; noequals; empty=; ok=1")
        assert cookies == {"ok": "1"}

    def test_quoted_value(self):
        assert parse_cookies('q="hello"')["q"] == "hello"

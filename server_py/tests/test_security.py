from datetime import timedelta

import pytest

from onboard.core.dependencies import extract_access_token
from onboard.core.errors import AuthError
from onboard.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)


class TestTokens:
    def test_access_token_round_trip(self) -> None:
        identity = decode_access_token(create_access_token(42, "admin"))

        assert identity.user_id == 42
        assert identity.is_admin

    def test_refresh_token_round_trip(self) -> None:
        assert decode_refresh_token(create_refresh_token(7)) == 7

    def test_refresh_token_is_not_an_access_token(self) -> None:
        with pytest.raises(AuthError):
            decode_access_token(create_refresh_token(7))

    def test_access_token_is_not_a_refresh_token(self) -> None:
        with pytest.raises(AuthError):
            decode_refresh_token(create_access_token(7, "user"))

    def test_expired_token_rejected(self) -> None:
        token = create_access_token(1, "user", expires_delta=timedelta(seconds=-5))
        with pytest.raises(AuthError):
            decode_access_token(token)

    def test_unknown_role_rejected(self) -> None:
        with pytest.raises(AuthError):
            decode_access_token(create_access_token(1, "superuser"))

    def test_garbage_rejected(self) -> None:
        with pytest.raises(AuthError):
            decode_access_token("not.a.token")


class TestPasswords:
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("s3cret")

        assert hashed != "s3cret"
        assert verify_password("s3cret", hashed)
        assert not verify_password("other", hashed)

    def test_missing_hash_never_verifies(self) -> None:
        assert verify_password("anything", None) is False


def test_cookie_wins_over_bearer() -> None:
    class Credentials:
        credentials = "from-header"

    assert extract_access_token({"accessToken": "from-cookie"}, Credentials()) == "from-cookie"
    assert extract_access_token({}, Credentials()) == "from-header"
    assert extract_access_token({}) is None

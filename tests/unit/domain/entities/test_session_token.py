import pytest

from linkauth.core.exceptions import InvalidTokenError
from linkauth.domain.entities.session_token import SessionToken, token_prefix


def test_encode_decode():
    token = SessionToken("a1b2", "c3d4", "e5f6")
    assert token.encode() == "a1b2-c3d4-e5f6"
    assert str(token) == "a1b2-c3d4-e5f6"
    assert SessionToken.decode("a1b2-c3d4-e5f6") == token


@pytest.mark.parametrize("raw", ["", "a1b2", "a1b2-c3d4", "a1b2--e5f6", "a-b-c-d", "-b-c"])
def test_decode_rejects_malformed(raw):
    with pytest.raises(InvalidTokenError):
        SessionToken.decode(raw)


def test_is_admin_when_subject_equals_app():
    assert SessionToken("a1b2", "a1b2", "ff").is_admin is True
    assert SessionToken("a1b2", "c3d4", "ff").is_admin is False


def test_token_prefix():
    assert token_prefix("a1b2") == "a1b2-"
    assert token_prefix("a1b2", "c3d4") == "a1b2-c3d4-"
    assert SessionToken("a1b2", "c3d4", "ff").subject_prefix == "a1b2-c3d4-"
    assert SessionToken("a1b2", "c3d4", "ff").encode().startswith(token_prefix("a1b2", "c3d4"))

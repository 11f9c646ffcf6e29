import pytest

from confbot.core.errors import DomainError, ErrorCode
from confbot.dialog.actions import Action


def test_encode_simple():
    assert Action.of("moderate", "approve", "ABC123", 7).encode() == "moderate:approve:ABC123:7"


def test_param_with_colon_round_trips():
    token = Action.of("admin", "conf", "A:B").encode()
    assert token == "admin:conf:A%3AB"
    decoded = Action.decode(token)
    assert decoded.params == ("A:B",)
    assert decoded.param(0) == "A:B"


def test_decode_without_params():
    action = Action.decode("menu:main")
    assert action == Action("menu", "main", ())


@pytest.mark.parametrize("token", ["", "menu", "unknown:verb", "menu:", None])
def test_malformed_tokens_are_validation_errors(token):
    with pytest.raises(DomainError) as exc:
        Action.decode(token)
    assert exc.value.code is ErrorCode.VALIDATION_ERROR


def test_int_param():
    action = Action.decode("vote:poll:12:0")
    assert action.int_param(0) == 12
    assert action.int_param(1) == 0
    with pytest.raises(DomainError):
        action.param(2)
    with pytest.raises(DomainError):
        Action.decode("poll:manage:abc").int_param(0)

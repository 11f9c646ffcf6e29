from confbot.core.errors import DomainError, ErrorCode, ErrorKind, ERROR_KINDS, validation_error


def test_every_code_has_a_kind():
    assert set(ERROR_KINDS) == set(ErrorCode)


def test_sentinels():
    assert DomainError(ErrorCode.ALREADY_VOTED).sentinel == "ALREADY_VOTED"
    assert validation_error("too short").sentinel == "VALIDATION_ERROR:too short"
    assert DomainError(ErrorCode.VALIDATION_ERROR).sentinel == "VALIDATION_ERROR"


def test_kinds():
    assert DomainError(ErrorCode.ACCESS_DENIED).kind is ErrorKind.authorization
    assert DomainError(ErrorCode.POLL_NOT_FOUND).kind is ErrorKind.not_found
    assert DomainError(ErrorCode.INVALID_TRANSITION).kind is ErrorKind.state_conflict
    assert DomainError(ErrorCode.STORAGE_FAILURE).kind is ErrorKind.storage

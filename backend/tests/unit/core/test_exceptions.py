"""Tests for the service error taxonomy."""

import pytest

from tokengate.core.exceptions import (
    ClientDisabledError,
    ClientNotFoundError,
    InfrastructureError,
    InvalidTokenStateError,
    KeyGenerationError,
    OAuthErrorKind,
    OAuthServiceError,
    PermissionNotAllowedError,
    TokenExpiredError,
    TokengateException,
    TokenKeyCollisionError,
    TokenNotFoundError,
    TokenStoreUnavailableError,
    UnknownPermissionError,
    VerifierMismatchError,
)

SERVICE_ERRORS = [
    (ClientNotFoundError("c1"), OAuthErrorKind.CLIENT_NOT_FOUND),
    (ClientDisabledError("c1"), OAuthErrorKind.CLIENT_DISABLED),
    (PermissionNotAllowedError("c1", {"admin"}), OAuthErrorKind.PERMISSION_NOT_ALLOWED),
    (UnknownPermissionError({"nope"}), OAuthErrorKind.UNKNOWN_PERMISSION),
    (TokenNotFoundError(), OAuthErrorKind.TOKEN_NOT_FOUND),
    (TokenExpiredError(), OAuthErrorKind.TOKEN_EXPIRED),
    (InvalidTokenStateError(), OAuthErrorKind.INVALID_TOKEN_STATE),
    (VerifierMismatchError(), OAuthErrorKind.VERIFIER_MISMATCH),
]


@pytest.mark.parametrize(
    "error, kind", SERVICE_ERRORS, ids=[kind.value for _, kind in SERVICE_ERRORS]
)
def test_each_service_error_has_its_kind(error, kind):
    assert isinstance(error, OAuthServiceError)
    assert isinstance(error, TokengateException)
    assert error.kind is kind


def test_kinds_are_closed():
    assert {kind for _, kind in SERVICE_ERRORS} == set(OAuthErrorKind)


def test_default_message_comes_from_kind():
    assert TokenNotFoundError().message == "token not found"
    assert str(TokenExpiredError("gone")) == "gone"


def test_permission_errors_list_sorted_ids():
    error = PermissionNotAllowedError("c1", {"write", "admin"})

    assert error.permissions == frozenset({"write", "admin"})
    assert error.message == "Client 'c1' is not allowed to request: admin, write"
    assert UnknownPermissionError({"b", "a"}).message == "Unknown permissions: a, b"


@pytest.mark.parametrize(
    "error",
    [
        TokenStoreUnavailableError("insert_request_token"),
        KeyGenerationError("no entropy"),
        TokenKeyCollisionError(),
    ],
    ids=["store", "entropy", "collision"],
)
def test_infrastructure_errors_are_a_separate_family(error):
    assert isinstance(error, InfrastructureError)
    assert not isinstance(error, TokengateException)


def test_store_error_names_operation():
    error = TokenStoreUnavailableError("purge_expired", "connection refused")

    assert error.operation == "purge_expired"
    assert str(error) == "purge_expired: connection refused"

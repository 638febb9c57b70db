from __future__ import annotations

import httpx
import pytest

from tamimah_network.errors import (
    USER_MESSAGES,
    ErrorKind,
    NetworkError,
    classify_exception,
    classify_response,
    kind_for_status,
)


@pytest.mark.parametrize(
    ("status", "kind"),
    [
        (400, ErrorKind.BAD_REQUEST),
        (401, ErrorKind.UNAUTHORIZED),
        (403, ErrorKind.FORBIDDEN),
        (404, ErrorKind.NOT_FOUND),
        (422, ErrorKind.VALIDATION_ERROR),
        (500, ErrorKind.SERVER_ERROR),
        (502, ErrorKind.SERVER_ERROR),
        (503, ErrorKind.SERVER_ERROR),
        (409, ErrorKind.SERVER_ERROR),
        (302, ErrorKind.SERVER_ERROR),
    ],
)
def test_kind_for_status(status: int, kind: ErrorKind) -> None:
    assert kind_for_status(status) is kind


def test_kind_for_success_status_is_none() -> None:
    assert kind_for_status(200) is None
    assert kind_for_status(204) is None


def test_classify_response_uses_body_message_and_field_errors() -> None:
    error = classify_response(
        422,
        {"message": "Invalid payload", "errors": {"email": ["required"]}},
        method="POST",
        path="/users",
    )
    assert error is not None
    assert error.kind is ErrorKind.VALIDATION_ERROR
    assert error.message == "Invalid payload"
    assert error.status_code == 422
    assert error.errors == {"email": ["required"]}
    assert error.details is not None
    assert error.details.path == "/users"


def test_classify_response_falls_back_to_envelope_then_default_message() -> None:
    error = classify_response(
        404,
        {"ResponseStatus": {"Statuscode": 404, "Message": "User missing"}},
        method="GET",
        path="/users/1",
    )
    assert error is not None and error.message == "User missing"

    error = classify_response(500, "<html>oops</html>", method="GET", path="/")
    assert error is not None
    assert error.message == "Server error"
    assert error.errors is None


def test_classify_exception_maps_httpx_failures() -> None:
    timeout = classify_exception(httpx.ReadTimeout("slow"), method="GET", path="/")
    assert timeout.kind is ErrorKind.TIMEOUT

    refused = classify_exception(httpx.ConnectError("refused"), method="GET", path="/")
    assert refused.kind is ErrorKind.CONNECTION_ERROR

    dropped = classify_exception(
        httpx.RemoteProtocolError("Server disconnected without sending a response."),
        method="GET",
        path="/",
    )
    assert dropped.kind is ErrorKind.CONNECTION_ERROR
    assert dropped.is_retryable is True

    unexpected = classify_exception(RuntimeError("boom"), method="GET", path="/")
    assert unexpected.kind is ErrorKind.UNKNOWN
    assert unexpected.message == "Unexpected error: boom"


def test_classify_exception_passes_network_errors_through() -> None:
    original = NetworkError.cancelled()
    assert classify_exception(original, method="GET", path="/") is original


@pytest.mark.parametrize(
    ("kind", "retryable"),
    [
        (ErrorKind.TIMEOUT, True),
        (ErrorKind.CONNECTION_ERROR, True),
        (ErrorKind.SERVER_ERROR, True),
        (ErrorKind.NO_CONNECTION, True),
        (ErrorKind.BAD_REQUEST, False),
        (ErrorKind.UNAUTHORIZED, False),
        (ErrorKind.CANCELLED, False),
        (ErrorKind.UNKNOWN, False),
    ],
)
def test_retryable_kinds(kind: ErrorKind, retryable: bool) -> None:
    assert NetworkError("x", kind).is_retryable is retryable


def test_client_and_server_error_predicates() -> None:
    assert NetworkError.from_status_code(404, "missing").is_client_error is True
    assert NetworkError.from_status_code(404, "missing").is_server_error is False
    assert NetworkError.from_status_code(503, "down").is_server_error is True
    assert NetworkError.timeout().is_client_error is False
    assert NetworkError.unauthorized("nope").is_auth_error is True
    assert NetworkError.server_error("down").status_code == 500


def test_every_kind_has_a_user_message() -> None:
    assert set(USER_MESSAGES) == set(ErrorKind)
    error = NetworkError("raw server text", ErrorKind.NOT_FOUND)
    assert error.user_message == "The requested resource was not found."
    assert str(error) == "raw server text"

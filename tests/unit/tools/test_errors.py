"""Tests for backend error translation."""

from __future__ import annotations

import pytest
from botocore.exceptions import ClientError, NoCredentialsError

from wasabi_mcp.core.exceptions import InvalidParamsError, SessionNotFoundError
from wasabi_mcp.models.envelopes import ErrorKind
from wasabi_mcp.tools.errors import translate_error


def _client_error(code: str, message: str = "boom") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, "GetObject")


@pytest.mark.parametrize("code", ["NoSuchKey", "NoSuchBucket", "NotFound", "404"])
def test_not_found_codes(code):
    assert translate_error(_client_error(code)).kind is ErrorKind.NOT_FOUND


@pytest.mark.parametrize("code", ["AccessDenied", "InvalidAccessKeyId", "BucketNotEmpty", "SlowDown"])
def test_other_client_errors_are_internal(code):
    error = translate_error(_client_error(code, "nope"))
    assert error.kind is ErrorKind.INTERNAL_ERROR
    assert "nope" in error.message


def test_tool_errors_pass_through():
    original = InvalidParamsError("Missing required parameter: bucket")
    assert translate_error(original) is original


def test_session_not_found_keeps_kind():
    assert translate_error(SessionNotFoundError("abc")).kind is ErrorKind.NOT_FOUND


def test_unclassified_exception_is_internal():
    error = translate_error(NoCredentialsError())
    assert error.kind is ErrorKind.INTERNAL_ERROR
    assert error.message == "Tool execution failed: Unable to locate credentials"


def test_empty_message_falls_back_to_class_name():
    assert translate_error(RuntimeError()).message == "Tool execution failed: RuntimeError"

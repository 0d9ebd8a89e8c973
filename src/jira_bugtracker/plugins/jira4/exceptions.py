"""Custom exceptions for the JIRA 4 plugin.

This module defines the exceptions raised by the SOAP connection and the
helpers that turn raw zeep and requests errors into readable messages.
"""

from __future__ import annotations

import re

import requests
from zeep.exceptions import Error as ZeepError
from zeep.exceptions import Fault

# Errors raised by the SOAP stack for remote or network problems
REMOTE_ERRORS: tuple[type[Exception], ...] = (ZeepError, requests.exceptions.RequestException)

UNREACHABLE_MESSAGE = (
    "Could not connect to JIRA server. Check the plugin configuration and "
    "ensure that the server is not down or overloaded."
)
CONNECTION_PROBLEM_PREFIX = "There is a problem during connection with JIRA server: "
INVALID_URL_MESSAGE = "Invalid JIRA URL"

AUTHENTICATION_FAULT = "RemoteAuthenticationException"

_LEADING_JUNK = re.compile(r"^[\W\s]*")
_TRAILING_JUNK = re.compile(r"[\W\s]*$")


class JiraPluginError(Exception):
    """Base exception for the JIRA 4 plugin."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(JiraPluginError):
    """Raised when the plugin configuration is invalid."""

    pass


class JiraRemoteError(JiraPluginError):
    """Raised when a call to the JIRA server fails."""

    pass


class JiraAuthenticationError(JiraRemoteError):
    """Raised when JIRA rejects the user's credentials."""

    pass


def is_authentication_fault(error: Exception) -> bool:
    """Check whether a SOAP fault reports rejected credentials.

    JIRA names the Java exception class in the fault string and in the
    fault detail element.

    Args:
        error: Error raised by the SOAP stack.

    Returns:
        True for an authentication fault.
    """
    if not isinstance(error, Fault):
        return False

    if AUTHENTICATION_FAULT in (error.message or "") or AUTHENTICATION_FAULT in (error.code or ""):
        return True

    if error.detail is not None:
        for child in error.detail.iter():
            if AUTHENTICATION_FAULT in str(child.tag):
                return True

    return False


def find_helpful_message(error: Exception) -> str:
    """Extract a readable message from an error raised by the SOAP stack.

    JIRA does not put the useful text in the exception message, so its
    "<exception class>: <message>" fault string format is parsed.

    Args:
        error: Error raised by the SOAP stack.

    Returns:
        Message suitable for showing to a user.
    """
    if isinstance(error, Fault):
        fault_string = error.message or ""
        _code, sep, message = fault_string.partition(":")
        return message.strip() if sep else fault_string

    if isinstance(
        error,
        (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
        ),
    ):
        return INVALID_URL_MESSAGE

    if isinstance(error, requests.exceptions.ConnectionError):
        return UNREACHABLE_MESSAGE

    if isinstance(error, REMOTE_ERRORS):
        detail = error.__cause__
        if detail is not None and str(detail):
            return CONNECTION_PROBLEM_PREFIX + str(detail)
        return CONNECTION_PROBLEM_PREFIX + (str(error) or type(error).__name__)

    return str(error)


def translate_error(error: Exception) -> JiraRemoteError:
    """Wrap an error raised by the SOAP stack.

    Args:
        error: Error raised by the SOAP stack.

    Returns:
        JiraAuthenticationError for rejected credentials, JiraRemoteError
        for everything else.
    """
    message = find_helpful_message(error)
    details = {"error_type": type(error).__name__}
    if is_authentication_fault(error):
        return JiraAuthenticationError(message, details)
    return JiraRemoteError(message, details)


def clean_error_message(message: str | None, fallback: str) -> str:
    """Trim leading and trailing punctuation from a remote error message.

    Args:
        message: Message from the remote layer.
        fallback: Message to use when nothing is left.

    Returns:
        Trimmed message or the fallback.
    """
    cleaned = _LEADING_JUNK.sub("", message or "", count=1)
    cleaned = _TRAILING_JUNK.sub("", cleaned, count=1)
    return cleaned or fallback

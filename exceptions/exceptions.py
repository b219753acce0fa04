"""
Custom exceptions for the chat relay.

These exceptions are intentionally simple and descriptive.
They are used across:

  - configs/settings.py
  - core/api/openai_client.py
  - runtime/agents/
  - runtime/api/

Every exception carries the HTTP status the relay answers with, so the
API layer can render all of them with a single handler as:

    {"error": "<message>"}

Placing them at the project root (exceptions/) avoids circular imports
and keeps exception types consistent across modules.
"""

from typing import Iterable, Optional


class RelayError(Exception):
    """Base class for every failure the relay reports to its client."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(RelayError):
    """
    Raised when a required setting (API key, workflow or assistant id)
    is not present in the process configuration.

    The exception contains the list of missing variable names.
    """

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        msg = "Missing configuration: " + ", ".join(self.missing)
        super().__init__(msg)


class UpstreamError(RelayError):
    """
    Raised when an OpenAI API call returns a non-success status, or a
    success status with a payload the relay cannot use.

    Example:
        operation='Create ChatKit session', upstream_status=401,
        body='{"error": {"message": "Incorrect API key provided"}}'
    """

    def __init__(self, operation: str, upstream_status: Optional[int], body: str):
        self.operation = operation
        self.upstream_status = upstream_status
        self.body = body
        if upstream_status is None:
            msg = f"{operation} failed: {body}"
        else:
            msg = f"{operation} failed ({upstream_status}): {body}"
        super().__init__(msg)


class InvalidRequestError(RelayError):
    """Raised when the client's request body cannot be relayed."""

    status_code = 400

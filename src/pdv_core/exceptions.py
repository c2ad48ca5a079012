"""Domain-specific exceptions for PDV Core.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from PdvAPIError for easy catching.
"""


class PdvAPIError(Exception):
    """Base exception for all PDV Core errors.

    This is the base class for all domain-specific exceptions in the package.
    Users can catch this exception to handle any PDV Core error.
    """

    pass


class ConfigError(PdvAPIError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - Backend URL or API key are missing or still hold placeholder values
    - A store location name is unknown
    - A settings file cannot be written
    """

    pass


class ValidationError(PdvAPIError):
    """Raised when an input row is malformed.

    This exception is raised when:
    - A required field is missing from a row
    - An amount is negative or not a number
    - An entry type is neither "income" nor "expense"
    - A timestamp cannot be parsed

    The aggregation call that received the row is rejected as a whole.
    """

    pass


class NotFoundError(PdvAPIError):
    """Raised when no cash register (or no rows) exist for a period.

    This is a valid empty state, not a failure: the report layer turns it
    into ``None`` so callers can tell "no register opened" apart from
    "register opened, zero transactions".
    """

    pass


class TransportError(PdvAPIError):
    """Raised when a request to the remote store fails.

    This exception is raised when:
    - The connection to the backend cannot be established
    - The backend answers with a non-2xx status after retries
    - The response body is not valid JSON

    Attributes:
        status_code: HTTP status code, or None for connection failures.
        retryable: True when retrying later may succeed (429, 5xx, network).
    """

    def __init__(self, message: str, status_code: int | None = None, retryable: bool = True):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class SupersededError(PdvAPIError):
    """Raised when a request was cancelled because a newer one replaced it.

    Callers should drop the result silently; the newer request owns the
    screen.
    """

    pass

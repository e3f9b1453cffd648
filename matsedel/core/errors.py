"""Error taxonomy for Matsedel.

Adapters raise these errors and the aggregation layer lets them pass through
untouched. Only the outer surfaces (web, CLI) translate an error kind into a
status code or exit code.
"""


class MatsedelError(Exception):
    """Base class for all Matsedel errors."""

    kind: str = "error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ParseError(MatsedelError):
    """Raised when upstream data or an identifier fails a structural expectation."""

    kind = "parse_error"


class MalformedIdentifierError(ParseError):
    """Raised when a composite menu identifier cannot be encoded or decoded."""

    kind = "malformed_identifier"


class NotFoundError(MatsedelError):
    """Raised when a provider or menu does not exist."""

    kind = "not_found"


class InvalidRequestError(MatsedelError):
    """Raised when caller-supplied input is unacceptable."""

    kind = "invalid_request"


class InvalidRangeError(InvalidRequestError):
    """Raised when a date range starts after it ends."""

    kind = "invalid_range"


class InvalidIdentifierError(InvalidRequestError):
    """Raised when a menu ID does not have the shape its provider requires."""

    kind = "invalid_identifier"


class UpstreamError(MatsedelError):
    """Raised when an upstream service keeps failing or answers unexpectedly."""

    kind = "upstream_error"

    def __init__(self, message: str, status_code: int | None = None, attempts: int | None = None):
        self.status_code = status_code
        self.attempts = attempts
        super().__init__(message)

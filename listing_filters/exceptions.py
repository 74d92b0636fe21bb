"""
Custom exception classes for the listing filter layer.

Lookup misses (unknown slug, no stored filter data) are not errors and are
returned as None. Database and Redis errors are not wrapped; they propagate
to the caller unchanged.
"""


class AppException(Exception):
    """
    Base exception class for all listing filter exceptions.

    Attributes:
        message: Human-readable error message.
        http_status: HTTP status code an HTTP adapter should answer with.
    """

    http_status: int = 500

    def __init__(self, message: str):
        """
        Initialize the exception with a message.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)


class FilterConfigurationError(AppException):
    """
    The filter layer was wired incorrectly by the caller.

    Raised for integration bugs such as a backlink lookup without any
    request scope, or pagination without a way to count rows. Never
    caught by this package.

    HTTP Status: 500 Internal Server Error
    """

    http_status = 500


class FilterDataDecodeError(AppException):
    """
    Stored filter data could not be decoded.

    Raised when the JSON text of a slug record is malformed or is not a
    JSON object.

    HTTP Status: 500 Internal Server Error
    """

    http_status = 500


class SlugGenerationError(AppException):
    """
    No free slug could be generated.

    Raised when every candidate slug within the retry limit was already
    taken in the scope.

    HTTP Status: 503 Service Unavailable
    """

    http_status = 503

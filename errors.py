"""Error types raised by the library service.

Each error carries the HTTP status it maps to; ``register_error_handlers``
turns them into ``{"error": message}`` JSON responses.
"""

from flask import jsonify


class LibraryError(Exception):
    status_code = 500
    message = "Server error"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class Unauthorized(LibraryError):
    status_code = 401
    message = "Unauthorized"


class InvalidArgument(LibraryError):
    status_code = 400
    message = "Invalid request"


class NotFound(LibraryError):
    status_code = 404
    message = "Not found"


class Conflict(LibraryError):
    status_code = 409
    message = "Already exists"


class UpstreamUnavailable(LibraryError):
    status_code = 502
    message = "Metadata service unavailable"


class StorageUnavailable(LibraryError):
    """Persistence or session store failure.

    The response body is always the opaque ``Server error``; the underlying
    cause is only logged.
    """

    status_code = 500
    message = "Server error"

    def __init__(self, message=None):
        super().__init__(message)
        self.message = StorageUnavailable.message


def register_error_handlers(app):
    @app.errorhandler(LibraryError)
    def handle_library_error(error):
        return jsonify({"error": error.message}), error.status_code

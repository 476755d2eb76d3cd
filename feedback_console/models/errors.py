"""
Error taxonomy for the console.

Every failure the gateway or the form layer can produce is one of these;
the web layer maps them to HTTP status codes.
"""


class ConsoleError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(ConsoleError):
    """Local input errors, raised before any network call."""
    status_code = 400

    def __init__(self, messages):
        self.messages = dict(messages)
        super().__init__(next(iter(self.messages.values()), 'Invalid input'))


class DuplicateIdentityError(ConsoleError):
    status_code = 409

    def __init__(self, title):
        super().__init__(f'Configuration with title "{title}" already exists')
        self.title = title


class AuthenticationError(ConsoleError):
    status_code = 401


class NotFoundError(ConsoleError):
    status_code = 404


class SubmissionInProgressError(ConsoleError):
    status_code = 409

    def __init__(self, message='A submission is already in progress'):
        super().__init__(message)


class ServerError(ConsoleError):
    """Non-2xx response without a usable payload, or an error payload."""
    status_code = 502

    def __init__(self, message, http_status=None):
        super().__init__(message)
        self.http_status = http_status


class TransportError(ServerError):
    """The request never produced a response."""

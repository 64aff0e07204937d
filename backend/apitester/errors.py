class ApiTesterError(Exception):
    """Base class for errors raised by the request/checkpoint core."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ApiTesterError):
    status_code = 404


class InconsistentStateError(ApiTesterError):
    """A checkpoint points at a request that no longer exists."""

    status_code = 500


class SendError(ApiTesterError):
    """Transport-level failure while proxying (DNS, connect, timeout)."""

    status_code = 502

"""Error taxonomy shared by the monitors and the HTTP layer."""


class BridgeError(Exception):
    """Base error carrying the HTTP status the API should answer with."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidQueryError(BridgeError):
    """Malformed client input such as an unparsable ``since`` value."""

    status_code = 400


class ContainerNotFoundError(BridgeError):
    status_code = 404

    def __init__(self, container_id: str) -> None:
        super().__init__(f"Container '{container_id}' not found")
        self.container_id = container_id


class SourceUnreachableError(BridgeError):
    """A live source timed out or dropped the connection."""

    status_code = 503


class RateLimitedError(BridgeError):
    """The client address used up its request budget for the current window."""

    status_code = 429

    def __init__(self) -> None:
        super().__init__("Too many requests from this IP, please try again later.")

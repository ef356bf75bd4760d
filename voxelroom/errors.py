"""Error taxonomy for model calls, output parsing and recommendation context."""


class VoxelRoomError(RuntimeError):
    pass


class UpstreamError(VoxelRoomError):
    """A single failed call against one candidate model."""

    def __init__(self, message: str, model: str = "", status_code: int | None = None):
        super().__init__(message)
        self.model = model
        self.status_code = status_code


class TransientUpstreamError(UpstreamError):
    """HTTP >= 500, connection failure or a response with no message content."""


class RateLimitedError(UpstreamError):
    """HTTP 429. The model is abandoned without further attempts."""


class NonRetryableRequestError(UpstreamError):
    """Any other non-success status. Terminal for the current model only."""


class ExhaustedCandidatesError(VoxelRoomError):
    def __init__(self, message: str, last_error: Exception | None = None, attempts: int = 0):
        super().__init__(message)
        self.last_error = last_error
        self.attempts = attempts


class MalformedOutputError(VoxelRoomError):
    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text[:500]


class NoRoomContextError(VoxelRoomError):
    pass

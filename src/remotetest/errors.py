"""Domain errors for remotetest."""


class RunnerError(RuntimeError):
    """Raised when a remote step cannot be dispatched."""

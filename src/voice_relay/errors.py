"""Exception types shared by the relay adapters and the orchestrator."""


class RelayError(Exception):
    """Base class for relay pipeline errors."""

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason or message


class CompletionError(RelayError):
    """Raised by the completion client when the chat API call fails."""


class SynthesisError(RelayError):
    """Raised when speech synthesis produces no audio."""

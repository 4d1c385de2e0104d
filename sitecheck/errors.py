from __future__ import annotations


class CheckError(RuntimeError):
    kind = "check_error"


class ConnectionFailure(CheckError):
    kind = "connection_error"


class CheckTimeout(CheckError):
    kind = "timeout"


class UnexpectedStatus(CheckError):
    kind = "unexpected_status"

    def __init__(self, expected: int, observed: int) -> None:
        super().__init__(f"Expected status {expected}, got {observed}")
        self.expected = expected
        self.observed = observed


class DecodeError(CheckError):
    kind = "decode_error"


class EnvironmentSetupError(RuntimeError):
    """Raised when the harness cannot be initialized; aborts the whole run."""

"""Exceptions raised by the completion layer."""

from typing import Optional


class CompletionError(RuntimeError):
    """Raised when the completion service call or its stream fails.

    Attributes:
        stage: Where the failure happened ("transport", "status",
            "decode" or "service").
        detail: Human-readable description of the failure.
    """

    def __init__(self, stage: str, detail: str, raw_line: Optional[str] = None) -> None:
        self.stage = stage
        self.detail = detail
        self.raw_line = raw_line
        super().__init__(f"Completion failed at stage '{stage}': {detail}")

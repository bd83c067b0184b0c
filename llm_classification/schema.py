"""Wire and result models for the completion layer."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class CompletionChunk(BaseModel):
    """One newline-delimited JSON fragment of a streamed completion.

    Unknown keys (timings, context vectors, model name) are ignored.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    response: str = ""
    done: bool = False
    error: Optional[str] = None


class ClassificationOutcome(BaseModel):
    """Tagged result of classifying one domain."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    status: Literal["label", "non_answer"]
    label: str = ""
    raw_response: str = ""
    reason: Optional[str] = None
    attempts: int = Field(default=1, ge=1)

    @property
    def is_label(self) -> bool:
        return self.status == "label"

"""Validation layer for raw completion answers.

Separates usable single-keyword labels from conversational non-answers
(refusals, apologies, explanations) so the latter never reach the
success log.
"""

import re
from typing import Iterable, Optional

from llm_classification.schema import ClassificationOutcome

DEFAULT_REFUSAL_MARKERS = (
    "sorry",
    "apologize",
    "apologies",
    "i cannot",
    "i can't",
    "i can not",
    "i'm unable",
    "i am unable",
    "unable to",
    "as an ai",
    "i'm not able",
    "i am not able",
    "not enough information",
    "cannot determine",
    "can't determine",
    "insufficient information",
)

_WRAPPING_CHARS = "\"'`*_ \t"


def clean_label(raw_response: str) -> str:
    """Strip whitespace, wrapping quotes/markdown and a trailing period."""
    cleaned = raw_response.strip().strip(_WRAPPING_CHARS)
    cleaned = cleaned.rstrip(".").strip(_WRAPPING_CHARS)
    return re.sub(r"[ \t]+", " ", cleaned)


class LabelValidator:
    """Classifies a raw answer as a label or a suspected non-answer.

    A non-answer is an empty answer, one spanning several lines or
    comma-separated parts, one containing a refusal marker, or one with
    more than ``max_words`` whitespace-separated tokens.
    """

    def __init__(
        self,
        max_words: int = 3,
        refusal_markers: Optional[Iterable[str]] = None,
    ) -> None:
        self._max_words = max(1, max_words)
        markers = DEFAULT_REFUSAL_MARKERS if refusal_markers is None else refusal_markers
        self._refusal_markers = tuple(marker.lower() for marker in markers)

    def evaluate(self, raw_response: str) -> ClassificationOutcome:
        """Validate one raw answer.

        Args:
            raw_response: Concatenated completion text.

        Returns:
            A ``ClassificationOutcome`` tagged ``label`` or ``non_answer``.
        """
        label = clean_label(raw_response)
        reason = self._rejection_reason(label)
        if reason is not None:
            return ClassificationOutcome(
                status="non_answer",
                label=label,
                raw_response=raw_response,
                reason=reason,
            )
        return ClassificationOutcome(status="label", label=label, raw_response=raw_response)

    def _rejection_reason(self, label: str) -> Optional[str]:
        if not label:
            return "empty"
        if "\n" in label or "\r" in label or "," in label:
            return "multi_part"
        lowered = label.lower()
        if any(marker in lowered for marker in self._refusal_markers):
            return "refusal"
        if len(label.split()) > self._max_words:
            return "too_wordy"
        return None

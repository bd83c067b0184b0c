"""Domain classifier: prompt, complete, validate.

Re-asks the completion service only when the answer looks like a
non-answer. Transport and stream errors are not retried here; they
propagate as ``CompletionError`` to the worker boundary.
"""

import logging
from typing import Optional

from categorizer.config import CompletionSettings
from llm_classification.adapter import BaseCompletionAdapter, build_completion_adapter
from llm_classification.prompt_builder import CategoryPromptBuilder
from llm_classification.schema import ClassificationOutcome
from llm_classification.validator import LabelValidator

logger = logging.getLogger(__name__)


class DomainClassifier:
    """Turns a domain and its keyword context into a tagged category outcome."""

    def __init__(
        self,
        adapter: BaseCompletionAdapter,
        prompt_builder: Optional[CategoryPromptBuilder] = None,
        validator: Optional[LabelValidator] = None,
        non_answer_retries: int = 0,
    ) -> None:
        self._adapter = adapter
        self._prompt_builder = prompt_builder or CategoryPromptBuilder()
        self._validator = validator or LabelValidator()
        self._non_answer_retries = max(0, non_answer_retries)

    @classmethod
    def from_settings(
        cls,
        settings: CompletionSettings,
        adapter: Optional[BaseCompletionAdapter] = None,
    ) -> "DomainClassifier":
        return cls(
            adapter=adapter or build_completion_adapter(settings),
            prompt_builder=CategoryPromptBuilder(
                max_context_chars=settings.max_context_chars,
                suggest_categories=settings.suggest_categories,
            ),
            validator=LabelValidator(max_words=settings.max_label_words),
            non_answer_retries=settings.non_answer_retries,
        )

    def classify(self, domain: str, context: str) -> ClassificationOutcome:
        """Classify one domain.

        Args:
            domain: Normalized domain name.
            context: Ranked keyword string extracted from the website.

        Returns:
            The validated outcome of the last attempt.

        Raises:
            CompletionError: If the completion call or its stream fails.
        """
        prompt = self._prompt_builder.build_prompt(domain, context)
        total_attempts = 1 + self._non_answer_retries

        attempt = 1
        while True:
            raw = self._adapter.complete(prompt)
            outcome = self._validator.evaluate(raw).model_copy(update={"attempts": attempt})
            if outcome.is_label:
                return outcome
            logger.warning(
                "Attempt %d/%d for %s returned a non-answer (%s)",
                attempt,
                total_attempts,
                domain,
                outcome.reason,
            )
            if attempt >= total_attempts:
                return outcome
            attempt += 1

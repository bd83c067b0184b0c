"""Prompt builder for single-keyword domain categorization."""

from typing import Optional

from llm_classification.categories import category_hint

_INSTRUCTIONS = (
    "Please categorize this domain with a single keyword in English. "
    "Do not elaborate, do not explain or otherwise enhance the answer."
)

_TEMPLATE = (
    "{instructions}{hint} The domain is: {domain}. "
    "Here are some items from the website: {context}"
)


class CategoryPromptBuilder:
    """Builds a bounded natural-language categorization prompt.

    The keyword context is truncated on a word boundary so the prompt
    stays within ``max_context_chars`` of website text.
    """

    def __init__(self, max_context_chars: int = 2000, suggest_categories: bool = False) -> None:
        self._max_context_chars = max_context_chars
        self._suggest_categories = suggest_categories

    def build_prompt(self, domain: str, context: str) -> str:
        """Build the prompt for one domain.

        Args:
            domain: Normalized domain name.
            context: Space-separated ranked keywords from the website.

        Returns:
            The fully formatted prompt string.
        """
        hint: Optional[str] = None
        if self._suggest_categories:
            hint = category_hint()
        return _TEMPLATE.format(
            instructions=_INSTRUCTIONS,
            hint=f"\n\n{hint}\n\n" if hint else "",
            domain=domain,
            context=self._bounded(context),
        )

    def _bounded(self, context: str) -> str:
        if len(context) <= self._max_context_chars:
            return context
        cut = context[: self._max_context_chars]
        if " " in cut:
            cut = cut.rsplit(" ", 1)[0]
        return cut

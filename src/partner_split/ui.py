"""Interactive prompts for recording expenses."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .models import PartnerPair

logger = logging.getLogger(__name__)


def fuzzy_match(query: str, text: str) -> bool:
    """
    Fuzzy match: all characters in query must appear in order in text.

    Example:
        query="gro" matches "groceries"
        query="trp" matches "transportation"
    """
    query_idx = 0
    for char in text:
        if query_idx < len(query) and char == query[query_idx]:
            query_idx += 1
    return query_idx == len(query)


class CategoryCompleter(Completer):
    """Fuzzy search completer for expense categories."""

    def __init__(self, categories: list[str]):
        """Initialize the completer with available categories."""
        self.categories = categories

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for category in self.categories:
            if not query or fuzzy_match(query, category.lower()):
                yield Completion(
                    text=category,
                    start_position=-len(document.text),
                    display=category,
                )


def resolve_category(answer: str, categories: list[str]) -> str | None:
    """Map typed input onto a known category (case-insensitive), or None."""
    for category in categories:
        if category.lower() == answer.strip().lower():
            return category
    return None


def select_category_interactive(
    categories: list[str],
    expense_description: str,
    default: str | None = None,
) -> str | None:
    """
    Interactive category selection with fuzzy search.

    Args:
        categories: Known categories
        expense_description: Description of the expense being recorded
        default: Optional category to pre-fill

    Returns:
        Selected category, or None to skip
    """
    print(f"\n📝 Categorize: {expense_description}")
    print("   Type to search, press Enter to confirm, Ctrl+C to skip\n")

    completer = CategoryCompleter(categories)
    session: PromptSession[str] = PromptSession(completer=completer)
    default_text = default or ""

    try:
        while True:
            result = session.prompt(
                "Category: ",
                default=default_text,
                complete_while_typing=True,
            )

            if not result:
                return None

            category = resolve_category(result, categories)
            if category:
                logger.info(f"User selected category: {category}")
                return category

            print("❌ Unknown category. Pick one from the list or press Tab to complete.")
            default_text = ""

    except KeyboardInterrupt:
        print("\n⏭️  Skipped")
        return None
    except EOFError:
        return None


def select_partner_interactive(partners: PartnerPair, prompt: str) -> str | None:
    """
    Ask which partner a record belongs to.

    Returns:
        Selected partner id, or None to cancel
    """
    options = [partners.first, partners.second]
    print(f"\n{prompt}")
    for idx, partner in enumerate(options, start=1):
        print(f"  [{idx}] {partner.name} ({partner.id})")

    try:
        response = input("Select partner [1-2, or q to quit]: ").strip().lower()
        if response in ("q", "quit", ""):
            return None

        selection = int(response) - 1
        if 0 <= selection < len(options):
            return options[selection].id

        print("❌ Invalid selection")
        return None

    except (ValueError, KeyboardInterrupt, EOFError):
        print("\n⏭️  Cancelled")
        return None

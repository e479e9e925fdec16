"""Classification categories and the classification result type.

Category Taxonomy
=================

Every probed model ends in exactly one of eleven categories:

    | Category     | Usable | Meaning                                       |
    |--------------|--------|-----------------------------------------------|
    | FREE         | Yes    | Known free model (or -free suffix) answered   |
    | FREE_LIMITED | Yes    | Free-tier provider answered (limits apply)    |
    | PAID         | Yes    | Answered, billed usage                        |
    | AVAILABLE    | Yes    | Answered, no pricing knowledge                |
    | NOT_FOUND    | No     | Probe does not know the model                 |
    | TIMEOUT      | No     | No answer before the deadline                 |
    | AUTH_FAILED  | No     | Missing or invalid credentials                |
    | NO_QUOTA     | No     | Credits or quota exhausted                    |
    | RATE_LIMITED | No     | Throttled by the provider                     |
    | FREE_ERROR   | No     | Free model that failed the test               |
    | ERROR        | No     | Anything else                                 |

The icon table below is checked against the enum when this module is
imported, so adding a category without an icon fails immediately.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum


class Category(str, Enum):
    """Outcome of probing one model."""

    FREE = "FREE"
    FREE_LIMITED = "FREE_LIMITED"
    PAID = "PAID"
    AVAILABLE = "AVAILABLE"
    NOT_FOUND = "NOT_FOUND"
    TIMEOUT = "TIMEOUT"
    AUTH_FAILED = "AUTH_FAILED"
    NO_QUOTA = "NO_QUOTA"
    RATE_LIMITED = "RATE_LIMITED"
    FREE_ERROR = "FREE_ERROR"
    ERROR = "ERROR"

    @property
    def icon(self) -> str:
        """Display icon for this category."""
        return CATEGORY_ICONS[self]

    @property
    def usable(self) -> bool:
        """Whether a model in this category answered the probe."""
        return self in USABLE_CATEGORIES


CATEGORY_ICONS: Mapping[Category, str] = {
    Category.FREE: "🆓",
    Category.FREE_LIMITED: "📊",
    Category.PAID: "💰",
    Category.AVAILABLE: "✅",
    Category.NOT_FOUND: "❓",
    Category.TIMEOUT: "⏰",
    Category.AUTH_FAILED: "🔒",
    Category.NO_QUOTA: "❌",
    Category.RATE_LIMITED: "⏱️",
    Category.FREE_ERROR: "⚠️",
    Category.ERROR: "⚠️",
}

USABLE_CATEGORIES: frozenset[Category] = frozenset({
    Category.FREE,
    Category.FREE_LIMITED,
    Category.PAID,
    Category.AVAILABLE,
})


def require_total(table: Mapping[Category, object], name: str) -> None:
    """Raise if ``table`` lacks an entry (or has an empty one) for any category.

    Args:
        table: Category-keyed lookup table.
        name: Table name used in the error message.

    Raises:
        RuntimeError: If a category is missing or maps to an empty value.
    """
    missing = [c.value for c in Category if not table.get(c)]
    if missing:
        raise RuntimeError(f"{name} has no entry for: {', '.join(missing)}")


require_total(CATEGORY_ICONS, "CATEGORY_ICONS")


@dataclass(frozen=True)
class ClassificationResult:
    """Category, reason and icon assigned to one probe outcome.

    Construction rejects an empty reason or icon, so an instance is always
    complete.
    """

    category: Category
    reason: str
    icon: str

    def __post_init__(self) -> None:
        if not self.reason:
            raise ValueError(f"{self.category.value} result needs a reason")
        if not self.icon:
            raise ValueError(f"{self.category.value} result needs an icon")

    @classmethod
    def of(cls, category: Category, reason: str) -> ClassificationResult:
        """Build a result whose icon is the category's own icon."""
        return cls(category=category, reason=reason, icon=category.icon)

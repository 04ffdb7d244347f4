"""Stock policy: which categories block an order when they run out.

A school kit is sold as a set of bundles. Textbooks and mandatory notebooks
are required: if any of them cannot be fulfilled the whole grade cannot be
ordered. Everything else (optional bundles, uniforms, stationery) can be
unchecked by the customer, so a shortage there only excludes that bundle.
"""

from enum import Enum


class StockPolicy(Enum):
    MANDATORY = "Mandatory"
    OPTIONAL = "Optional"


class BookCategory(Enum):
    TEXTBOOK = "TEXTBOOK"
    MANDATORY_NOTEBOOK = "MANDATORY_NOTEBOOK"
    NOTEBOOK = "NOTEBOOK"
    STATIONARY = "STATIONARY"
    STATIONERY = "STATIONERY"
    UNIFORM = "UNIFORM"
    OPTIONAL_1 = "OPTIONAL_1"
    OPTIONAL_2 = "OPTIONAL_2"
    OPTIONAL_3 = "OPTIONAL_3"
    OPTIONAL_4 = "OPTIONAL_4"
    OTHER = "OTHER"


MANDATORY_CATEGORIES = frozenset({BookCategory.TEXTBOOK, BookCategory.MANDATORY_NOTEBOOK})

_LABELS = {
    BookCategory.TEXTBOOK: "Mandatory Textbook",
    BookCategory.MANDATORY_NOTEBOOK: "Mandatory Notebook",
    BookCategory.NOTEBOOK: "Notebook",
    BookCategory.STATIONARY: "Stationary",
    BookCategory.STATIONERY: "Stationery",
    BookCategory.UNIFORM: "Uniform",
    BookCategory.OPTIONAL_1: "Optional 1",
    BookCategory.OPTIONAL_2: "Optional 2",
    BookCategory.OPTIONAL_3: "Optional 3",
    BookCategory.OPTIONAL_4: "Optional 4",
    BookCategory.OTHER: "Other",
}


def normalize_category(category) -> str:
    """Upper-case a raw category tag; blank tags become ``OTHER``."""
    if isinstance(category, BookCategory):
        return category.value
    tag = str(category or "").strip().upper()
    return tag or BookCategory.OTHER.value


def to_book_category(category) -> BookCategory | None:
    """Map a raw tag onto a known category, or ``None`` for tags we do not know."""
    try:
        return BookCategory(normalize_category(category))
    except ValueError:
        return None


def classify(category) -> StockPolicy:
    """Classify a category tag. Unknown and blank tags are optional."""
    if to_book_category(category) in MANDATORY_CATEGORIES:
        return StockPolicy.MANDATORY
    return StockPolicy.OPTIONAL


def category_label(category) -> str:
    """Human-readable bundle name for a category tag."""
    known = to_book_category(category)
    if known is not None:
        return _LABELS[known]

    tag = normalize_category(category)
    return tag[0] + tag[1:].lower().replace("_", " ")

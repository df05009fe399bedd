"""Fixed category list for link resources.

The list mixes the legacy dotted labels ("Tech.Mobile") with the newer
space/ampersand labels ("Computer & IT").  Both generations are still present
in stored data, so both must validate.  "Real Estate" and "General" appear
twice for the same reason; the order is kept as the admin front-end shows it.
"""

from typing import Any

CATEGORIES: tuple[str, ...] = (
    "Art.Entertainment.Music.Movies",
    "Auto",
    "Business",
    "Crypto.BTC",
    "Dating",
    "Adult",
    "Edu",
    "Family.Personal",
    "Finance",
    "Food",
    "Gambling",
    "Games",
    "General",
    "Green.Eco",
    "Health.Beauty.Fitness",
    "Home Improvements",
    "Law",
    "Lifestyle",
    "News",
    "Pets",
    "Real Estate",
    "Seo. Web Design",
    "Shopping.Fashion",
    "Sport",
    "Tech.Mobile",
    "Travel",
    "Automotive",
    "Construction",
    "Entertainment",
    "Food & Beverages",
    "Gambling & Casinos",
    "Hospitality",
    "Health & Beauty",
    "Marketing",
    "Real Estate",
    "Retail",
    "Sports",
    "Fashion",
    "Technology",
    "Computer & IT",
    "General",
    "Language",
)

_CATEGORY_SET = frozenset(CATEGORIES)


def is_valid_category(name: Any) -> bool:
    """Return True if name is exactly one of CATEGORIES (case-sensitive)."""
    if not isinstance(name, str):
        return False
    return name in _CATEGORY_SET


def split_categories(value: Any) -> list[str]:
    """Split a comma-separated category list into its members.

    An empty or blank value means "no categories supplied" and yields [].
    Members are not trimmed, so a stray space after a comma produces a
    member that fails validation, as does an empty member between commas.

    Example:
        "Auto,Business" -> ["Auto", "Business"]
        "Auto, Business" -> ["Auto", " Business"]
    """
    if value is None:
        return []
    text = str(value)
    if not text.strip():
        return []
    return text.split(",")

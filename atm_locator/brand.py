"""Brand and category matching over free-text listing fields."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Tuple

from . import config

LISTING_FIELDS = ("title", "name", "description", "type", "categories", "address")
TAG_FIELDS = ("name", "brand", "operator", "amenity", "description")
SEPARATOR = " | "


@dataclass(frozen=True)
class BrandProfile:
    brand: str
    category: str
    aliases: Tuple[str, ...]
    category_keywords: Tuple[str, ...]
    context_keywords: Tuple[str, ...] = ()
    allow_context_keywords: bool = False
    category_tag: Tuple[str, str] = ("amenity", "atm")

    def rewrite_query(self, user_text: str) -> str:
        return f"{self.brand} {self.category} near {user_text.strip()}"


def default_profile() -> BrandProfile:
    """Profile built from the current values in the config module."""
    return BrandProfile(
        brand=config.BRAND_NAME,
        category=config.CATEGORY_NAME,
        aliases=tuple(a.lower() for a in config.BRAND_ALIASES),
        category_keywords=tuple(k.lower() for k in config.CATEGORY_KEYWORDS),
        context_keywords=tuple(k.lower() for k in config.CONTEXT_KEYWORDS),
        allow_context_keywords=bool(config.ALLOW_CONTEXT_KEYWORDS),
        category_tag=tuple(config.CATEGORY_TAG),  # type: ignore[arg-type]
    )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(_as_text(v) for v in value)
    if isinstance(value, Mapping):
        return " ".join(_as_text(v) for v in value.values())
    return str(value)


def text_fields(record: Mapping[str, Any]) -> List[str]:
    fields = [_as_text(record.get(name)) for name in LISTING_FIELDS]
    tags = record.get("tags")
    if isinstance(tags, Mapping):
        fields.extend(_as_text(tags.get(name)) for name in TAG_FIELDS)
    return [f for f in fields if f]


def _contains_any(text: str, needles: Iterable[str]) -> bool:
    return any(needle and needle in text for needle in needles)


class BrandMatcher:
    def __init__(self, profile: BrandProfile) -> None:
        self.profile = profile

    def matches_text(self, fields: Iterable[str]) -> bool:
        hay = SEPARATOR.join(f for f in fields if f).lower()
        if not _contains_any(hay, self.profile.aliases):
            return False
        if _contains_any(hay, self.profile.category_keywords):
            return True
        if self.profile.allow_context_keywords:
            return _contains_any(hay, self.profile.context_keywords)
        return False

    def matches(self, record: Mapping[str, Any]) -> bool:
        return self.matches_text(text_fields(record))

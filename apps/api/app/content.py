from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass


logger = logging.getLogger("tonight.content")


class ContentLevel(str, enum.Enum):
    NONE = "None"
    MILD = "Mild"
    MODERATE = "Moderate"
    SEVERE = "Severe"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]

    def exceeds(self, ceiling: "ContentLevel") -> bool:
        return self.rank > ceiling.rank

    @classmethod
    def parse(cls, value: str | None) -> "ContentLevel | None":
        """Strict parse for caller-supplied ceilings. Unknown text raises ValueError."""
        if value is None:
            return None
        key = str(value).strip().lower()
        if key == "":
            return None
        if key not in _LEVEL_ALIASES:
            raise ValueError(f"unknown content level: {value!r}")
        return _LEVEL_ALIASES[key]

    @classmethod
    def coerce(cls, value: str | None) -> "ContentLevel | None":
        """Lenient parse for catalog data; unknown values become 'unknown' (None)."""
        if isinstance(value, ContentLevel):
            return value
        try:
            return cls.parse(value)
        except ValueError:
            logger.warning("unknown_content_level", extra={"value": value})
            return None


_LEVEL_RANK = {
    ContentLevel.NONE: 0,
    ContentLevel.MILD: 1,
    ContentLevel.MODERATE: 2,
    ContentLevel.SEVERE: 3,
}

_LEVEL_ALIASES = {
    "none": ContentLevel.NONE,
    "n/a": ContentLevel.NONE,
    "na": ContentLevel.NONE,
    "mild": ContentLevel.MILD,
    "1": ContentLevel.MILD,
    "moderate": ContentLevel.MODERATE,
    "2": ContentLevel.MODERATE,
    "severe": ContentLevel.SEVERE,
    "3": ContentLevel.SEVERE,
}


PARENTAL_CATEGORIES = ("violence", "sex_nudity", "profanity", "substances", "frightening")


@dataclass(frozen=True)
class ParentalGuideInfo:
    violence: ContentLevel | None = None
    sex_nudity: ContentLevel | None = None
    profanity: ContentLevel | None = None
    substances: ContentLevel | None = None
    frightening: ContentLevel | None = None

    @classmethod
    def from_raw(cls, raw: dict | None) -> "ParentalGuideInfo | None":
        if raw is None:
            return None
        return cls(**{cat: ContentLevel.coerce(raw.get(cat)) for cat in PARENTAL_CATEGORIES})

    def level(self, category: str) -> ContentLevel | None:
        return getattr(self, category)


@dataclass(frozen=True)
class ParentalCeilings:
    violence: ContentLevel | None = None
    sex_nudity: ContentLevel | None = None
    profanity: ContentLevel | None = None
    substances: ContentLevel | None = None
    frightening: ContentLevel | None = None

    def active(self) -> dict[str, ContentLevel]:
        return {cat: getattr(self, cat) for cat in PARENTAL_CATEGORIES if getattr(self, cat) is not None}


# US certification ladder; a ceiling includes itself and everything below it
CERTIFICATION_ORDER = {
    "G": 0,
    "PG": 1,
    "PG-13": 2,
    "R": 3,
    "NC-17": 4,
}


def normalize_certification(value: str | None) -> str | None:
    """Map free-form certification text onto the ladder; None when unrecognised (NR, Unrated, blank)."""
    if not value:
        return None
    key = re.sub(r"\s+", "", str(value).upper())
    if key in ("PG13",):
        key = "PG-13"
    elif key in ("NC17",):
        key = "NC-17"
    return key if key in CERTIFICATION_ORDER else None


def certification_rank(value: str | None) -> int | None:
    key = normalize_certification(value)
    if key is None:
        return None
    return CERTIFICATION_ORDER[key]

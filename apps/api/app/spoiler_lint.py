import logging
import re
from typing import Iterable, List

from .settings import settings


logger = logging.getLogger("tonight.spoilers")

_patterns = [re.compile(p, re.IGNORECASE) for p in settings.spoiler_denylist]


class SpoilerError(ValueError):
    pass


def assert_no_spoilers(text: str) -> None:
    if not text:
        return
    for pat in _patterns:
        if pat.search(text):
            raise SpoilerError(f"Spoiler pattern matched: {pat.pattern}")


def scrub_reasoning(lines: Iterable[str], movie_id: int | None = None) -> List[str]:
    """Drop reasoning lines that trip the denylist; trim the rest to the display limit."""
    out: List[str] = []
    for line in lines:
        text = (line or "").strip()
        if not text:
            continue
        try:
            assert_no_spoilers(text)
        except SpoilerError as e:
            logger.warning("reasoning_spoiler_dropped", extra={"movie_id": movie_id, "pattern": str(e)})
            continue
        out.append(text[: settings.reasoning_max_chars].rstrip())
    return out

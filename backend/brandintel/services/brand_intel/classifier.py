"""URL classification against the ordered page pattern table."""

from typing import Iterable, Optional, Pattern, Sequence, Tuple
from urllib.parse import urlparse

from .constants import COMPILED_PAGE_PATTERNS, LOWEST_PRIORITY


class UrlClassifier:
    """Maps a URL to ``(page_type, priority)``; first matching pattern wins."""

    def __init__(self, patterns: Optional[Iterable[Tuple[Pattern, str, int]]] = None):
        self.patterns: Sequence[Tuple[Pattern, str, int]] = tuple(patterns or COMPILED_PAGE_PATTERNS)

    @staticmethod
    def _path(url: str) -> str:
        try:
            return urlparse(url).path or ""
        except ValueError:
            return ""

    def classify(self, url: str) -> Tuple[str, int]:
        path = self._path(url)
        for pattern, page_type, priority in self.patterns:
            if pattern.search(path):
                return page_type, priority
        if path in ("", "/"):
            return "homepage", LOWEST_PRIORITY
        return "other", LOWEST_PRIORITY

    def page_type(self, url: str) -> str:
        return self.classify(url)[0]


_default_classifier = UrlClassifier()


def classify_url(url: str) -> Tuple[str, int]:
    return _default_classifier.classify(url)

"""Keyword tables for temporal phrase detection.

The vocabulary is Turkish and matched by plain substring containment against
lower-cased task text, so ``"yarın"`` also fires inside ``"yarına"``. Phrase
families are keyed by tag; a YAML file can override individual families
without touching the rest of the table.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

logger = logging.getLogger(__name__)


WEEK_OFFSET = "week_offset"
WEEKEND = "weekend"
DAY_AFTER_TOMORROW = "day_after_tomorrow"
TOMORROW = "tomorrow"
NEXT_MONTH = "next_month"
NEXT_YEAR = "next_year"
EVENING = "evening"
MORNING = "morning"
NOON = "noon"
AFTERNOON = "afternoon"

DEFAULT_PHRASES: Dict[str, Tuple[str, ...]] = {
    WEEK_OFFSET: ("haftaya", "gelecek hafta"),
    WEEKEND: ("hafta sonu", "haftasonu"),
    # Checked before TOMORROW: "yarından sonra" contains "yarın".
    DAY_AFTER_TOMORROW: ("yarından sonra", "öbür gün"),
    TOMORROW: ("yarın", "ertesi gün"),
    NEXT_MONTH: ("gelecek ay", "öbür ay"),
    NEXT_YEAR: ("seneye", "gelecek yıl", "gelecek sene"),
    EVENING: ("akşam",),
    MORNING: ("sabah",),
    NOON: ("öğle",),
    AFTERNOON: ("öğleden sonra", "öğlen"),
}

# Sunday = 0. Names containing a shorter name come first ("cumartesi" before
# "cuma", "pazartesi" before "pazar").
DEFAULT_WEEKDAYS: Tuple[Tuple[str, int], ...] = (
    ("pazartesi", 1),
    ("salı", 2),
    ("çarşamba", 3),
    ("perşembe", 4),
    ("cumartesi", 6),
    ("cuma", 5),
    ("pazar", 0),
)

DEFAULT_GUARD_WORD = "için"

MONTH_NAMES = (
    "Ocak", "Şubat", "Mart", "Nisan", "Mayıs", "Haziran",
    "Temmuz", "Ağustos", "Eylül", "Ekim", "Kasım", "Aralık",
)

# Indexed by date.weekday() (Monday = 0).
DAY_NAMES = (
    "Pazartesi", "Salı", "Çarşamba", "Perşembe", "Cuma", "Cumartesi", "Pazar",
)


def turkish_lower(text: str) -> str:
    """Lower-case text using Turkish dotted/dotless i rules."""
    return text.replace("İ", "i").replace("I", "ı").lower()


def format_long_date(day: date) -> str:
    """Format a date the way confirmations show it, e.g. ``2 Mayıs Perşembe``."""
    return f"{day.day} {MONTH_NAMES[day.month - 1]} {DAY_NAMES[day.weekday()]}"


@dataclass(frozen=True)
class KeywordTable:
    """Static phrase families plus the weekday map and the context-guard word."""

    phrases: Dict[str, Tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_PHRASES))
    weekdays: Tuple[Tuple[str, int], ...] = DEFAULT_WEEKDAYS
    guard_word: str = DEFAULT_GUARD_WORD

    def is_guarded(self, text: str, keyword: str) -> bool:
        """True when ``keyword`` is used as subject matter ("yarın için")."""
        return (
            f"{keyword} {self.guard_word}" in text
            or f"{self.guard_word} {keyword}" in text
        )

    def keywords(self) -> List[str]:
        """Every phrase and weekday name, longest first."""
        words = {name for name, _ in self.weekdays}
        for phrases in self.phrases.values():
            words.update(phrases)
        return sorted(words, key=lambda word: (-len(word), word))

    def strip_guarded(self, text: str) -> str:
        """Blank out guarded keywords so nothing inside them can match.

        Longer keywords go first, so "pazartesi için" also hides "pazar" and
        "yarından sonra için" also hides "yarın". The guard word itself stays
        in place and still guards a keyword on its other side.
        """
        guard = self.guard_word
        for keyword in self.keywords():
            blank = " " * len(keyword)
            text = text.replace(f"{keyword} {guard}", f"{blank} {guard}")
            text = text.replace(f"{guard} {keyword}", f"{guard} {blank}")
        return text

    def contains(self, text: str, tag: str) -> bool:
        """Plain containment check for a phrase family, without the guard."""
        return any(phrase in text for phrase in self.phrases.get(tag, ()))

    def matches(self, text: str, tag: str) -> bool:
        """True when any phrase of the family appears and is not guarded."""
        text = self.strip_guarded(text)
        return any(
            phrase in text and not self.is_guarded(text, phrase)
            for phrase in self.phrases.get(tag, ())
        )

    def find_weekday(self, text: str) -> Optional[Tuple[str, int]]:
        """First unguarded weekday name in table order, not text order."""
        text = self.strip_guarded(text)
        for name, index in self.weekdays:
            if name in text and not self.is_guarded(text, name):
                return name, index
        return None

    def vocabulary(self) -> List[str]:
        """Every single-word keyword known to the table."""
        words = {name for name, _ in self.weekdays}
        for phrases in self.phrases.values():
            for phrase in phrases:
                words.update(phrase.split())
        return sorted(words)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phrases": {tag: list(phrases) for tag, phrases in self.phrases.items()},
            "weekdays": {name: index for name, index in self.weekdays},
            "guard_word": self.guard_word,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeywordTable":
        """Build a table from override data merged over the defaults.

        Raises:
            ValueError: on unknown phrase tags or out-of-range weekday indices
        """
        data = data or {}
        phrases = dict(DEFAULT_PHRASES)
        for tag, values in (data.get("phrases") or {}).items():
            if tag not in DEFAULT_PHRASES:
                raise ValueError(f"Unknown keyword family: {tag}")
            if isinstance(values, str):
                values = [values]
            phrases[tag] = tuple(turkish_lower(str(v)) for v in values)

        weekdays = DEFAULT_WEEKDAYS
        if data.get("weekdays"):
            entries = []
            for name, index in data["weekdays"].items():
                index = int(index)
                if not 0 <= index <= 6:
                    raise ValueError(f"Weekday index out of range for '{name}': {index}")
                entries.append((turkish_lower(str(name)), index))
            weekdays = tuple(entries)

        guard_word = turkish_lower(str(data.get("guard_word") or DEFAULT_GUARD_WORD))
        return cls(phrases=phrases, weekdays=weekdays, guard_word=guard_word)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "KeywordTable":
        """Load a keyword override file written in YAML."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        logger.debug(f"Loaded keyword overrides from {path}")
        return cls.from_dict(data)


DEFAULT_KEYWORDS = KeywordTable()

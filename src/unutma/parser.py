"""Temporal phrase parser for task capture.

Infers the day a task belongs to and an optional reminder instant from the
free text typed into the task input, e.g. ``"toplantı yarın akşam"`` files the
task under tomorrow with a 21:00 reminder.

The inference is a fixed pipeline of pure passes. Each pass receives the
current :class:`Inference` and returns a new one; later passes are more
specific and may override earlier decisions.
"""

import logging
import re
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Tuple

from fuzzywuzzy import fuzz, process

from .config import ConfigModel
from .keywords import (
    AFTERNOON,
    DAY_AFTER_TOMORROW,
    DEFAULT_KEYWORDS,
    EVENING,
    MORNING,
    NEXT_MONTH,
    NEXT_YEAR,
    NOON,
    TOMORROW,
    WEEK_OFFSET,
    WEEKEND,
    KeywordTable,
    turkish_lower,
)
from .utils.datetime import (
    add_days,
    add_months,
    add_years,
    at_time,
    now_local,
    sunday_based_weekday,
    to_date_key,
)

logger = logging.getLogger(__name__)


# 14:30, 9.05
CLOCK_TIME_RE = re.compile(r"\b(\d{1,2})[:.](\d{2})\b")
# 8de, 9'da, 10ta, 7:00
SUFFIX_TIME_RE = re.compile(r"\b(\d{1,2})['’]?(da|de|te|ta|:00)\b")

SATURDAY = 6

ASCII_FOLD = str.maketrans("ıışğçöü", "iisgcou")


@dataclass(frozen=True)
class ParseContext:
    """Input of a single parse: raw text, the day on screen and the wall clock."""
    raw_text: str
    reference_date: date
    now: datetime


@dataclass(frozen=True)
class ParseResult:
    """Cleaned task text, the day to file it under and an optional reminder."""
    task_text: str
    target_date: date
    reminder_instant: Optional[datetime] = None

    @property
    def date_key(self) -> str:
        return to_date_key(self.target_date)


@dataclass(frozen=True)
class ReminderHours:
    """Hours used for date-only phrases and the time-of-day keywords."""
    default: int = 9
    evening: int = 21
    morning: int = 9
    noon: int = 12


@dataclass(frozen=True)
class ParseRules:
    keywords: KeywordTable = DEFAULT_KEYWORDS
    hours: ReminderHours = ReminderHours()


@dataclass(frozen=True)
class Inference:
    """Partial result threaded through the parsing passes."""
    text: str
    context: ParseContext
    target_date: date
    week_offset: int = 0
    date_found: bool = False
    reminder: Optional[datetime] = None

    @property
    def today(self) -> date:
        return self.context.now.date()

    @property
    def date_moved(self) -> bool:
        return self.target_date != self.context.reference_date

    def matches(self, rules: ParseRules, tag: str) -> bool:
        return rules.keywords.matches(self.text, tag)

    def mentions(self, rules: ParseRules, tag: str) -> bool:
        return rules.keywords.contains(self.text, tag)


Pass = Callable[[Inference, ParseRules], Inference]


def detect_week_offset(state: Inference, rules: ParseRules) -> Inference:
    """"haftaya" pushes weekday resolution one full week further."""
    if state.matches(rules, WEEK_OFFSET):
        return replace(state, week_offset=1)
    return state


def detect_weekend(state: Inference, rules: ParseRules) -> Inference:
    """Resolve "hafta sonu" to the next Saturday, never today."""
    if not state.matches(rules, WEEKEND):
        return state

    days = (SATURDAY - sunday_based_weekday(state.today)) % 7 or 7
    days += state.week_offset * 7
    logger.debug(f"Weekend phrase resolved to +{days} days")
    return replace(state, target_date=add_days(state.today, days), date_found=True)


def detect_weekday(state: Inference, rules: ParseRules) -> Inference:
    """Resolve the first weekday name in table order to its next occurrence."""
    if state.date_found:
        return state

    found = rules.keywords.find_weekday(state.text)
    if found is None:
        return state

    name, index = found
    days = (index - sunday_based_weekday(state.today) + 7) % 7
    if days == 0 and state.week_offset == 0:
        # Naming today means the same day next week
        days = 7
    days += state.week_offset * 7
    logger.debug(f"Weekday '{name}' resolved to +{days} days")
    return replace(state, target_date=add_days(state.today, days), date_found=True)


def resolve_relative_date(state: Inference, rules: ParseRules) -> Inference:
    """Fallback relative phrases when no day name matched; first match wins."""
    if state.date_found:
        return state

    today = state.today
    if state.week_offset > 0:
        target = add_days(today, 7 * state.week_offset)
    elif state.matches(rules, DAY_AFTER_TOMORROW):
        target = add_days(today, 2)
    elif state.matches(rules, TOMORROW):
        target = add_days(today, 1)
    elif state.matches(rules, NEXT_MONTH):
        target = add_months(today, 1)
    elif state.matches(rules, NEXT_YEAR):
        target = add_years(today, 1)
    else:
        return state

    logger.debug(f"Relative date phrase resolved to {target}")
    return replace(state, target_date=target, date_found=True)


def apply_default_reminder(state: Inference, rules: ParseRules) -> Inference:
    """A date-only phrase still gets a morning reminder."""
    if not state.date_moved:
        return state
    return replace(state, reminder=at_time(state.target_date, rules.hours.default))


def apply_time_of_day(state: Inference, rules: ParseRules) -> Inference:
    """Evening, then morning, then noon keywords set the reminder hour."""
    hours = rules.hours
    if state.mentions(rules, EVENING):
        hour = hours.evening
    elif state.mentions(rules, MORNING):
        hour = hours.morning
    elif state.mentions(rules, NOON):
        hour = hours.noon
    else:
        return state
    return replace(state, reminder=at_time(state.target_date, hour))


def apply_clock_time(state: Inference, rules: ParseRules) -> Inference:
    """Explicit clock times ("14:30", "8de") override any earlier reminder."""
    match = CLOCK_TIME_RE.search(state.text)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour < 24 and minute < 60:
            return replace(state, reminder=at_time(state.target_date, hour, minute))
        logger.debug(f"Ignoring out-of-range clock time {match.group(0)}")
        return state

    match = SUFFIX_TIME_RE.search(state.text)
    if not match:
        return state

    hour = int(match.group(1))
    # "akşam 9" means 21:00, "öğleden sonra 2" means 14:00
    if state.mentions(rules, EVENING) and hour < 12:
        hour += 12
    if state.mentions(rules, AFTERNOON) and hour < 12:
        hour += 12
    if hour >= 24:
        logger.debug(f"Ignoring out-of-range hour {match.group(0)}")
        return state
    return replace(state, reminder=at_time(state.target_date, hour))


def correct_past_reminder(state: Inference, rules: ParseRules) -> Inference:
    """Repair reminders at or before now.

    An ambiguous morning hour is first tried as its evening counterpart. When
    that is still not in the future and no date phrase moved the task, both
    the day and the reminder roll forward one day. A reminder on an explicitly
    chosen day is left untouched.
    """
    reminder = state.reminder
    now = state.context.now
    if reminder is None or reminder > now:
        return state

    evening_candidate = reminder + timedelta(hours=12)
    if reminder.hour < 12 and evening_candidate > now:
        logger.debug(f"Reminder {reminder} already passed, using {evening_candidate}")
        return replace(state, reminder=evening_candidate)

    if not state.date_moved:
        logger.debug(f"Reminder {reminder} already passed, rolling to the next day")
        return replace(
            state,
            target_date=add_days(state.target_date, 1),
            reminder=reminder + timedelta(days=1),
        )

    return state


PASSES: Tuple[Pass, ...] = (
    detect_week_offset,
    detect_weekend,
    detect_weekday,
    resolve_relative_date,
    apply_default_reminder,
    apply_time_of_day,
    apply_clock_time,
    correct_past_reminder,
)


class TemporalPhraseParser:
    """Infer target date and reminder instant from free-form task text."""

    def __init__(self, keywords: KeywordTable = DEFAULT_KEYWORDS,
                 hours: Optional[ReminderHours] = None):
        self.rules = ParseRules(keywords=keywords, hours=hours or ReminderHours())

    @classmethod
    def from_config(cls, config: ConfigModel) -> "TemporalPhraseParser":
        hours = ReminderHours(
            default=config.default_reminder_hour,
            evening=config.evening_hour,
            morning=config.morning_hour,
            noon=config.noon_hour,
        )
        return cls(keywords=config.load_keywords(), hours=hours)

    def parse(self, context: ParseContext) -> ParseResult:
        """Run every pass over the text; never raises on any input text."""
        raw_text = context.raw_text if isinstance(context.raw_text, str) else str(context.raw_text or "")
        try:
            state = Inference(
                text=turkish_lower(raw_text),
                context=context,
                target_date=context.reference_date,
            )
            for step in PASSES:
                state = step(state, self.rules)
        except Exception:
            logger.exception(f"Failed to infer a date from {raw_text!r}, keeping the reference date")
            return ParseResult(task_text=raw_text.strip(), target_date=context.reference_date)

        return ParseResult(
            task_text=raw_text.strip(),
            target_date=state.target_date,
            reminder_instant=state.reminder,
        )

    def suggest_corrections(self, raw_text: str) -> List[str]:
        """Suggest keywords for words that look like a misspelled keyword.

        Typing without Turkish characters ("yarin", "aksam") silently loses the
        date; these suggestions let the caller point that out.
        """
        vocabulary = self.rules.keywords.vocabulary()
        suggestions = []
        seen = set()
        for token in re.findall(r"\w+", turkish_lower(raw_text or "")):
            if len(token) < 4 or token.isdigit() or token in seen:
                continue
            seen.add(token)
            if any(len(word) >= 4 and word in token for word in vocabulary):
                continue
            best = process.extractBests(
                token,
                vocabulary,
                processor=lambda s: s.translate(ASCII_FOLD),
                scorer=fuzz.ratio,
                score_cutoff=90,
                limit=1,
            )
            if best:
                suggestions.append(f"Did you mean '{best[0][0]}' instead of '{token}'?")
        return suggestions


def parse_task_text(raw_text: str, reference_date: date, now: Optional[datetime] = None,
                    config: Optional[ConfigModel] = None) -> ParseResult:
    """Parse task text against the given day, using the wall clock by default."""
    parser = TemporalPhraseParser.from_config(config) if config else TemporalPhraseParser()
    context = ParseContext(raw_text=raw_text, reference_date=reference_date, now=now or now_local())
    return parser.parse(context)

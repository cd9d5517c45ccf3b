"""Concise labels for spoiler-log acquisition descriptions.

A detailed spoiler line reads like::

    Godrick's Great Rune in Liurnia: Dropped by Royal Knight Loretta. Replaces Loretta's Greatbow.

Racers want ``Royal Knight Loretta``, not the whole sentence. The
classifier runs an ordered list of rules and returns the first label
produced:

1. Named checks: curated phrases (e.g. "Commander Niall") map straight
   to a fixed label.
2. Extraction patterns: "Dropped by X", "In a chest unlocked by X",
   "Given by X", "Sold by X", leading "Atop/At/In X".
3. Fallback: the first sentence, capped at 50 characters.

New rules are added by inserting into the list; rule order is the
precedence and nothing else is.
"""

import re
from dataclasses import dataclass
from typing import Iterable


class NamedCheckRule:
    """Any of ``phrases`` (case-insensitive substring) -> fixed ``label``."""

    def __init__(self, phrases: Iterable[str], label: str):
        self.phrases: tuple[str, ...] = tuple(phrases)
        self.label = label
        self._lowered = tuple(p.lower() for p in self.phrases)

    def apply(self, text: str) -> str | None:
        lowered = text.lower()
        if any(p in lowered for p in self._lowered):
            return self.label
        return None

    def __repr__(self) -> str:
        return f'NamedCheckRule({self.phrases!r} -> {self.label!r})'


class PatternRule:
    """Regex with one capture group, formatted through ``template``."""

    def __init__(self, name: str, pattern: str, template: str = '{}'):
        self.name = name
        self.pattern = re.compile(pattern, re.IGNORECASE)
        self.template = template

    def apply(self, text: str) -> str | None:
        m = self.pattern.search(text)
        if not m:
            return None
        extracted = _clean(m.group(1))
        if not extracted:
            return None
        return self.template.format(extracted)

    def __repr__(self) -> str:
        return f'PatternRule({self.name!r})'


class FirstSentenceRule:
    """Text up to the first period, truncated with an ellipsis."""

    def __init__(self, limit: int = 50):
        self.limit = limit

    def apply(self, text: str) -> str | None:
        first = text.split('.')[0].strip()
        if len(first) > self.limit:
            return first[:self.limit - 3] + '...'
        return first

    def __repr__(self) -> str:
        return f'FirstSentenceRule(limit={self.limit})'


def _clean(value: str) -> str:
    return value.strip().rstrip('.').strip()


# (name, pattern, template), tried in this order after the named checks
EXTRACTION_PATTERNS: tuple[tuple[str, str, str], ...] = (
    ('dropped_by', r'Dropped by ([^.]+)', '{}'),
    ('chest_key', r'In a chest unlocked by ([^.]+?)(?:\s+in\s+|\.|$)', '{} Chest Check'),
    ('given_by', r'Given by ([^.]+)', '{}'),
    ('sold_by', r'Sold by ([^.]+)', '{}'),
    ('location', r'^(?:Atop|At|In)\s+(.+?)(?:\.|Replaces|$)', '{}'),
)


def default_rules(named_checks: Iterable[tuple[Iterable[str], str]] = ()) -> list:
    """Build the standard cascade: named checks, patterns, fallback."""
    rules: list = [NamedCheckRule(phrases, label) for phrases, label in named_checks]
    rules.extend(PatternRule(name, pattern, template)
                 for name, pattern, template in EXTRACTION_PATTERNS)
    rules.append(FirstSentenceRule())
    return rules


@dataclass
class LocationClassifier:
    """Ordered rule cascade; first non-None result wins."""
    rules: list

    @classmethod
    def for_catalog(cls, catalog) -> 'LocationClassifier':
        return cls(default_rules(catalog.named_checks))

    def classify(self, description: str) -> str:
        text = description.strip()
        if not text:
            return ''
        for rule in self.rules:
            label = rule.apply(text)
            if label is not None:
                return label
        return text

    def explain(self, description: str):
        """Return the rule that would label ``description`` (for debugging)."""
        text = description.strip()
        for rule in self.rules:
            if rule.apply(text) is not None:
                return rule
        return None

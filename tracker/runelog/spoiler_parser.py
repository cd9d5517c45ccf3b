"""Parse Elden Ring randomizer spoiler logs into a lookup index.

Three line shapes are recognised, tried in this order per line:

- Detailed placement::

      Godrick's Great Rune in Liurnia: Dropped by Royal Knight Loretta. Replaces ...

  The first detailed line for a rune wins. It also replaces an earlier
  hint-only entry.

- Hint::

      Godrick's Great Rune: In Liurnia

  Only recorded when the rune has no entry yet.

- Boss replacement::

      Replacing Margit, the Fell Omen (#10000850) in Stormhill: Mohg, the Omen (#35000800) from Subterranean Shunning-Grounds

  Flag 10000850 -> "Mohg, the Omen". Later lines for the same flag win.

Everything else is ignored; spoiler logs contain plenty of unrelated
sections.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable

from .catalog import Catalog, DEFAULT_CATALOG
from .location_classifier import LocationClassifier

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = 'Unknown location'

_DETAILED_RE = re.compile(r'^(?P<name>.+?)\s+in\s+(?P<area>[^:]+):\s*(?P<text>.+)$', re.IGNORECASE)
_HINT_RE = re.compile(r'^(?P<name>[^:]+?):\s*(?:In\s+)?(?P<area>.+)$', re.IGNORECASE)
_REPLACEMENT_RE = re.compile(
    r'^Replacing\s+(?P<original>.+?)\s+\(#(?P<flag>\d+)\)\s+in\s+(?P<area>[^:]+):\s*'
    r'(?P<replacement>.+?)\s+\(#(?P<other>\d+)\)(?:\s+from\s+(?P<source>.+))?$',
    re.IGNORECASE,
)
_SEED_CONTENT_RE = re.compile(r'Seed:\s*(\d+)', re.IGNORECASE)
_SEED_FILENAME_RE = re.compile(r'log_(\d+)')
# 2026-01-09_21.18.52_log_2005756270_31785.txt
_FILENAME_RE = re.compile(r'^(\d{4}-\d{2}-\d{2})_(\d{2}\.\d{2}\.\d{2})_log_(\d+)_(\d+)\.txt$')


@dataclass
class RuneLocation:
    area: str = ''
    detail: str = ''         # classified label from a detailed line
    description: str = ''    # raw free text from the detailed line

    def display(self) -> str:
        return self.detail or self.area or UNKNOWN_LOCATION


@dataclass
class SpoilerIndex:
    """Lookup tables built from one spoiler document.

    Never mutated after parsing; a reload builds a new index.
    """
    locations: dict[str, RuneLocation] = field(default_factory=dict)
    replacements: dict[int, str] = field(default_factory=dict)
    seed: str | None = None
    file_path: str | None = None
    file_timestamp: datetime | None = None
    is_valid: bool = True
    parse_error: str | None = None

    def get_location(self, key: str) -> str:
        """Detail if known, else area, else ``UNKNOWN_LOCATION``."""
        loc = self.locations.get(key)
        if loc is None:
            return UNKNOWN_LOCATION
        return loc.display()

    def get_replacement(self, flag: int) -> str | None:
        return self.replacements.get(flag)


@dataclass(frozen=True)
class SpoilerFilename:
    timestamp: datetime
    seed: str
    options: str


def parse_filename(filename: str) -> SpoilerFilename | None:
    """Parse ``YYYY-MM-DD_HH.MM.SS_log_<seed>_<options>.txt``, else None."""
    m = _FILENAME_RE.match(filename)
    if not m:
        return None
    date_str, time_str, seed, options = m.groups()
    try:
        timestamp = datetime.strptime(f'{date_str} {time_str}', '%Y-%m-%d %H.%M.%S')
    except ValueError:
        return None
    return SpoilerFilename(timestamp, seed, options)


def _strip_suffixes(name: str, suffixes: Iterable[str]) -> str:
    for suffix in suffixes:
        if suffix and name.lower().endswith(suffix.lower()):
            return name[:-len(suffix)].rstrip()
    return name


def parse_spoiler_text(
    lines: Iterable[str],
    catalog: Catalog = DEFAULT_CATALOG,
    classifier: LocationClassifier | None = None,
) -> SpoilerIndex:
    """Build a ``SpoilerIndex`` from spoiler log lines. Never raises on content."""
    classifier = classifier or LocationClassifier.for_catalog(catalog)
    index = SpoilerIndex()

    for raw in lines:
        line = raw.strip()
        if not line:
            continue

        if index.seed is None:
            seed_match = _SEED_CONTENT_RE.search(line)
            if seed_match:
                index.seed = seed_match.group(1)

        # ─── Detailed placement ───
        m = _DETAILED_RE.match(line)
        rune = catalog.normalize_collectible(m.group('name')) if m else None
        if rune is not None:
            existing = index.locations.get(rune.key)
            if existing is None or not existing.detail:
                description = m.group('text').strip()
                index.locations[rune.key] = RuneLocation(
                    area=m.group('area').strip(),
                    detail=classifier.classify(description),
                    description=description,
                )
            continue

        # ─── Hint ───
        m = _HINT_RE.match(line)
        rune = catalog.normalize_collectible(m.group('name')) if m else None
        if rune is not None:
            if rune.key not in index.locations:
                index.locations[rune.key] = RuneLocation(area=m.group('area').strip())
            continue

        # ─── Boss replacement ───
        m = _REPLACEMENT_RE.match(line)
        if m:
            replacement = _strip_suffixes(m.group('replacement').strip(),
                                          catalog.replacement_suffixes)
            index.replacements[int(m.group('flag'))] = replacement

    return index


def parse_spoiler_log(path: str | Path, catalog: Catalog = DEFAULT_CATALOG) -> SpoilerIndex:
    """Read and parse a spoiler log file.

    Returns an invalid index (``is_valid=False`` with ``parse_error``) when
    the file cannot be read; individual bad lines never fail the load.
    """
    path = Path(path)
    try:
        lines = path.read_text(encoding='utf-8-sig', errors='replace').splitlines()
    except OSError as e:
        logger.warning('Failed to read spoiler log %s: %s', path, e)
        return SpoilerIndex(file_path=str(path), is_valid=False,
                            parse_error=e.strerror or str(e))

    index = parse_spoiler_text(lines, catalog)
    index.file_path = str(path)

    info = parse_filename(path.name)
    if info is not None:
        index.file_timestamp = info.timestamp
        index.seed = info.seed
    else:
        seed_match = _SEED_FILENAME_RE.search(path.name)
        if seed_match:
            index.seed = seed_match.group(1)

    logger.debug('Parsed spoiler log %s: %d rune locations, %d boss replacements',
                 path.name, len(index.locations), len(index.replacements))
    return index

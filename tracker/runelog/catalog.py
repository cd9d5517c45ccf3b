"""Milestone catalog for Elden Ring randomizer races.

The tracker reports on two kinds of milestones:

- Great Runes (collectibles), each with its own event flag. In the
  randomizer the Unborn rune's flag is not set when the rune is found away
  from Rennala, so its state is deduced from the ordinal flags instead.
- Bosses, each with a completion flag. Multi-phase fights list the earlier
  phase flags so spoiler replacements can be shown per phase.

Flag ids are game-version data, not logic. ``load_catalog`` reads the same
tables from a JSON file so a different game/mod version can be tracked
without touching the tracker or the classifier.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class Collectible:
    """One Great Rune."""
    key: str                 # opaque id, also the producer's greatRunes key
    name: str                # canonical display name
    flag: int                # specific event flag
    token: str               # distinguishing word used to fold name variants
    deduced: bool = False    # flag unreliable; deduce from ordinal flags


@dataclass(frozen=True)
class Boss:
    """One boss; only ``final_flag`` marks it defeated."""
    key: str
    name: str
    final_flag: int
    prior_phase_flags: tuple[int, ...] = ()

    @property
    def phase_flags(self) -> tuple[int, ...]:
        """All phase flags in fight order, final phase last."""
        return self.prior_phase_flags + (self.final_flag,)

    @property
    def is_multi_phase(self) -> bool:
        return bool(self.prior_phase_flags)


@dataclass(frozen=True)
class Catalog:
    collectibles: tuple[Collectible, ...]
    bosses: tuple[Boss, ...]
    ordinal_flags: tuple[int, ...]
    # (phrases, label) pairs for community-named checks
    named_checks: tuple[tuple[tuple[str, ...], str], ...] = ()
    collectible_marker: str = 'great rune'
    collectible_label: str = 'Great Runes'
    boss_label: str = 'Bosses'
    # Trailing text the randomizer appends to some replacement names
    replacement_suffixes: tuple[str, ...] = ()
    _by_key: dict = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        by_key = {c.key: c for c in self.collectibles}
        by_key.update({b.key: b for b in self.bosses})
        object.__setattr__(self, '_by_key', by_key)

    @property
    def specific_collectibles(self) -> tuple[Collectible, ...]:
        return tuple(c for c in self.collectibles if not c.deduced)

    @property
    def deduced_collectibles(self) -> tuple[Collectible, ...]:
        return tuple(c for c in self.collectibles if c.deduced)

    def get(self, key: str) -> Collectible | Boss | None:
        return self._by_key.get(key)

    def collectible_by_flag(self, flag: int) -> Collectible | None:
        for c in self.collectibles:
            if c.flag == flag:
                return c
        return None

    def tracked_flags(self) -> list[int]:
        """Every flag the tracker reads, in evaluation order, no duplicates."""
        flags: list[int] = []
        for boss in self.bosses:
            flags.extend(boss.phase_flags)
        flags.extend(c.flag for c in self.collectibles)
        flags.extend(self.ordinal_flags)
        return list(dict.fromkeys(flags))

    def normalize_collectible(self, text: str) -> Collectible | None:
        """Fold a spoiler-log rune name to its catalog entry.

        ``"GODRICK'S great rune"`` and ``"Great Rune (Godrick)"`` both map to
        Godrick's Great Rune. Text without the collectible marker never
        matches, so e.g. "Mohg's Shackle" is not mistaken for a rune.
        """
        lowered = text.strip().lower()
        if self.collectible_marker and self.collectible_marker not in lowered:
            return None
        for c in self.collectibles:
            if c.token.lower() in lowered:
                return c
        return None


# ─── Great Runes ───
# Specific flags 171-176 identify which rune was obtained. 197 (Unborn) is
# only set when the rune comes from Rennala, which the randomizer breaks.
GREAT_RUNES: tuple[Collectible, ...] = (
    Collectible('Godrick', "Godrick's Great Rune", 171, 'godrick'),
    Collectible('Radahn', "Radahn's Great Rune", 172, 'radahn'),
    Collectible('Morgott', "Morgott's Great Rune", 173, 'morgott'),
    Collectible('Rykard', "Rykard's Great Rune", 174, 'rykard'),
    Collectible('Mohg', "Mohg's Great Rune", 175, 'mohg'),
    Collectible('Malenia', "Malenia's Great Rune", 176, 'malenia'),
    Collectible('Unborn', 'Great Rune of the Unborn', 197, 'unborn', deduced=True),
)

# 181 = "got 1st Great Rune", 182 = "got 2nd", ... regardless of which rune
ORDINAL_RUNE_FLAGS: tuple[int, ...] = (181, 182, 183, 184, 185, 186, 187)

# ─── Bosses ───
# Multi-phase fights: earlier phases first, completion flag last.
BOSSES: tuple[Boss, ...] = (
    # Limgrave & Weeping Peninsula
    Boss('margit', 'Margit, the Fell Omen', 10000850),
    Boss('godrick', 'Godrick the Grafted', 10000800),
    Boss('leonine_misbegotten', 'Leonine Misbegotten', 1043300800),
    Boss('tree_sentinel', 'Tree Sentinel', 1035500800),
    # Liurnia
    Boss('rennala', 'Rennala, Queen of the Full Moon', 14000800, (14000850, 14000801)),
    Boss('royal_knight_loretta', 'Royal Knight Loretta', 12080800),
    # Caelid
    Boss('radahn', 'Starscourge Radahn', 12010800),
    Boss('decaying_ekzykes', 'Decaying Ekzykes', 39200800),
    Boss('commander_oneil', "Commander O'Neil", 1039540800),
    # Altus Plateau & Mt. Gelmir
    Boss('godskin_apostle_windmill', 'Godskin Apostle (Windmill Village)', 11000850),
    Boss('godskin_apostle_dominula', 'Godskin Apostle (Dominula)', 11000800),
    Boss('tibia_mariner_wyndham', 'Tibia Mariner (Wyndham)', 35000800),
    Boss('elemer_of_the_briar', 'Elemer of the Briar', 1052380800),
    # Volcano Manor
    Boss('abductor_virgins', 'Abductor Virgins', 12020800),
    Boss('god_devouring_serpent', 'God-Devouring Serpent', 12090800),
    Boss('rykard', 'Rykard, Lord of Blasphemy', 16000800, (12020850, 16000850, 16000801)),
    # Leyndell
    Boss('godfrey_golden_shade', 'Godfrey, First Elden Lord (Golden Shade)', 12040800),
    Boss('draconic_tree_sentinel', 'Draconic Tree Sentinel', 1051570800),
    # Capital Outskirts
    Boss('fell_twins', 'Fell Twins', 1052520800, (1052520801,)),
    # Mountaintops of the Giants
    Boss('fire_giant', 'Fire Giant', 13000800, (13000850, 13000830, 13000801)),
    # Forbidden Lands & Consecrated Snowfield
    Boss('loretta_haligtree', 'Loretta, Knight of the Haligtree', 15000800, (15000850,)),
    # Crumbling Farum Azula
    Boss('maliketh', 'Maliketh, the Black Blade', 12050800),
    # Haligtree
    Boss('malenia', 'Malenia, Blade of Miquella', 11050800, (11050801,)),
    # Elden Throne
    Boss('elden_beast', 'Radagon of the Golden Order / Elden Beast', 19000800, (19000810,)),
)

# ─── Named checks ───
# Well-known checks in the racing community. First matching phrase wins, and
# these are consulted before any general "Dropped by"/"Given by" extraction.
NAMED_CHECKS: tuple[tuple[tuple[str, ...], str], ...] = (
    (('Commander Niall',), 'Castle Sol Haligtree Medallion Check'),
    (('Discarded Palace Key',), 'Discarded Palace Key Chest Check'),
    (('Fort Haight',), 'Fort Haight Check'),
    (('Fort Faroth',), 'Fort Faroth Check'),
    (('Rusty Key door',), 'Rusty Key Check'),
    (('Albus', 'disguised as a pot'), 'Albus'),
    (('Glintstone Dragon Smarag',), 'Academy Glintstone Key Check'),
    (('topmost of the Belfries', 'Four Belfries'), 'Belfries Check'),
    (('Raya Lucaria rooftop',), 'Imbued Sword Key Check'),
    (('magical barrier in Sellia', 'lighting flames around town'), 'Sellia Check'),
    (('Divine Tower of Liurnia', 'Carian Study Hall'), 'Inverted Statue Check'),
    (('Given by Tanith', 'Tanith upon joining'), 'Tanith'),
)

DEFAULT_CATALOG = Catalog(
    collectibles=GREAT_RUNES,
    bosses=BOSSES,
    ordinal_flags=ORDINAL_RUNE_FLAGS,
    named_checks=NAMED_CHECKS,
    replacement_suffixes=(' (scaled)',),
)


def load_catalog(path: str | Path) -> Catalog:
    """Load a catalog from JSON.

    Missing top-level tables fall back to the defaults, so an override file
    may carry only e.g. a corrected ``bosses`` list. Raises ``OSError`` or
    ``ValueError`` on an unreadable or malformed file.
    """
    with open(path, encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f'catalog must be a JSON object: {path}')

    try:
        collectibles = DEFAULT_CATALOG.collectibles
        if 'collectibles' in data:
            collectibles = tuple(
                Collectible(
                    key=str(c['key']),
                    name=str(c['name']),
                    flag=int(c['flag']),
                    token=str(c.get('token', c['key'])).lower(),
                    deduced=bool(c.get('deduced', False)),
                )
                for c in data['collectibles']
            )

        bosses = DEFAULT_CATALOG.bosses
        if 'bosses' in data:
            bosses = tuple(
                Boss(
                    key=str(b['key']),
                    name=str(b['name']),
                    final_flag=int(b['final_flag']),
                    prior_phase_flags=tuple(int(f) for f in b.get('prior_phase_flags', ())),
                )
                for b in data['bosses']
            )

        named_checks = DEFAULT_CATALOG.named_checks
        if 'named_checks' in data:
            named_checks = tuple(
                (tuple(str(p) for p in nc['phrases']), str(nc['label']))
                for nc in data['named_checks']
            )
        named_checks = named_checks + tuple(
            (tuple(str(p) for p in nc['phrases']), str(nc['label']))
            for nc in data.get('extra_named_checks', ())
        )

        return Catalog(
            collectibles=collectibles,
            bosses=bosses,
            ordinal_flags=tuple(int(f) for f in data.get(
                'ordinal_flags', DEFAULT_CATALOG.ordinal_flags)),
            named_checks=named_checks,
            collectible_marker=str(data.get(
                'collectible_marker', DEFAULT_CATALOG.collectible_marker)).lower(),
            collectible_label=str(data.get(
                'collectible_label', DEFAULT_CATALOG.collectible_label)),
            boss_label=str(data.get('boss_label', DEFAULT_CATALOG.boss_label)),
            replacement_suffixes=tuple(str(s) for s in data.get(
                'replacement_suffixes', DEFAULT_CATALOG.replacement_suffixes)),
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f'malformed catalog {path}: {e}') from e

"""Pytest fixtures for rune tracker tests."""
import sys
from pathlib import Path

import pytest

TRACKER_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(TRACKER_DIR))

from runelog.catalog import DEFAULT_CATALOG

SPOILER_LINES = [
    'Seed: 2005756270',
    '',
    '-- Hints',
    "Godrick's Great Rune: In Liurnia",
    "Radahn's Great Rune: In Caelid",
    "Morgott's Great Rune: In Leyndell",
    '',
    '-- Spoilers',
    "Godrick's Great Rune in Liurnia: Dropped by Royal Knight Loretta. Replaces Loretta's Greatbow.",
    "Radahn's Great Rune in Caelid: Given by Blaidd. Replaces Blaidd's Armor.",
    "Rykard's Great Rune in Castle Sol: Dropped by Commander Niall. Replaces Haligtree Secret Medallion (Right).",
    '',
    '-- Enemies',
    'Replacing Margit, the Fell Omen (#10000850) in Stormhill: Mohg, the Omen (#35000800) from Subterranean Shunning-Grounds',
    'Replacing Malenia, Goddess of Rot (#11050801) in Haligtree: Godskin Noble (#16000850) from Volcano Manor',
    'Replacing Malenia, Blade of Miquella (#11050800) in Haligtree: Rennala, Queen of the Full Moon (scaled) (#14000800) from Raya Lucaria',
]


@pytest.fixture
def catalog():
    return DEFAULT_CATALOG


@pytest.fixture
def spoiler_lines():
    return list(SPOILER_LINES)


@pytest.fixture
def spoiler_file(tmp_path):
    path = tmp_path / '2026-01-09_21.18.52_log_2005756270_31785.txt'
    path.write_text('\n'.join(SPOILER_LINES) + '\n', encoding='utf-8')
    return path

"""Unit tests for the milestone catalog and JSON overrides."""
import json
import sys
from pathlib import Path

import pytest

TRACKER_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(TRACKER_DIR))

from runelog.catalog import DEFAULT_CATALOG, Boss, Collectible, load_catalog


class TestDefaultCatalog:

    def test_sizes(self, catalog):
        assert len(catalog.collectibles) == 7
        assert len(catalog.bosses) == 24
        assert len(catalog.ordinal_flags) == 7

    def test_unborn_is_only_deduced_rune(self, catalog):
        assert [c.key for c in catalog.deduced_collectibles] == ['Unborn']
        assert len(catalog.specific_collectibles) == 6

    def test_tracked_flags_unique(self, catalog):
        flags = catalog.tracked_flags()
        assert len(flags) == len(set(flags))
        assert 11050801 in flags
        assert 197 in flags
        assert 187 in flags

    def test_boss_flags_unique(self, catalog):
        finals = [b.final_flag for b in catalog.bosses]
        assert len(finals) == len(set(finals))

    def test_lookup(self, catalog):
        assert catalog.get('Godrick').flag == 171
        assert catalog.get('margit').final_flag == 10000850
        assert catalog.get('nobody') is None
        assert catalog.collectible_by_flag(175).key == 'Mohg'
        assert catalog.collectible_by_flag(10000850) is None

    def test_phase_flags_end_with_final(self, catalog):
        rykard = catalog.get('rykard')
        assert rykard.is_multi_phase
        assert rykard.phase_flags == (12020850, 16000850, 16000801, 16000800)
        assert not catalog.get('margit').is_multi_phase


class TestNormalize:

    @pytest.mark.parametrize('text, key', [
        ("Godrick's Great Rune", 'Godrick'),
        ("GODRICK'S GREAT RUNE", 'Godrick'),
        ('Great Rune (Radahn)', 'Radahn'),
        ('  great rune of the unborn  ', 'Unborn'),
    ])
    def test_variants(self, text, key):
        assert DEFAULT_CATALOG.normalize_collectible(text).key == key

    @pytest.mark.parametrize('text', [
        "Mohg's Shackle",
        "Malenia's Hand",
        'Great Rune',
        '',
    ])
    def test_rejected(self, text):
        assert DEFAULT_CATALOG.normalize_collectible(text) is None


class TestLoadCatalog:

    def test_partial_override_keeps_defaults(self, tmp_path):
        path = tmp_path / 'catalog.json'
        path.write_text(json.dumps({
            'bosses': [
                {'key': 'margit', 'name': 'Margit', 'final_flag': 1},
                {'key': 'twins', 'name': 'Twins', 'final_flag': 3, 'prior_phase_flags': [2]},
            ],
        }), encoding='utf-8')
        catalog = load_catalog(path)
        assert catalog.bosses == (
            Boss('margit', 'Margit', 1),
            Boss('twins', 'Twins', 3, (2,)),
        )
        assert catalog.collectibles == DEFAULT_CATALOG.collectibles
        assert catalog.named_checks == DEFAULT_CATALOG.named_checks
        assert catalog.replacement_suffixes == (' (scaled)',)

    def test_collectibles_override(self, tmp_path):
        path = tmp_path / 'catalog.json'
        path.write_text(json.dumps({
            'collectibles': [
                {'key': 'Alpha', 'name': 'Alpha Rune', 'flag': 10, 'token': 'ALPHA'},
                {'key': 'Omega', 'name': 'Omega Rune', 'flag': 11, 'deduced': True},
            ],
            'collectible_marker': 'Rune',
        }), encoding='utf-8')
        catalog = load_catalog(path)
        assert catalog.collectibles[0] == Collectible('Alpha', 'Alpha Rune', 10, 'alpha')
        assert catalog.collectibles[1].token == 'omega'
        assert catalog.collectibles[1].deduced
        assert catalog.normalize_collectible('The Omega rune').key == 'Omega'

    def test_extra_named_checks_appended(self, tmp_path):
        path = tmp_path / 'catalog.json'
        path.write_text(json.dumps({
            'extra_named_checks': [{'phrases': ['Nokron'], 'label': 'Nokron Check'}],
        }), encoding='utf-8')
        catalog = load_catalog(path)
        assert catalog.named_checks[:-1] == DEFAULT_CATALOG.named_checks
        assert catalog.named_checks[-1] == (('Nokron',), 'Nokron Check')

    def test_malformed_entry(self, tmp_path):
        path = tmp_path / 'catalog.json'
        path.write_text(json.dumps({'bosses': [{'key': 'x'}]}), encoding='utf-8')
        with pytest.raises(ValueError):
            load_catalog(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / 'catalog.json'
        path.write_text('[1, 2]', encoding='utf-8')
        with pytest.raises(ValueError):
            load_catalog(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / 'catalog.json'
        path.write_text('{', encoding='utf-8')
        with pytest.raises(ValueError):
            load_catalog(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_catalog(tmp_path / 'nope.json')

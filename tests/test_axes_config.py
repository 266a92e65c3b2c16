"""
Tests for axis mapping and configuration.

Tests cover:
- Permutation validation of (lon, lat, height) axis indices
- Config defaults, replace() validation, JSON round trip
- Vertical exaggeration clamping
"""

import math
from itertools import permutations
from pathlib import Path
import sys

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from geoviewer.common.axes import AxisMapping
from geoviewer.common.config import (
    Config, DEFAULT_VERTICAL_EXAGGERATION, sanitize_exaggeration,
)
from geoviewer.common.errors import InvalidMapping


# ============== AxisMapping Tests ==============

class TestAxisMapping:
    """Test axis mapping validation."""

    @pytest.mark.parametrize("values", list(permutations(range(3))))
    def test_accepts_all_permutations(self, values):
        """Every permutation of (0, 1, 2) is a valid mapping."""
        mapping = AxisMapping.parse(values)
        assert mapping.as_tuple() == values

    @pytest.mark.parametrize("values", [
        (0, 0, 1),
        (3, 1, 2),
        (-1, 0, 1),
        (2, 2, 2),
        (0, 1),
        (0, 1, 2, 0),
    ])
    def test_rejects_non_permutations(self, values):
        """Repeated, out-of-range or wrong-length inputs are rejected."""
        with pytest.raises(InvalidMapping):
            AxisMapping.parse(values)

    def test_rejects_non_integers(self):
        """Non-numeric and boolean entries are rejected."""
        with pytest.raises(InvalidMapping):
            AxisMapping.parse(("a", 1, 2))
        with pytest.raises(InvalidMapping):
            AxisMapping.parse((True, False, 2))
        with pytest.raises(InvalidMapping):
            AxisMapping.parse((0.5, 1, 2))

    def test_rejects_non_iterable(self):
        with pytest.raises(InvalidMapping):
            AxisMapping.parse(7)

    def test_accepts_integer_strings(self):
        """Form/CLI strings are accepted when they are integers."""
        mapping = AxisMapping.parse(["0", "2", "1"])
        assert (mapping.lon, mapping.lat, mapping.height) == (0, 2, 1)

    def test_direct_construction_is_validated(self):
        with pytest.raises(InvalidMapping):
            AxisMapping(lon=1, lat=1, height=0)

    def test_invalid_mapping_is_value_error(self):
        """Callers catching ValueError also catch InvalidMapping."""
        with pytest.raises(ValueError):
            AxisMapping.parse((1, 1, 1))

    def test_describe(self):
        assert AxisMapping(0, 2, 1).describe() == "lon=x lat=z height=y"


# ============== Config Tests ==============

class TestConfig:
    """Test configuration dataclass."""

    def test_default_values(self):
        """Default config should have expected values."""
        config = Config()

        assert config.axis_mapping == AxisMapping(0, 1, 2)
        assert config.vertical_exaggeration == DEFAULT_VERTICAL_EXAGGERATION
        assert config.flip_z_scale is False
        assert config.flip_vertical is False
        assert config.geo_mode_enabled is False
        assert config.target_size == 2.0

    def test_tuple_mapping_is_parsed(self):
        config = Config(axis_mapping=(0, 2, 1))
        assert isinstance(config.axis_mapping, AxisMapping)
        assert config.axis_mapping.lat == 2

    def test_replace_keeps_original(self):
        """replace() returns a new config and leaves the old one alone."""
        config = Config()
        changed = config.replace(vertical_exaggeration=3.0, geo_mode_enabled=True)

        assert changed.vertical_exaggeration == 3.0
        assert changed.geo_mode_enabled is True
        assert config.vertical_exaggeration == DEFAULT_VERTICAL_EXAGGERATION

    def test_replace_rejects_invalid_mapping(self):
        config = Config(axis_mapping=(2, 0, 1))
        with pytest.raises(InvalidMapping):
            config.replace(axis_mapping=(0, 0, 1))
        assert config.axis_mapping.as_tuple() == (2, 0, 1)

    def test_json_round_trip(self, tmp_path):
        config = Config(axis_mapping=(1, 2, 0), vertical_exaggeration=2.5,
                        flip_vertical=True, geo_mode_enabled=True)
        path = tmp_path / "nested" / "config.json"
        config.save(path)

        loaded = Config.from_json(path)
        assert loaded == config

    def test_from_json_invalid_mapping(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"axis_mapping": [0, 1, 1]}')
        with pytest.raises(InvalidMapping):
            Config.from_json(path)


# ============== Exaggeration Tests ==============

class TestExaggeration:
    """Test vertical exaggeration clamping."""

    @pytest.mark.parametrize("value", [0.0, -2.0, math.nan, math.inf, None, "abc"])
    def test_invalid_falls_back_to_default(self, value):
        assert sanitize_exaggeration(value) == DEFAULT_VERTICAL_EXAGGERATION

    def test_valid_passes_through(self):
        assert sanitize_exaggeration(3) == 3.0
        assert Config(vertical_exaggeration=0.25).exaggeration == 0.25

    def test_config_property_clamps(self):
        assert Config(vertical_exaggeration=-1).exaggeration == DEFAULT_VERTICAL_EXAGGERATION

    def test_config_clamps_once(self, caplog):
        """A bad value is clamped on construction and warned about once."""
        with caplog.at_level("WARNING"):
            config = Config(vertical_exaggeration=-1)
            assert config.vertical_exaggeration == DEFAULT_VERTICAL_EXAGGERATION
            assert config.exaggeration == DEFAULT_VERTICAL_EXAGGERATION
            config.to_dict()
        warnings = [r for r in caplog.records if "exaggeration" in r.getMessage()]
        assert len(warnings) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

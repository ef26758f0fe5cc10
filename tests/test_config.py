"""Tests for configuration and alias tables."""

import json

import pytest

from wp2text.core.aliases import AliasTables, default_aliases
from wp2text.core.config import RenderConfig, parse_markers
from wp2text.core.errors import ConfigError


class TestRenderConfig:
    """Test RenderConfig."""

    def test_defaults(self):
        config = RenderConfig()
        assert config.keep_title
        assert config.keep_heading
        assert config.keep_category
        assert not config.keep_list
        assert not config.keep_table
        assert config.markers is True
        assert config.mode == "text"

    def test_from_file(self, tmp_path):
        """Options are loaded from YAML."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "keep_list: true\nmarkers: [math, code]\nsections:\n  - summary\n  - Plot\n",
            encoding="utf-8",
        )
        config = RenderConfig.from_file(path)
        assert config.keep_list
        assert config.markers == frozenset({"math", "code"})
        assert config.sections == ["summary", "Plot"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert RenderConfig.from_file(path) == RenderConfig()

    def test_unknown_option(self):
        with pytest.raises(ConfigError, match="keep_everything"):
            RenderConfig.from_dict({"keep_everything": True})

    def test_invalid_mode(self):
        with pytest.raises(ConfigError):
            RenderConfig(mode="everything")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("keep_list: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            RenderConfig.from_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            RenderConfig.from_file(tmp_path / "missing.yaml")

    def test_merged(self):
        """Overrides replace values; None leaves them alone."""
        base = RenderConfig(keep_list=True, markers="math")
        merged = base.merged(keep_table=True, keep_list=None, markers=False)
        assert merged.keep_table
        assert merged.keep_list
        assert merged.markers is False
        assert base.markers == frozenset({"math"})

    def test_to_dict_round_trips_markers(self):
        config = RenderConfig(markers=["code", "math"])
        assert config.to_dict()["markers"] == ["code", "math"]
        assert RenderConfig.from_dict(config.to_dict()) == config


class TestMarkerSetting:
    """Test parse_markers."""

    @pytest.mark.parametrize("value,expected", [
        (None, True),
        (True, True),
        ("all", True),
        (False, False),
        ("none", False),
        ("math, table", frozenset({"math", "table"})),
        (["IPA"], frozenset({"ipa"})),
    ])
    def test_values(self, value, expected):
        assert parse_markers(value) == expected

    def test_unknown_family(self):
        with pytest.raises(ConfigError, match="Unknown marker"):
            parse_markers("math,sparkles")

    def test_marker_enabled(self):
        config = RenderConfig(markers="table")
        assert config.marker_enabled("table")
        assert not config.marker_enabled("math")


class TestAliasTables:
    """Test alias table loading."""

    def test_bundled_tables(self):
        aliases = default_aliases()
        assert "WEITERLEITUNG" in aliases.aliases_for("redirect")
        assert aliases.namespace_aliases("Category")[0] == "Category"
        assert "cite web" in aliases.template_names("citation")
        assert aliases.entity("amp") == "&"
        assert aliases.entity("nbsp") == " "

    def test_cached(self):
        assert default_aliases() is default_aliases()

    def test_alternation_longest_first(self):
        aliases = AliasTables()
        assert aliases.alternation(("ab", "abc", "a")) == "abc|ab|a"

    def test_from_directory(self, tmp_path):
        """A directory with the same layout overrides the bundled data."""
        tables = {
            "magic_words.json": {"redirect": ["UMLEITUNG"]},
            "namespaces.json": {"Category": ["Category", "Rubrik"]},
            "templates.json": {"citation": ["Quelle"]},
            "entities.json": {"custom": "!"},
        }
        for name, data in tables.items():
            (tmp_path / name).write_text(json.dumps(data), encoding="utf-8")
        aliases = AliasTables.from_directory(tmp_path)
        assert aliases.aliases_for("REDIRECT") == ("UMLEITUNG",)
        assert aliases.namespace_aliases("Category") == ("Category", "Rubrik")
        assert aliases.namespace_aliases("File") == ("File",)
        assert aliases.template_names("citation") == ("quelle",)
        assert aliases.entity("custom") == "!"

    def test_missing_table(self, tmp_path):
        with pytest.raises(ConfigError):
            AliasTables.from_directory(tmp_path)

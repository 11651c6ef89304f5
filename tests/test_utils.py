"""Tests for utils: short_hash, pluralize, format_component_count, short_path."""

from pathlib import Path

from ocm.core.utils import format_component_count, pluralize, short_hash, short_path


class TestShortHash:
    def test_first_eight(self):
        assert short_hash("0123456789abcdef") == "01234567"

    def test_short_input(self):
        assert short_hash("abc") == "abc"


class TestFormatComponentCount:
    def test_all_types(self):
        assert format_component_count(1, 2, 3) == "1 command, 2 agents, 3 skills"

    def test_zero_counts_omitted(self):
        assert format_component_count(0, 1, 0) == "1 agent"

    def test_nothing(self):
        assert format_component_count(0, 0, 0) == ""

    def test_pluralize(self):
        assert pluralize(1, "skill") == "1 skill"
        assert pluralize(0, "skill") == "0 skills"


class TestShortPath:
    def test_under_home(self):
        assert short_path(Path.home() / "projects" / "x") == "~/projects/x"

    def test_home_itself(self):
        assert short_path(Path.home()) == "~"

    def test_outside_home(self):
        assert short_path(Path("/definitely/elsewhere")) == "/definitely/elsewhere"

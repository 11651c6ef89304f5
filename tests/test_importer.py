"""Tests for bulk import: config parsing and per-item outcome tallies."""

import json

import pytest

from ocm.plugins.errors import ImportConfigError
from ocm.plugins.importer import ImportSummary, import_plugins, load_import_config
from ocm.plugins.models import InstallStatus, Scope
from ocm.plugins.paths import ScopeLayout
from ocm.plugins.registry import load_registry


def _write_config(path, data):
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return path


class TestLoadImportConfig:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ImportConfigError, match="not found"):
            load_import_config(tmp_path / "ocm-import.json")

    def test_invalid_json(self, tmp_path):
        path = _write_config(tmp_path / "ocm-import.json", "{oops")
        with pytest.raises(ImportConfigError, match="invalid JSON"):
            load_import_config(path)

    @pytest.mark.parametrize("data", [[], {"plugins": "x"}, {}])
    def test_plugins_must_be_array(self, tmp_path, data):
        path = _write_config(tmp_path / "ocm-import.json", data)
        with pytest.raises(ImportConfigError, match="Invalid import configuration"):
            load_import_config(path)

    @pytest.mark.parametrize("entry", [3, "", "   ", None])
    def test_entries_must_be_strings(self, tmp_path, entry):
        path = _write_config(tmp_path / "ocm-import.json", {"plugins": ["ok", entry]})
        with pytest.raises(ImportConfigError, match=r"plugins\[1\]"):
            load_import_config(path)

    def test_resolves_relative_entries(self, tmp_path):
        conf_dir = tmp_path / "conf"
        conf_dir.mkdir()
        path = _write_config(
            conf_dir / "ocm-import.json",
            {"plugins": ["./local", "https://github.com/acme/tools", str(tmp_path / "abs")]},
        )
        assert load_import_config(path) == [
            str((conf_dir / "local").resolve()),
            "https://github.com/acme/tools",
            str(tmp_path / "abs"),
        ]

    def test_empty_list(self, tmp_path):
        path = _write_config(tmp_path / "ocm-import.json", {"plugins": []})
        assert load_import_config(path) == []


class TestImportPlugins:
    def test_counts_each_outcome(self, config, make_plugin, tmp_path):
        fresh = make_plugin("fresh", {"command/a.md": "a"})
        same = make_plugin("same", {"command/b.md": "b"})
        changed = make_plugin("changed", {"agent/c.md": "c"})

        import_plugins(config, [str(same), str(changed)])
        (changed / "agent" / "c.md").write_text("c v2")

        seen = []
        summary = import_plugins(
            config,
            [str(fresh), str(same), str(changed), str(tmp_path / "missing")],
            on_item=lambda index, item: seen.append((index, item.source)),
        )

        statuses = [i.result.status if i.result else None for i in summary.items]
        assert statuses == [
            InstallStatus.INSTALLED,
            InstallStatus.SKIPPED,
            InstallStatus.UPDATED,
            None,
        ]
        assert (summary.installed, summary.updated, summary.skipped, summary.failed) == (1, 1, 1, 1)
        assert "not found" in summary.items[3].error
        assert [index for index, _ in seen] == [0, 1, 2, 3]

    def test_failure_does_not_stop_the_rest(self, config, make_plugin):
        ok = make_plugin("ok", {"command/a.md": "a"})
        bad = make_plugin("Bad_Name", {"command/a.md": "a"})

        summary = import_plugins(config, [str(bad), str(ok)])
        assert summary.failed == 1
        assert summary.installed == 1
        assert "ok" in load_registry(ScopeLayout(config, Scope.USER)).plugins

    def test_conflicts_fail_without_force(self, config, make_plugin):
        root = make_plugin("dup", {"command/a.md": "a"})
        target = config.config_dir / "commands" / "dup--a.md"
        target.parent.mkdir(parents=True)
        target.write_text("mine")

        assert import_plugins(config, [str(root)]).failed == 1
        assert import_plugins(config, [str(root)], force=True).installed == 1
        assert target.read_text() == "a"

    def test_empty_summary(self):
        summary = ImportSummary()
        assert (summary.installed, summary.updated, summary.skipped, summary.failed) == (0, 0, 0, 0)

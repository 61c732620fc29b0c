"""
Tests for configuration — instar.cfg parsing, saving and run context.
"""

from pathlib import Path

import pytest

from instar.core.config.loader import (
    ConfigError,
    InstarConfig,
    load_config,
    parse_config,
    render_config,
    save_config,
    set_config_value,
)
from instar.core.context import InstarContext, resolve_context
from instar.core.errors import InstarError


class TestParseConfig:
    def test_install_dir(self):
        cfg = parse_config("install_dir: /opt/local\n")
        assert cfg.install_dir == Path("/opt/local")

    def test_unknown_lines_ignored(self):
        text = "# comment\nrandom garbage\ncolor: blue\ninstall_dir:   /srv/x  \n"
        assert parse_config(text).install_dir == Path("/srv/x")

    def test_last_value_wins(self):
        cfg = parse_config("install_dir: /a\ninstall_dir: /b\n")
        assert cfg.install_dir == Path("/b")

    def test_default(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert parse_config("").install_dir == tmp_path / ".local"

    def test_home_expanded(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert parse_config("install_dir: ~/apps").install_dir == tmp_path / "apps"

    def test_relative_made_absolute(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        cfg = InstarConfig(install_dir=Path("prefix"))
        assert cfg.install_dir == tmp_path / "prefix"

    def test_render(self):
        assert render_config(InstarConfig(install_dir=Path("/opt"))) == "install_dir: /opt\n"


class TestLoadSave:
    def test_missing_file_gives_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        cfg = load_config(tmp_path / "absent.cfg")
        assert cfg.install_dir == tmp_path / ".local"
        assert not (tmp_path / "absent.cfg").exists()

    def test_roundtrip(self, tmp_path):
        path = tmp_path / "cfgdir" / "instar.cfg"
        save_config(InstarConfig(install_dir=Path("/opt/pkgs")), path)
        assert path.read_text() == "install_dir: /opt/pkgs\n"
        assert load_config(path).install_dir == Path("/opt/pkgs")

    def test_save_leaves_no_temp_files(self, tmp_path):
        path = tmp_path / "instar.cfg"
        save_config(InstarConfig(install_dir=Path("/a")), path)
        save_config(InstarConfig(install_dir=Path("/b")), path)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["instar.cfg"]

    def test_directory_treated_as_absent(self, tmp_path):
        path = tmp_path / "instar.cfg"
        path.mkdir()
        assert isinstance(load_config(path), InstarConfig)

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "instar.cfg"
        path.write_bytes(b"install_dir: \xff\xfe\n")
        with pytest.raises(ConfigError) as exc:
            load_config(path)
        assert isinstance(exc.value, InstarError)
        assert exc.value.path == path

    def test_save_into_blocked_dir(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file")
        with pytest.raises(ConfigError):
            save_config(InstarConfig(install_dir=Path("/a")), blocker / "instar.cfg")


class TestSetConfigValue:
    def test_set_install_dir(self, instar_ctx, tmp_path):
        cfg = set_config_value(instar_ctx, "install_dir", str(tmp_path / "root"))
        assert cfg.install_dir == tmp_path / "root"
        assert load_config(instar_ctx.config_file).install_dir == tmp_path / "root"

    def test_unknown_key(self, instar_ctx):
        with pytest.raises(ConfigError, match="Unknown config: colour"):
            set_config_value(instar_ctx, "colour", "blue")
        assert not instar_ctx.config_file.exists()

    def test_empty_value(self, instar_ctx):
        with pytest.raises(ConfigError):
            set_config_value(instar_ctx, "install_dir", "  ")


class TestContext:
    def test_layout(self, tmp_path):
        ctx = InstarContext.at(tmp_path)
        assert ctx.config_file == tmp_path / "instar.cfg"
        assert ctx.packages_dir == tmp_path / "packages"
        assert ctx.locks_dir == tmp_path / "locks"

    def test_explicit_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("INSTAR_CONFIG_DIR", str(tmp_path / "env"))
        assert resolve_context(tmp_path / "flag").config_dir == tmp_path / "flag"

    def test_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("INSTAR_CONFIG_DIR", str(tmp_path / "env"))
        assert resolve_context().config_dir == tmp_path / "env"

    def test_home_default(self, tmp_path, monkeypatch):
        monkeypatch.delenv("INSTAR_CONFIG_DIR", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert resolve_context().config_dir == tmp_path / ".config" / "instar"

    def test_resolving_touches_nothing(self, tmp_path):
        resolve_context(tmp_path / "cfg")
        assert not (tmp_path / "cfg").exists()

import json
from pathlib import Path
from unittest.mock import patch

import pytest

import wp_composer
from wpcomposer import commands


@pytest.fixture
def site(quiet_logs: Path) -> Path:
    return quiet_logs


def test_split_argv() -> None:
    args, flags, passthrough = wp_composer.split_argv(
        ["run", "plugin", "install", "akismet", "--dev", "--file=x.json", "--activate", "--version=5.3"]
    )
    assert args == ["run", "plugin", "install", "akismet"]
    assert flags == {"dev": True, "file": "x.json", "version": "5.3"}
    assert passthrough == ["--activate", "--version=5.3"]


def test_build_options_installer_path_lookup() -> None:
    with patch.object(wp_composer, "installer_dir_for", return_value="app") as lookup:
        opts = wp_composer.build_options("/var/www/site", {"ip": True, "latest": True})
    lookup.assert_called_once_with("/var/www/site")
    assert opts.installer_path == "app"
    assert opts.latest is True
    assert opts.dev is False


def test_main_without_command(site: Path, capsys) -> None:
    assert wp_composer.main([]) == 1
    assert "FAIL: usage:" in capsys.readouterr().out


@pytest.mark.parametrize(
    "argv",
    [
        ["frobnicate"],
        ["plugins", "remove"],
        ["plugin", "activate", "akismet"],
        ["theme"],
        ["plugin", "add"],
        ["run", "widget", "install", "x"],
        ["plugin", "add", "akismet", "--bogus"],
        ["plugin", "add", "akismet", "--file"],
    ],
)
def test_main_invalid_arguments(site: Path, argv: list[str], capsys) -> None:
    assert wp_composer.main([f"--path={site}"] + argv) == 1
    assert "FAIL:" in capsys.readouterr().out


def test_main_plugin_add_and_remove(site: Path) -> None:
    manifest = site / "composer.json"
    manifest.write_text(json.dumps({"name": "acme/site"}, indent=4) + "\n", encoding="utf-8")

    assert wp_composer.main([f"--path={site}", "plugin", "add", "akismet", "--version=5.3", "--dev"]) == 0
    assert json.loads(manifest.read_text(encoding="utf-8")) == {
        "name": "acme/site",
        "require-dev": {"wpackagist-plugin/akismet": "5.3"},
    }

    # require-dev now exists on disk, so it is written back empty
    assert wp_composer.main([f"--path={site}", "plugin", "remove", "akismet"]) == 0
    assert json.loads(manifest.read_text(encoding="utf-8")) == {
        "name": "acme/site",
        "require-dev": {},
    }


def test_main_broken_manifest(site: Path, capsys) -> None:
    (site / "composer.json").write_text("{nope", encoding="utf-8")
    assert wp_composer.main([f"--path={site}", "theme", "add", "astra"]) == 1
    assert "is not valid JSON" in capsys.readouterr().out


def test_main_install_without_manifest(site: Path, capsys) -> None:
    assert wp_composer.main([f"--path={site}", "plugins", "install"]) == 1
    assert "no manifest at" in capsys.readouterr().out


def test_main_dispatches_bulk_commands(site: Path) -> None:
    with patch.object(wp_composer, "add_all_installed", return_value=True) as add_all, \
            patch.object(wp_composer, "uninstall_declared", return_value=False) as uninstall:
        assert wp_composer.main([f"--path={site}", "add", "--all"]) == 0
        assert wp_composer.main([f"--path={site}", "themes", "uninstall", "--dev"]) == 1

    assert add_all.call_args.args[1].include_all is True
    assert uninstall.call_args.args[1] == "theme"
    assert uninstall.call_args.args[2].dev is True


def test_main_run_passes_wp_flags(site: Path) -> None:
    with patch.object(commands, "wp_cmd", return_value=True) as wp:
        code = wp_composer.main(
            [f"--path={site}", "run", "plugin", "install", "hello-dolly", "--activate"]
        )
    assert code == 0
    wp.assert_called_once_with(str(site), ["plugin", "install", "hello-dolly", "--activate"])
    saved = json.loads((site / "composer.json").read_text(encoding="utf-8"))
    assert saved == {"require": {"wpackagist-plugin/hello-dolly": "*"}}

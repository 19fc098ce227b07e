"""Tests del provider opkg con run_command parcheado."""

from pathlib import Path
from unittest.mock import patch

from vpnkit.providers.opkg import (
    OpkgPackageManager,
    parse_architectures,
    parse_installed,
    primary_architecture,
)

ARCHS = "arch all 1\narch noarch 1\narch aarch64_cortex-a53 10\n"


def test_parse_installed():
    output = "kmod-amneziawg - 1.0.20241112-r1\namneziawg-tools - 1.0.20241018-r1\n\n"
    assert parse_installed(output) == {"kmod-amneziawg", "amneziawg-tools"}


def test_parse_architectures_skips_garbage():
    output = ARCHS + "arch broken x\nsomething else\n"
    assert parse_architectures(output) == [("all", 1), ("noarch", 1), ("aarch64_cortex-a53", 10)]


def test_primary_architecture():
    assert primary_architecture(parse_architectures(ARCHS)) == "aarch64_cortex-a53"
    assert primary_architecture([("a", 10), ("b", 10)]) == "a"
    assert primary_architecture([]) == ""


def test_is_installed():
    with patch("vpnkit.providers.opkg.run_command", return_value=(True, "jq - 1.7-1\n", "")):
        opkg = OpkgPackageManager()
        assert opkg.is_installed("jq")
        assert not opkg.is_installed("kmod-amneziawg")


def test_install_returns_diagnostic():
    result = (False, "Installing kmod-amneziawg", "Collected errors:\n * cannot find dependency kernel")
    with patch("vpnkit.providers.opkg.run_command", return_value=result) as run:
        ok, detail = OpkgPackageManager().install("kmod-amneziawg")

    run.assert_called_once_with(["opkg", "install", "kmod-amneziawg"])
    assert not ok
    assert detail.startswith("Collected errors:")
    assert "Installing kmod-amneziawg" in detail


def test_install_from_file_force():
    with patch("vpnkit.providers.opkg.run_command", return_value=(True, "", "")) as run:
        OpkgPackageManager().install_from_file(Path("/tmp/a.ipk"), force_dependencies=True)
    run.assert_called_once_with(["opkg", "install", "/tmp/a.ipk", "--force-depends"])


def test_update_detects_failed_feed():
    result = (True, "Downloading ...\n * opkg_download: Failed to download https://downloads/...", "")
    with patch("vpnkit.providers.opkg.run_command", return_value=result):
        ok, detail = OpkgPackageManager().update()
    assert not ok
    assert "Failed to download" in detail


def test_arch_conf_path(tmp_path):
    opkg = OpkgPackageManager(etc_dir=tmp_path)
    assert opkg.arch_conf_path() == tmp_path / "opkg" / "arch.conf"

    (tmp_path / "opkg.conf").write_text("dest root /\narch all 1\n")
    assert opkg.arch_conf_path() == tmp_path / "opkg.conf"


def test_add_architecture(tmp_path):
    opkg = OpkgPackageManager(etc_dir=tmp_path)
    with patch("vpnkit.providers.opkg.run_command", return_value=(True, "", "")) as run:
        conf = opkg.add_architecture("aarch64_cortex-a53", 200)

    assert conf == tmp_path / "opkg" / "arch.conf"
    assert conf.read_text() == "arch aarch64_cortex-a53 200\n"
    run.assert_called_once_with(["opkg", "update"])

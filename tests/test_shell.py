"""Tests de utilidades de shell."""

import pytest

from vpnkit.providers.shell import diagnostic, mask_sensitive_data, run_command


@pytest.mark.parametrize(
    "text, hidden",
    [
        ("fatal: https://ghp_abcdefghijklmnopqrstuvwxyz@github.com/o/r.git", "ghp_abcdefghijklmnopqrstuvwxyz"),
        ("token github_pat_11ABCDEFGHIJKLMNOPQRSTUV_xyz", "11ABCDEFGHIJKLMNOPQRSTUV_xyz"),
        ("gho_0123456789abcdefghijKLMN leaked", "0123456789abcdefghijKLMN"),
    ],
)
def test_mask_sensitive_data(text, hidden):
    masked = mask_sensitive_data(text)
    assert hidden not in masked
    assert "****" in masked


def test_mask_leaves_plain_urls():
    text = "Cloning into 'docker-sing-box'... https://github.com/o/r.git"
    assert mask_sensitive_data(text) == text


def test_diagnostic_prefers_stderr_first():
    assert diagnostic(" out \n", "err\n") == "err\nout"
    assert diagnostic("", "  ") == ""


def test_run_command_missing_binary():
    ok, stdout, stderr = run_command(["definitely-not-a-real-command-vpnkit"])
    assert not ok
    assert stdout == ""
    assert "no encontrado" in stderr

"""Tests del bootstrap de servidores Docker (sing-box / OpenVPN)."""

from pathlib import Path
from unittest.mock import patch

import pytest

from tests.conftest import FakePackageManager, FakePrompter, by_name
from vpnkit.core.errors import Cancelled, ResourceFailed, RunAborted, SystemicError
from vpnkit.core.models import AcquisitionMethod, FinalState
from vpnkit.providers.system import (
    AptPackageManager,
    SystemPackageManager,
    YumPackageManager,
    is_wsl2,
    system_package_manager,
)
from vpnkit.servers.bootstrap import (
    ServerFlavour,
    bootstrap_server,
    check_environment,
    compose_spec,
    default_repo,
    prerequisite_specs,
)
from vpnkit.servers.compose import ComposePluginManager
from vpnkit.servers.repository import CloneError, clone_repository

REPO = "https://github.com/konstantin-uvarov/docker-sing-box.git"


@pytest.mark.parametrize(
    "manager, gettext, docker",
    [("apt", "gettext-base", "docker.io"), ("yum", "gettext", "docker")],
)
def test_prerequisites_per_manager(manager, gettext, docker):
    names = [s.name for s in prerequisite_specs(manager)]
    assert names == ["git", "make", "curl", gettext, "jq", docker]


def test_compose_spec_with_binary(settings):
    spec = compose_spec(settings, "Linux", "x86_64")
    assert [c.method for c in spec.source_candidates] == [
        AcquisitionMethod.REPOSITORY_INSTALL,
        AcquisitionMethod.DIRECT_DOWNLOAD,
    ]
    assert spec.source_candidates[1].url.endswith("/v2.32.4/docker-compose-linux-x86_64")


def test_compose_spec_unknown_arch(settings):
    spec = compose_spec(settings, "Linux", "s390x")
    assert [c.method for c in spec.source_candidates] == [AcquisitionMethod.REPOSITORY_INSTALL]


def test_default_repo(settings):
    assert default_repo(ServerFlavour.SING_BOX, settings) == settings.sing_box_repo
    assert default_repo(ServerFlavour.OPEN_VPN, settings).endswith("docker-open-vpn.git")


def test_is_wsl2(tmp_path):
    proc = tmp_path / "version"
    proc.write_text("Linux version 5.15.153.1-microsoft-standard-WSL2")
    assert is_wsl2(proc, environ={})
    assert is_wsl2(tmp_path / "missing", environ={"WSL_DISTRO_NAME": "Ubuntu"})
    proc.write_text("Linux version 6.1.0-18-amd64")
    assert not is_wsl2(proc, environ={})


def test_wsl_decline_is_cancelled():
    with patch("vpnkit.servers.bootstrap.is_wsl2", return_value=True):
        with pytest.raises(Cancelled) as exc:
            check_environment(FakePrompter(confirms={"Continuar": False}))
    assert exc.value.exit_code == 0


def test_system_package_manager_detection():
    with patch("vpnkit.providers.system.detect_package_manager", return_value="yum"):
        assert isinstance(system_package_manager(), YumPackageManager)
    with patch("vpnkit.providers.system.detect_package_manager", return_value=None):
        with pytest.raises(SystemicError):
            system_package_manager()


def test_incomplete_package_manager_cannot_be_built():
    class QueryOnly(SystemPackageManager):
        def _query(self, name):
            return False

    with pytest.raises(TypeError):
        SystemPackageManager()
    with pytest.raises(TypeError):
        QueryOnly()


class TestAptPackageManager:
    def test_probe_short_circuits_query(self):
        apt = AptPackageManager(probes={"docker.io": "docker"})
        with patch("vpnkit.providers.system.which", return_value=True), patch(
            "vpnkit.providers.system.run_command"
        ) as run:
            assert apt.is_installed("docker.io")
        run.assert_not_called()

    def test_install_updates_once_with_sudo(self):
        apt = AptPackageManager(use_sudo=True)
        with patch("vpnkit.providers.system.run_command", return_value=(True, "", "")) as run:
            apt.install("git")
            apt.install("jq")
        commands = [c.args[0] for c in run.call_args_list]
        assert commands == [
            ["sudo", "apt-get", "update", "-qq"],
            ["sudo", "apt-get", "install", "-y", "git"],
            ["sudo", "apt-get", "install", "-y", "jq"],
        ]

    def test_query_status(self):
        apt = AptPackageManager()
        with patch("vpnkit.providers.system.run_command", return_value=(True, "install ok installed", "")):
            assert apt.is_installed("make")


class TestComposePluginManager:
    def test_binary_installed_into_plugin_dir(self, tmp_path):
        manager = ComposePluginManager(FakePackageManager(), tmp_path / "cli-plugins")
        with patch("vpnkit.servers.compose.run_command", return_value=(True, "", "")) as run, patch(
            "vpnkit.servers.compose.compose_available", return_value=True
        ):
            ok, _ = manager.install_from_file(tmp_path / "docker-compose-linux-x86_64")
        assert ok
        assert run.call_args.args[0] == [
            "install",
            "-D",
            "-m",
            "0755",
            str(tmp_path / "docker-compose-linux-x86_64"),
            str(tmp_path / "cli-plugins" / "docker-compose"),
        ]

    def test_package_installed_but_not_responding(self, tmp_path):
        manager = ComposePluginManager(FakePackageManager(), tmp_path)
        with patch("vpnkit.servers.compose.compose_available", return_value=False):
            ok, detail = manager.install("docker-compose-plugin")
        assert not ok
        assert "no responde" in detail


class TestCloneRepository:
    def test_existing_directory_reused(self, tmp_path):
        (tmp_path / "docker-sing-box").mkdir()
        with patch("vpnkit.servers.repository.git_clone") as clone:
            assert clone_repository(REPO, FakePrompter(), tmp_path) == tmp_path / "docker-sing-box"
        clone.assert_not_called()

    def test_anonymous_clone(self, tmp_path):
        with patch("vpnkit.servers.repository.git_clone", return_value=(True, "")) as clone:
            clone_repository(REPO, FakePrompter(), tmp_path)
        clone.assert_called_once_with(REPO, cwd=tmp_path)

    def test_token_retry_resets_remote(self, tmp_path):
        prompter = FakePrompter(answers={"Token": "ghp_secret"})
        results = [(False, "fatal: Authentication failed"), (True, "")]
        with patch("vpnkit.servers.repository.git_clone", side_effect=results) as clone, patch(
            "vpnkit.servers.repository.run_command", return_value=(True, "", "")
        ) as run:
            target = clone_repository(REPO, prompter, tmp_path)

        assert clone.call_args_list[1].args[0] == "https://ghp_secret@github.com/konstantin-uvarov/docker-sing-box.git"
        run.assert_called_once_with(["git", "-C", str(target), "remote", "set-url", "origin", REPO])

    def test_blank_token_aborts(self, tmp_path):
        with patch("vpnkit.servers.repository.git_clone", return_value=(False, "fatal")):
            with pytest.raises(RunAborted):
                clone_repository(REPO, FakePrompter(), tmp_path)

    def test_token_clone_failure_hides_token(self, tmp_path):
        prompter = FakePrompter(answers={"Token": "plain-token"})
        output = "fatal: unable to access 'https://plain-token@github.com/x': 403"
        with patch("vpnkit.servers.repository.git_clone", side_effect=[(False, "fatal"), (False, output)]):
            with pytest.raises(CloneError) as exc:
                clone_repository(REPO, prompter, tmp_path)
        assert "plain-token" not in str(exc.value)


class TestBootstrapServer:
    @pytest.fixture(autouse=True)
    def environment(self):
        with patch("vpnkit.servers.bootstrap.check_privileges", return_value=False), patch(
            "vpnkit.servers.bootstrap.is_wsl2", return_value=False
        ), patch("vpnkit.servers.bootstrap.ensure_docker_running") as docker, patch(
            "vpnkit.servers.bootstrap.run_make_start"
        ) as make, patch(
            "vpnkit.servers.bootstrap.clone_repository", side_effect=lambda url, p, w: Path(w) / "repo"
        ) as clone:
            self.docker, self.make, self.clone = docker, make, clone
            yield

    def test_full_flow(self, settings, fetcher, tmp_path):
        packages = FakePackageManager(installed={"git", "make"})
        prompter = FakePrompter()
        with patch("vpnkit.servers.compose.compose_available", return_value=True):
            report = bootstrap_server(
                ServerFlavour.SING_BOX, settings, prompter, workdir=tmp_path, packages=packages, fetcher=fetcher
            )

        assert report.ok
        assert packages.install_calls == ["curl", "gettext-base", "jq", "docker.io"]
        assert by_name(report)["docker-compose-plugin"].final_state == FinalState.ALREADY_PRESENT
        self.docker.assert_called_once_with(False, False)
        assert self.clone.call_args.args[0] == settings.sing_box_repo
        self.make.assert_called_once_with(tmp_path / "repo")

    @pytest.mark.parametrize("flavour, expected", [(ServerFlavour.OPEN_VPN, True), (ServerFlavour.SING_BOX, False)])
    def test_next_steps_per_flavour(self, settings, fetcher, tmp_path, flavour, expected):
        with patch("vpnkit.servers.compose.compose_available", return_value=True), patch(
            "vpnkit.servers.bootstrap.console"
        ) as console:
            bootstrap_server(
                flavour, settings, FakePrompter(), workdir=tmp_path, packages=FakePackageManager(), fetcher=fetcher
            )

        printed = " ".join(str(c.args[0]) for c in console.print.call_args_list)
        assert ("make create-client CLIENT_NAME=" in printed) is expected
        assert ("make status" in printed) is expected

    def test_abort_before_clone(self, settings, fetcher, tmp_path):
        packages = FakePackageManager(install_results={"docker.io": (False, "E: Unable to locate package docker.io")})
        with pytest.raises(ResourceFailed):
            bootstrap_server(
                ServerFlavour.OPEN_VPN, settings, FakePrompter(), workdir=tmp_path, packages=packages, fetcher=fetcher
            )
        self.docker.assert_not_called()
        self.clone.assert_not_called()

    def test_custom_repository_url(self, settings, fetcher, tmp_path):
        prompter = FakePrompter(answers={"URL del repositorio": "https://github.com/me/fork.git"})
        with patch("vpnkit.servers.compose.compose_available", return_value=True):
            bootstrap_server(
                ServerFlavour.OPEN_VPN, settings, prompter, workdir=tmp_path, packages=FakePackageManager(), fetcher=fetcher
            )
        assert self.clone.call_args.args[0] == "https://github.com/me/fork.git"

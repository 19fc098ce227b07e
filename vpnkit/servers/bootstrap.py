"""
Bootstrap de un servidor VPN en Docker (sing-box u OpenVPN) sobre una VM Linux recién creada
"""

import platform
from enum import Enum
from pathlib import Path
from typing import List, Optional

from vpnkit.core.contracts import Fetcher, Prompter
from vpnkit.core.errors import Cancelled, EnvironmentalError, VpnkitError
from vpnkit.core.models import AcquisitionMethod, ResourceSpec, SourceCandidate, package_spec
from vpnkit.core.naming import compose_binary_url
from vpnkit.core.orchestrator import Orchestrator, RunReport
from vpnkit.core.reconciler import Reconciler
from vpnkit.core.settings import Settings
from vpnkit.output import console, log_info, log_ok, log_warn, notify, print_report
from vpnkit.providers.fetch import RequestsFetcher
from vpnkit.providers.shell import run_command, which
from vpnkit.providers.system import (
    SystemPackageManager,
    check_sudo,
    is_root,
    is_wsl2,
    system_package_manager,
)
from vpnkit.servers.compose import ComposePluginManager
from vpnkit.servers.repository import clone_repository

COMPOSE_PACKAGE = "docker-compose-plugin"


class ServerFlavour(str, Enum):
    SING_BOX = "sing-box"
    OPEN_VPN = "open-vpn"


class StartError(VpnkitError):
    """`make start` falló en el repositorio clonado."""

    category = "make"


def default_repo(flavour: ServerFlavour, settings: Settings) -> str:
    if flavour == ServerFlavour.SING_BOX:
        return settings.sing_box_repo
    return settings.open_vpn_repo


def prerequisite_packages(manager: str) -> List[tuple]:
    """(paquete, comando que lo delata) según apt/yum."""
    return [
        ("git", "git"),
        ("make", "make"),
        ("curl", "curl"),
        ("gettext-base" if manager == "apt" else "gettext", "envsubst"),
        ("jq", "jq"),
        ("docker.io" if manager == "apt" else "docker", "docker"),
    ]


def prerequisite_specs(manager: str) -> List[ResourceSpec]:
    repo = [SourceCandidate(method=AcquisitionMethod.REPOSITORY_INSTALL)]
    return [package_spec(name, list(repo)) for name, _ in prerequisite_packages(manager)]


def compose_spec(settings: Settings, os_name: Optional[str] = None, machine: Optional[str] = None) -> ResourceSpec:
    """docker-compose-plugin: repositorio y, si hay binario para la arquitectura, descarga directa."""
    candidates = [SourceCandidate(method=AcquisitionMethod.REPOSITORY_INSTALL)]
    url = compose_binary_url(
        settings.compose_version,
        os_name or platform.system(),
        machine or platform.machine(),
    )
    if url:
        candidates.append(SourceCandidate(method=AcquisitionMethod.DIRECT_DOWNLOAD, url=url))
    else:
        log_warn(f"Sin binario de docker compose para la arquitectura {machine or platform.machine()}")
    return package_spec(COMPOSE_PACKAGE, candidates)


def check_privileges() -> bool:
    """Retorna si hay que usar sudo."""
    log_info("Comprobando privilegios sudo...")
    if is_root():
        log_warn("Ejecutando como root. Considera un usuario normal con sudo.")
        return False
    use_sudo = check_sudo()
    log_ok("Privilegios sudo confirmados")
    return use_sudo


def check_environment(prompter: Prompter) -> bool:
    """Avisa de las limitaciones de WSL2. Retorna si es WSL2."""
    log_info("Detectando entorno...")
    wsl = is_wsl2()
    if wsl:
        log_warn("Entorno WSL2 detectado")
        log_warn("Limitaciones:")
        log_warn("  - La IP pública detectada puede ser la IP interna de WSL2")
        log_warn("  - La VPN no será accesible desde fuera de esta máquina")
        log_warn("  - Para producción usa una VM en la nube")
        if not prompter.confirm("¿Continuar de todos modos?", default=False):
            raise Cancelled("Abortado. Usa una VM en la nube.")
    return wsl


def ensure_docker_running(use_sudo: bool, wsl: bool) -> None:
    if which("systemctl") and not wsl:
        log_info("Habilitando el servicio Docker...")
        command = ["systemctl", "enable", "--now", "docker"]
        run_command(["sudo"] + command if use_sudo else command)
    elif wsl:
        log_info("WSL2: se asume integración con Docker Desktop")

    ok, _, _ = run_command(["docker", "info"])
    if not ok and use_sudo:
        ok, _, _ = run_command(["sudo", "docker", "info"])
    if ok:
        log_ok("Docker está en ejecución")
        return
    if wsl:
        raise EnvironmentalError(
            "Docker no responde. Asegúrate de que Docker Desktop está en ejecución "
            "(Settings > Resources > WSL Integration)"
        )
    raise EnvironmentalError("La instalación de Docker falló o el daemon no responde")


OPEN_VPN_NEXT_STEPS = (
    "Copia el archivo .ovpn del cliente a tu dispositivo",
    "Más clientes: make create-client CLIENT_NAME=nombre",
    "Logs: make logs",
    "Estado: make status",
)


def print_next_steps(flavour: ServerFlavour) -> None:
    if flavour != ServerFlavour.OPEN_VPN:
        return
    console.print("\nSiguientes pasos:")
    for step in OPEN_VPN_NEXT_STEPS:
        console.print(f"  - {step}", markup=False, highlight=False)


def run_make_start(target: Path) -> None:
    log_info(f"Ejecutando 'make start' en {target.name}...")
    ok, _, stderr = run_command(["make", "start"], cwd=target, capture_output=False)
    if not ok:
        raise StartError(f"'make start' falló en {target} {stderr}".strip())


def bootstrap_server(
    flavour: ServerFlavour,
    settings: Settings,
    prompter: Prompter,
    workdir: Optional[Path] = None,
    packages: Optional[SystemPackageManager] = None,
    fetcher: Optional[Fetcher] = None,
) -> RunReport:
    """Prerrequisitos → Docker → Compose → clonado → make start."""
    use_sudo = check_privileges()
    wsl = check_environment(prompter)

    if packages is None:
        probes = {name: command for name, command in prerequisite_packages("apt") + prerequisite_packages("yum")}
        packages = system_package_manager(use_sudo, probes)
    log_ok(f"Gestor de paquetes: {packages.name}")

    fetcher = fetcher if fetcher is not None else RequestsFetcher(timeout=settings.http_timeout)
    report = RunReport()
    system = Orchestrator(
        Reconciler(packages=packages, prompter=prompter, scratch_dir=settings.scratch_dir, notify=notify),
        on_failure=settings.on_failure,
        report=report,
    )
    compose = Orchestrator(
        Reconciler(
            packages=ComposePluginManager(packages, settings.compose_plugin_dir, use_sudo),
            fetcher=fetcher,
            prompter=prompter,
            scratch_dir=settings.scratch_dir,
            notify=notify,
        ),
        on_failure=settings.on_failure,
        report=report,
    )

    try:
        system.run(prerequisite_specs(packages.name))
        ensure_docker_running(use_sudo, wsl)
        compose.apply(compose_spec(settings))
    finally:
        print_report(report)

    repo_url = prompter.ask("URL del repositorio", default=default_repo(flavour, settings))
    target = clone_repository(repo_url, prompter, workdir or Path.cwd())
    run_make_start(target)

    log_ok("¡Bootstrap completo!")
    print_next_steps(flavour)
    return report

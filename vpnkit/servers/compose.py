"""
Plugin Docker Compose como "paquete": instalado si `docker compose version` responde.
"""

from pathlib import Path
from typing import Tuple

from vpnkit.providers.shell import diagnostic, run_command
from vpnkit.providers.system import SystemPackageManager

NOT_RESPONDING = "docker compose no responde después de la instalación"


def compose_available() -> bool:
    """docker compose, directo o con sudo (Docker Desktop, grupo docker...)."""
    for command in (["docker", "compose", "version"], ["sudo", "-n", "docker", "compose", "version"]):
        ok, _, _ = run_command(command)
        if ok:
            return True
    return False


class ComposePluginManager:
    """
    PackageManager para el plugin compose:
    - install: paquete docker-compose-plugin del sistema
    - install_from_file: copia el binario descargado al directorio de plugins del CLI
    """

    def __init__(self, system: SystemPackageManager, plugin_dir: Path, use_sudo: bool = False):
        self.system = system
        self.plugin_dir = Path(plugin_dir)
        self.use_sudo = use_sudo

    def is_installed(self, name: str) -> bool:
        return compose_available()

    def install(self, name: str) -> Tuple[bool, str]:
        ok, detail = self.system.install(name)
        if not ok:
            return False, detail
        if not compose_available():
            return False, detail or NOT_RESPONDING
        return True, detail

    def install_from_file(self, path: Path, force_dependencies: bool = False) -> Tuple[bool, str]:
        target = self.plugin_dir / "docker-compose"
        command = ["install", "-D", "-m", "0755", str(path), str(target)]
        if self.use_sudo:
            command.insert(0, "sudo")
        ok, stdout, stderr = run_command(command)
        if not ok:
            return False, diagnostic(stdout, stderr)
        if not compose_available():
            return False, NOT_RESPONDING
        return True, f"Instalado en {target}"

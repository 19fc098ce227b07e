"""
Provider de sistema (Linux genérico): apt / yum, sudo y detección de entorno
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from vpnkit.core.errors import EnvironmentalError, SystemicError
from vpnkit.providers.shell import diagnostic, run_command, which


def is_wsl2(proc_version: Path = Path("/proc/version"), environ: Optional[Dict[str, str]] = None) -> bool:
    """Detecta WSL2 por /proc/version o WSL_DISTRO_NAME."""
    environ = os.environ if environ is None else environ
    if environ.get("WSL_DISTRO_NAME"):
        return True
    try:
        return "microsoft" in proc_version.read_text().lower()
    except OSError:
        return False


def is_root() -> bool:
    return os.geteuid() == 0


def check_sudo() -> bool:
    """
    Verifica privilegios.

    Returns:
        True si hace falta anteponer sudo, False si ya somos root

    Raises:
        EnvironmentalError si no hay sudo o no se pueden obtener privilegios
    """
    if is_root():
        return False
    if not which("sudo"):
        raise EnvironmentalError("sudo no está instalado. Instala sudo o ejecuta como root.")
    # Puede pedir contraseña: no se captura la salida
    ok, _, _ = run_command(["sudo", "-v"], capture_output=False)
    if not ok:
        raise EnvironmentalError("No se pudieron obtener privilegios sudo. Revisa la configuración de sudoers.")
    return True


def detect_package_manager() -> Optional[str]:
    if which("apt-get"):
        return "apt"
    if which("yum"):
        return "yum"
    return None


class SystemPackageManager(ABC):
    """
    Base para apt/yum. `probes` mapea paquete → comando: si el comando ya está
    en PATH el paquete se da por instalado (git, jq, docker...).
    """

    name = "system"

    def __init__(self, use_sudo: bool = False, probes: Optional[Dict[str, str]] = None):
        self.use_sudo = use_sudo
        self.probes = dict(probes or {})

    def _cmd(self, *args: str) -> List[str]:
        prefix = ["sudo"] if self.use_sudo else []
        return prefix + list(args)

    def _run(self, *args: str) -> Tuple[bool, str]:
        ok, stdout, stderr = run_command(self._cmd(*args))
        return ok, diagnostic(stdout, stderr)

    def is_installed(self, name: str) -> bool:
        probe = self.probes.get(name)
        if probe and which(probe):
            return True
        return self._query(name)

    @abstractmethod
    def _query(self, name: str) -> bool:
        """Consulta al gestor de paquetes si `name` está instalado."""
        pass

    @abstractmethod
    def install(self, name: str) -> Tuple[bool, str]:
        pass

    @abstractmethod
    def install_from_file(self, path: Path, force_dependencies: bool = False) -> Tuple[bool, str]:
        pass


class AptPackageManager(SystemPackageManager):
    name = "apt"

    def __init__(self, use_sudo: bool = False, probes: Optional[Dict[str, str]] = None):
        super().__init__(use_sudo, probes)
        self._updated = False

    def _query(self, name: str) -> bool:
        ok, stdout, _ = run_command(["dpkg-query", "-W", "-f=${Status}", name])
        return ok and "install ok installed" in stdout

    def refresh(self) -> None:
        if not self._updated:
            self._run("apt-get", "update", "-qq")
            self._updated = True

    def install(self, name: str) -> Tuple[bool, str]:
        self.refresh()
        return self._run("apt-get", "install", "-y", name)

    def install_from_file(self, path: Path, force_dependencies: bool = False) -> Tuple[bool, str]:
        if force_dependencies:
            return self._run("dpkg", "-i", "--force-depends", str(path))
        return self._run("apt-get", "install", "-y", str(path))


class YumPackageManager(SystemPackageManager):
    name = "yum"

    def _query(self, name: str) -> bool:
        ok, _, _ = run_command(["rpm", "-q", name])
        return ok

    def install(self, name: str) -> Tuple[bool, str]:
        return self._run("yum", "install", "-y", name)

    def install_from_file(self, path: Path, force_dependencies: bool = False) -> Tuple[bool, str]:
        if force_dependencies:
            return self._run("rpm", "-i", "--nodeps", str(path))
        return self._run("yum", "install", "-y", str(path))


def system_package_manager(
    use_sudo: bool = False,
    probes: Optional[Dict[str, str]] = None,
) -> SystemPackageManager:
    """Gestor de paquetes del sistema; sin apt ni yum → SystemicError."""
    kind = detect_package_manager()
    if kind == "apt":
        return AptPackageManager(use_sudo, probes)
    if kind == "yum":
        return YumPackageManager(use_sudo, probes)
    raise SystemicError("Sistema no soportado: no se encontró apt ni yum")

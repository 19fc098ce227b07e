"""
Provider opkg (OpenWrt): consulta e instalación de paquetes .ipk
"""

from pathlib import Path
from typing import List, Set, Tuple

from vpnkit.providers.shell import diagnostic, run_command, which

OPKG = "opkg"
FAILED_DOWNLOAD_MARKER = "Failed to download"


def parse_installed(output: str) -> Set[str]:
    """`opkg list-installed` → nombres ("kmod-amneziawg - 1.0.2-1" → kmod-amneziawg)."""
    names = set()
    for line in output.splitlines():
        name = line.split(" - ", 1)[0].strip()
        if name:
            names.add(name)
    return names


def parse_architectures(output: str) -> List[Tuple[str, int]]:
    """`opkg print-architecture` → [(arch, prioridad)] en el orden original."""
    archs = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) >= 3 and parts[0] == "arch":
            try:
                archs.append((parts[1], int(parts[2])))
            except ValueError:
                continue
    return archs


def primary_architecture(archs: List[Tuple[str, int]]) -> str:
    """Arquitectura con mayor prioridad; ante empate gana la primera."""
    best, best_priority = "", 0
    for name, priority in archs:
        if priority > best_priority:
            best, best_priority = name, priority
    return best


class OpkgPackageManager:
    """Implementa PackageManager sobre opkg."""

    def __init__(self, etc_dir: Path = Path("/etc")):
        self.etc_dir = Path(etc_dir)

    @staticmethod
    def available() -> bool:
        return which(OPKG)

    def update(self) -> Tuple[bool, str]:
        """`opkg update`; falla también si algún feed no se pudo descargar."""
        ok, stdout, stderr = run_command([OPKG, "update"])
        output = diagnostic(stdout, stderr)
        if FAILED_DOWNLOAD_MARKER in output:
            return False, output
        return ok, output

    def is_installed(self, name: str) -> bool:
        ok, stdout, _ = run_command([OPKG, "list-installed"])
        return ok and name in parse_installed(stdout)

    def install(self, name: str) -> Tuple[bool, str]:
        ok, stdout, stderr = run_command([OPKG, "install", name])
        return ok, diagnostic(stdout, stderr)

    def install_from_file(self, path: Path, force_dependencies: bool = False) -> Tuple[bool, str]:
        command = [OPKG, "install", str(path)]
        if force_dependencies:
            command.append("--force-depends")
        ok, stdout, stderr = run_command(command)
        return ok, diagnostic(stdout, stderr)

    def architectures(self) -> List[Tuple[str, int]]:
        _, stdout, _ = run_command([OPKG, "print-architecture"])
        return parse_architectures(stdout)

    def arch_conf_path(self) -> Path:
        """opkg.conf si ya declara arquitecturas; si no, opkg/arch.conf."""
        main_conf = self.etc_dir / "opkg.conf"
        if main_conf.exists():
            lines = main_conf.read_text().splitlines()
            if any(line.startswith("arch ") for line in lines):
                return main_conf
        return self.etc_dir / "opkg" / "arch.conf"

    def add_architecture(self, arch: str, priority: int) -> Path:
        """Añade `arch <arch> <priority>` a la configuración de opkg y refresca las listas."""
        conf = self.arch_conf_path()
        conf.parent.mkdir(parents=True, exist_ok=True)
        with open(conf, "a") as f:
            f.write(f"arch {arch} {priority}\n")
        run_command([OPKG, "update"])
        return conf

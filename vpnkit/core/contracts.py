"""
Contratos que deben implementar los colaboradores externos.

El core solo define interfaces; la implementación vive en vpnkit/providers/*.
"""

from pathlib import Path
from typing import List, Optional, Protocol, Tuple


class PackageManager(Protocol):
    """Consulta/instalación de paquetes (opkg, apt, yum)."""

    def is_installed(self, name: str) -> bool:
        ...

    def install(self, name: str) -> Tuple[bool, str]:
        """Instala desde repositorio. Devuelve (success, diagnóstico de la herramienta)."""
        ...

    def install_from_file(self, path: Path, force_dependencies: bool = False) -> Tuple[bool, str]:
        """Instala desde un archivo local; force_dependencies omite la verificación de dependencias."""
        ...


class ConfigStore(Protocol):
    """
    Store de configuración con claves estilo uci:
    `paquete.seccion` (valor = tipo de sección) y `paquete.seccion.opcion`.
    """

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def list_keys_matching(self, pattern: str) -> List[str]:
        """Claves que cumplen un patrón glob (fnmatch)."""
        ...

    def commit(self) -> None:
        ...


class Fetcher(Protocol):
    def download(self, url: str, destination: Path) -> bool:
        ...


class Prompter(Protocol):
    """Entrada interactiva; una implementación sin terminal usa solo defaults."""

    def ask(self, prompt: str, default: str = "", password: bool = False) -> str:
        ...

    def confirm(self, prompt: str, default: bool = False) -> bool:
        ...

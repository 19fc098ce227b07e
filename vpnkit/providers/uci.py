"""
Provider uci (OpenWrt): config store sobre /etc/config vía la CLI `uci`.

Las secciones anónimas se listan con `uci -X show`, que expone su nombre
real (cfgXXXXXX) en lugar de la notación @tipo[n], estable entre borrados.
"""

from fnmatch import fnmatchcase
from typing import Dict, List, Optional, Set

from vpnkit.core.errors import ConfigStoreError
from vpnkit.providers.shell import diagnostic, run_command

UCI = "uci"


def parse_show(output: str) -> Dict[str, str]:
    """
    Salida de `uci show` → {clave: valor}.
    network.awg0.proto='amneziawg' → {"network.awg0.proto": "amneziawg"}
    """
    entries: Dict[str, str] = {}
    for line in output.splitlines():
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == "'":
            value = value[1:-1]
        entries[key.strip()] = value
    return entries


class UciConfigStore:
    """Implementa ConfigStore sobre uci. commit() solo toca los paquetes modificados."""

    def __init__(self):
        self._touched: Set[str] = set()

    @staticmethod
    def _package(key: str) -> str:
        return key.split(".", 1)[0]

    def get(self, key: str) -> Optional[str]:
        ok, stdout, _ = run_command([UCI, "-q", "get", key])
        if not ok:
            return None
        return stdout.strip()

    def set(self, key: str, value: str) -> None:
        ok, stdout, stderr = run_command([UCI, "set", f"{key}={value}"])
        if not ok:
            raise ConfigStoreError(f"uci set {key} falló: {diagnostic(stdout, stderr)}")
        self._touched.add(self._package(key))

    def delete(self, key: str) -> None:
        ok, stdout, stderr = run_command([UCI, "-q", "delete", key])
        if not ok:
            raise ConfigStoreError(f"uci delete {key} falló: {diagnostic(stdout, stderr)}")
        self._touched.add(self._package(key))

    def show(self, package: Optional[str] = None) -> Dict[str, str]:
        command = [UCI, "-X", "show"]
        if package:
            command.append(package)
        ok, stdout, _ = run_command(command)
        if not ok:
            return {}
        return parse_show(stdout)

    def list_keys_matching(self, pattern: str) -> List[str]:
        package = self._package(pattern)
        if any(c in package for c in "*?["):
            package = None
        return [key for key in self.show(package) if fnmatchcase(key, pattern)]

    def commit(self) -> None:
        for package in sorted(self._touched):
            ok, stdout, stderr = run_command([UCI, "commit", package])
            if not ok:
                raise ConfigStoreError(f"uci commit {package} falló: {diagnostic(stdout, stderr)}")
        self._touched.clear()

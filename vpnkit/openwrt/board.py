"""
Detección de la placa OpenWrt: arquitectura de paquetes, target, subtarget y versión.
"""

import json
from typing import List, Optional, Tuple

from pydantic import BaseModel

from vpnkit.core.errors import EnvironmentalError
from vpnkit.core.naming import package_arch
from vpnkit.providers.opkg import primary_architecture
from vpnkit.providers.shell import run_command


class BoardInfo(BaseModel):
    arch: str
    target: str
    subtarget: str
    version: str

    @property
    def full_arch(self) -> str:
        return package_arch(self.arch, self.target, self.subtarget)


def parse_board(output: str) -> Tuple[str, str, str]:
    """
    JSON de `ubus call system board` → (target, subtarget, version).
    release.target = "mediatek/filogic", release.version = "24.10.3"
    """
    try:
        data = json.loads(output)
    except ValueError as e:
        raise EnvironmentalError(f"Respuesta inválida de ubus: {e}")
    release = data.get("release") or {}
    target_full = release.get("target") or ""
    version = release.get("version") or ""
    if "/" not in target_full or not version:
        raise EnvironmentalError(f"No se pudo determinar target/versión de la placa: {target_full!r} {version!r}")
    target, subtarget = target_full.split("/", 1)
    return target, subtarget, version


def detect_board(architectures: List[Tuple[str, int]], board_json: Optional[str] = None) -> BoardInfo:
    """
    Combina `opkg print-architecture` (ya parseado) con `ubus call system board`.
    `board_json` permite inyectar la salida de ubus.
    """
    arch = primary_architecture(architectures)
    if not arch:
        raise EnvironmentalError("No se pudo determinar la arquitectura de paquetes (opkg print-architecture)")

    if board_json is None:
        ok, stdout, stderr = run_command(["ubus", "call", "system", "board"])
        if not ok:
            raise EnvironmentalError(f"ubus call system board falló: {stderr.strip() or stdout.strip()}")
        board_json = stdout

    target, subtarget, version = parse_board(board_json)
    return BoardInfo(arch=arch, target=target, subtarget=subtarget, version=version)

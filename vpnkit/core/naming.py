"""
Convenciones de nombres (lógica pura).

- Nombres de paquetes .ipk de AmneziaWG a partir de (arch, target, subtarget, version)
- Selección de versión de protocolo AWG según la versión de OpenWrt
- Siguiente nombre libre con sufijo numérico (awg0, awg1, ...)
"""

import re
from typing import Iterable, Optional, Tuple

AWG_V1 = "1.0"
AWG_V2 = "2.0"

LUCI_APP = "luci-app-amneziawg"
LUCI_PROTO = "luci-proto-amneziawg"

_VERSION_RE = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?")
_TRAILING_DIGITS = re.compile(r"\d+$")


def parse_version(version: str) -> Optional[Tuple[int, int, int]]:
    """
    "24.10.3" → (24, 10, 3); "23.05.6-rc1" → (23, 5, 6).
    Retorna None si no empieza por un número (ej: SNAPSHOT).
    """
    m = _VERSION_RE.match((version or "").strip())
    if not m:
        return None
    return tuple(int(g) if g else 0 for g in m.groups())  # type: ignore[return-value]


def awg_protocol_version(openwrt_version: str) -> str:
    """
    AWG 2.0 a partir de 24.10.3 (y en la rama 23.05 desde 23.05.6); si no, 1.0.
    Versiones no numéricas (SNAPSHOT) se consideran las más nuevas.
    """
    parsed = parse_version(openwrt_version)
    if parsed is None:
        return AWG_V2
    major, minor, patch = parsed
    if (
        major > 24
        or (major == 24 and minor > 10)
        or (major == 24 and minor == 10 and patch >= 3)
        or (major == 23 and minor == 5 and patch >= 6)
    ):
        return AWG_V2
    return AWG_V1


def luci_package_name(openwrt_version: str) -> str:
    """Paquete LuCI que corresponde a la versión de protocolo."""
    if awg_protocol_version(openwrt_version) == AWG_V2:
        return LUCI_PROTO
    return LUCI_APP


def package_arch(arch: str, target: str, subtarget: str) -> str:
    """Arquitectura completa con la que se publican los .ipk (ej: mipsel_24kc_ramips_mt7621)."""
    return f"{arch}_{target}_{subtarget}"


def package_filename(package: str, arch: str, target: str, subtarget: str, version: str) -> str:
    """kmod-amneziawg_v24.10.3_aarch64_cortex-a53_mediatek_filogic.ipk"""
    return f"{package}_v{version}_{package_arch(arch, target, subtarget)}.ipk"


def release_url(base_url: str, version: str, filename: str) -> str:
    """URL de descarga en GitHub releases: <base>v<version>/<filename>."""
    base = base_url if base_url.endswith("/") else base_url + "/"
    return f"{base}v{version}/{filename}"


def split_suffix(name: str) -> str:
    """Base sin sufijo numérico final: awg0 → awg, wan → wan."""
    return _TRAILING_DIGITS.sub("", name) or name


def next_free_name(name: str, taken: Iterable[str]) -> str:
    """
    Primer `<base><i>` (i = 0, 1, ...) que no esté en `taken`.
    Con taken = {awg0, awg1, awg2} y name = awg0 → awg3.
    """
    used = set(taken)
    base = split_suffix(name)
    i = 0
    while f"{base}{i}" in used:
        i += 1
    return f"{base}{i}"


def repo_dir_name(repo_url: str) -> str:
    """Directorio que crea `git clone`: basename sin .git."""
    tail = repo_url.rstrip("/").rsplit("/", 1)[-1]
    if tail.endswith(".git"):
        tail = tail[: -len(".git")]
    return tail


def token_clone_url(repo_url: str, token: str) -> str:
    """https://github.com/o/r.git → https://<token>@github.com/o/r.git"""
    cleaned = re.sub(r"^https?://", "", repo_url)
    return f"https://{token}@{cleaned}"


# uname -m → sufijo de los binarios de docker compose
_COMPOSE_ARCHES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "armv7l": "armv7",
}


def compose_binary_url(version: str, os_name: str, machine: str) -> Optional[str]:
    """
    Binario estático del plugin docker compose en GitHub releases.
    Retorna None si la arquitectura no tiene binario publicado.
    """
    arch = _COMPOSE_ARCHES.get(machine.lower())
    if arch is None:
        return None
    return (
        f"https://github.com/docker/compose/releases/download/"
        f"{version}/docker-compose-{os_name.lower()}-{arch}"
    )

"""
Instalador de Zashboard (UI estática para la clash_api de sing-box) en OpenWrt
"""

import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import Optional

from vpnkit.core.errors import EnvironmentalError, VpnkitError
from vpnkit.core.settings import Settings
from vpnkit.output import console, log_info, log_ok
from vpnkit.providers.fetch import RequestsFetcher
from vpnkit.providers.opkg import OpkgPackageManager


class ZashboardError(VpnkitError):
    """La descarga o la extracción de Zashboard falló."""

    category = "zashboard"


def dist_url(repo: str, tag: str) -> str:
    return f"https://github.com/{repo}/releases/download/{tag}/dist.zip"


def extract_dist(archive: Path, install_dir: Path) -> None:
    """Extrae dist.zip en install_dir y exige un index.html en la raíz."""
    try:
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(install_dir)
    except zipfile.BadZipFile as e:
        raise ZashboardError(f"dist.zip inválido: {e}")
    if not (install_dir / "index.html").is_file():
        raise ZashboardError("Instalación fallida: no se encontró index.html en los archivos extraídos")


def clash_api_hint(install_dir: Path) -> str:
    return (
        "{\n"
        '  "experimental": {\n'
        '    "clash_api": {\n'
        '      "external_controller": "0.0.0.0:9090",\n'
        f'      "external_ui": "{install_dir}"\n'
        "    }\n"
        "  }\n"
        "}"
    )


def install_zashboard(
    settings: Settings,
    fetcher: Optional[RequestsFetcher] = None,
    require_opkg: bool = True,
) -> Path:
    """
    Descarga el último release de Zashboard y lo instala en settings.zashboard_dir
    (reemplazando una instalación previa).

    Returns:
        Directorio de instalación
    """
    if require_opkg and not OpkgPackageManager.available():
        raise EnvironmentalError("opkg no encontrado. ¿Es OpenWrt?")

    fetcher = fetcher or RequestsFetcher(timeout=settings.http_timeout)
    install_dir = Path(settings.zashboard_dir)

    log_info("Consultando el último release...")
    tag = fetcher.latest_release_tag(settings.zashboard_repo)
    if not tag:
        raise ZashboardError(
            f"No se pudo obtener el último release de {settings.zashboard_repo}: {fetcher.last_error or 'sin tag'}"
        )
    log_info(f"Última versión: {tag}")

    url = dist_url(settings.zashboard_repo, tag)
    with tempfile.TemporaryDirectory(prefix="vpnkit-", dir=settings.scratch_dir) as tmp:
        archive = Path(tmp) / "zashboard.zip"
        log_info("Descargando Zashboard...")
        if not fetcher.download(url, archive):
            raise ZashboardError(f"download failed: {url}")

        # La instalación previa solo se toca con un dist ya extraído y válido
        staging = Path(tmp) / "dist"
        log_info("Extrayendo dist.zip...")
        extract_dist(archive, staging)

        if install_dir.exists():
            log_info("Limpiando instalación existente...")
            shutil.rmtree(install_dir)
        install_dir.parent.mkdir(parents=True, exist_ok=True)
        log_info(f"Instalando en {install_dir}...")
        shutil.copytree(staging, install_dir)

    log_ok(f"Zashboard instalado en {install_dir}")
    console.print("\nVerifica que la configuración de sing-box tenga 'experimental.clash_api' habilitado:")
    console.print(clash_api_hint(install_dir), markup=False, highlight=False)
    console.print("\nAccede al dashboard en [bold]http://<ROUTER_IP>:9090/ui[/bold]")
    return install_dir

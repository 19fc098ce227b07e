"""
Configuración de vpnkit.

Precedencia (de menor a mayor): valores por defecto → YAML → variables VPNKIT_<CAMPO>.
Ruta del YAML: VPNKIT_CONFIG o /etc/vpnkit/config.yaml si existe.
"""

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from vpnkit.core.errors import ConfigError

ENV_PREFIX = "VPNKIT_"
DEFAULT_CONFIG_PATH = Path("/etc/vpnkit/config.yaml")


class Settings(BaseModel):
    on_failure: Literal["abort", "continue"] = Field(
        "abort", description="Qué hacer cuando un recurso termina en Failed"
    )
    interactive: bool = Field(True, description="False: se usan los valores por defecto sin preguntar")
    scratch_dir: Optional[Path] = Field(None, description="Base para directorios temporales de descarga")
    http_timeout: int = Field(60, gt=0)

    # OpenWrt / AmneziaWG
    awg_release_base_url: str = "https://github.com/Slava-Shchipunov/awg-openwrt/releases/download/"
    awg_interface_default: str = "awg0"
    opkg_arch_priority: int = 200

    # Zashboard
    zashboard_repo: str = "Zephyruso/zashboard"
    zashboard_dir: Path = Path("/www/zashboard")

    # Servidores Docker
    sing_box_repo: str = "https://github.com/konstantin-uvarov/docker-sing-box.git"
    open_vpn_repo: str = "https://github.com/konstantin-uvarov/docker-open-vpn.git"
    compose_version: str = "v2.32.4"
    compose_plugin_dir: Path = Path("/usr/local/lib/docker/cli-plugins")


def _config_path() -> Optional[Path]:
    explicit = os.environ.get(f"{ENV_PREFIX}CONFIG", "").strip()
    if explicit:
        return Path(explicit).expanduser()
    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH
    return None


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError(f"Archivo de configuración no encontrado: {path}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Error al parsear YAML {path}: {e}")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: la raíz debe ser un diccionario")
    return data


def _env_overrides(environ: Dict[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for field in Settings.model_fields:
        value = environ.get(f"{ENV_PREFIX}{field.upper()}")
        if value is not None and value != "":
            overrides[field] = value
    return overrides


def load_settings(
    path: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Settings:
    """Carga la configuración efectiva; valores inválidos → ConfigError."""
    environ = dict(os.environ) if environ is None else environ
    data: Dict[str, Any] = {}

    config_path = path or _config_path()
    if config_path is not None:
        data.update(_read_yaml(config_path))
    data.update(_env_overrides(environ))

    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigError(f"Configuración inválida: {e}")

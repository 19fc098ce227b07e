"""
Utilidades compartidas por los comandos: configuración, prompter y manejo de errores.
"""

from contextlib import contextmanager
from typing import Iterator, Tuple

import typer

from vpnkit.core.contracts import Prompter
from vpnkit.core.errors import VpnkitError
from vpnkit.core.settings import Settings, load_settings
from vpnkit.output import log_error, log_info
from vpnkit.providers.prompts import DefaultsPrompter, RichPrompter


def make_prompter(settings: Settings) -> Prompter:
    if settings.interactive:
        return RichPrompter()
    return DefaultsPrompter()


@contextmanager
def guarded() -> Iterator[None]:
    """Convierte errores de vpnkit en un mensaje categorizado y el exit code del error."""
    try:
        yield
    except VpnkitError as e:
        if e.exit_code == 0:
            log_info(str(e))
        else:
            log_error(f"[{e.category}] {e}")
        raise typer.Exit(code=e.exit_code)
    except KeyboardInterrupt:
        log_error("Interrumpido por el usuario")
        raise typer.Exit(code=130)


def load_runtime() -> Tuple[Settings, Prompter]:
    """Settings + prompter; un error de configuración también sale con código 1."""
    with guarded():
        settings = load_settings()
    return settings, make_prompter(settings)

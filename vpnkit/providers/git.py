"""
Operaciones git (clonado sin prompts de credenciales)
"""

from pathlib import Path
from typing import Optional

from vpnkit.providers.shell import diagnostic, run_command


def git_clone(url: str, cwd: Optional[Path] = None) -> tuple[bool, str]:
    """
    Clona `url` en el directorio actual (o `cwd`).
    GIT_TERMINAL_PROMPT=0: git falla en vez de pedir credenciales; la autenticación la gestiona el llamador.

    Returns:
        Tuple (success, salida de git)
    """
    ok, stdout, stderr = run_command(
        ["git", "clone", url],
        cwd=cwd,
        env={"GIT_TERMINAL_PROMPT": "0"},
    )
    return ok, diagnostic(stdout, stderr)

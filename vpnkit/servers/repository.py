"""
Clonado del repositorio del servidor con reintento autenticado (token de GitHub).
"""

from pathlib import Path

from vpnkit.core.contracts import Prompter
from vpnkit.core.errors import RunAborted, VpnkitError
from vpnkit.core.naming import repo_dir_name, token_clone_url
from vpnkit.output import console, log_info, log_ok, log_warn
from vpnkit.providers.git import git_clone
from vpnkit.providers.shell import mask_sensitive_data, run_command


class CloneError(VpnkitError):
    """El clonado falló incluso con token."""

    category = "git"


def clone_repository(repo_url: str, prompter: Prompter, workdir: Path) -> Path:
    """
    Clona `repo_url` dentro de `workdir` salvo que el directorio ya exista.
    Si el clonado anónimo falla, pide un token y reintenta una sola vez.

    Returns:
        Directorio del repositorio
    """
    workdir = Path(workdir)
    target = workdir / repo_dir_name(repo_url)

    if target.is_dir():
        log_info(f"El directorio '{target.name}' ya existe")
        return target

    log_info(f"Clonando {repo_url}...")
    ok, output = git_clone(repo_url, cwd=workdir)
    if ok:
        log_ok("Repositorio clonado")
        return target

    log_warn("El clonado falló. Salida de git:")
    console.print(mask_sensitive_data(output), markup=False, highlight=False)

    token = prompter.ask(
        "Token de acceso personal de GitHub (vacío para abortar)",
        default="",
        password=True,
    )
    if not token:
        raise RunAborted("No se proporcionó token")

    ok, output = git_clone(token_clone_url(repo_url, token), cwd=workdir)
    if not ok:
        raise CloneError(
            "El clonado falló incluso con token. Revisa la URL y los permisos del token.\n"
            + mask_sensitive_data(output).replace(token, "********")
        )

    # El token no debe quedar guardado en .git/config
    run_command(["git", "-C", str(target), "remote", "set-url", "origin", repo_url])
    log_ok("Repositorio clonado con token")
    return target

"""
Ejecución de comandos del sistema y utilidades compartidas
"""

import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional


def which(tool: str) -> bool:
    """True si el comando está en PATH (equivalente a `command -v`)."""
    return shutil.which(tool) is not None


def mask_sensitive_data(text: str, mask_char: str = "*") -> str:
    """
    Enmascara tokens en texto antes de mostrarlo

    Args:
        text: Texto a enmascarar
        mask_char: Carácter para enmascarar

    Returns:
        Texto con los tokens enmascarados
    """
    # Token embebido en URL: https://<token>@github.com/...
    text = re.sub(r"(https?://)[^/@\s]+@", lambda m: f"{m.group(1)}{mask_char * 8}@", text)

    # Tokens GitHub (ghp_..., gho_..., github_pat_...)
    text = re.sub(r"github_pat_[A-Za-z0-9_]{20,}", f"github_pat_{mask_char * 20}", text)
    text = re.sub(r"gh[pousr]_[A-Za-z0-9]{20,}", lambda m: m.group(0)[:4] + mask_char * 20, text)

    return text


def run_command(
    command: List[str],
    cwd: Optional[Path] = None,
    timeout: Optional[int] = None,
    capture_output: bool = True,
    env: Optional[Dict[str, str]] = None,
) -> tuple[bool, str, str]:
    """
    Ejecuta un comando del sistema de forma segura

    Args:
        command: Lista con comando y argumentos
        cwd: Directorio de trabajo
        timeout: Timeout en segundos (None: espera a que termine)
        capture_output: Si capturar stdout/stderr
        env: Variables extra, se suman al entorno actual

    Returns:
        Tuple (success, stdout, stderr)
    """
    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update(env)

    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            capture_output=capture_output,
            text=True,
            timeout=timeout,
            env=full_env,
            check=False,
        )
        return result.returncode == 0, result.stdout or "", result.stderr or ""
    except subprocess.TimeoutExpired:
        return False, "", f"Timeout ejecutando: {' '.join(command)}"
    except FileNotFoundError:
        return False, "", f"Comando no encontrado: {command[0]}"
    except OSError as e:
        return False, "", f"Error ejecutando {command[0]}: {e}"


def diagnostic(stdout: str, stderr: str) -> str:
    """Salida de diagnóstico de una herramienta, tal cual (stderr primero)."""
    parts = [p.strip() for p in (stderr, stdout) if p and p.strip()]
    return "\n".join(parts)

"""
Entrada interactiva: prompter de terminal (rich), prompter sin terminal
(solo valores por defecto) y menú numerado de resolución de conflictos.
"""

from typing import Callable, List, Optional, Tuple

from rich.console import Console
from rich.prompt import Confirm, Prompt

from vpnkit.core.contracts import Prompter
from vpnkit.core.models import ConflictResolution, ResourceSpec

CONFLICT_OPTIONS: List[Tuple[str, str]] = [
    (ConflictResolution.OVERWRITE.value, "Borrar el existente y crearlo de nuevo"),
    (ConflictResolution.SKIP.value, "No tocar nada"),
    (ConflictResolution.RENAME.value, "Usar el siguiente nombre libre (awg1, awg2...)"),
]


class RichPrompter:
    """Prompter sobre la terminal; escribe en stderr para no ensuciar stdout."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    def ask(self, prompt: str, default: str = "", password: bool = False) -> str:
        answer = Prompt.ask(prompt, console=self.console, default=default, password=password)
        return (answer or "").strip() or default

    def confirm(self, prompt: str, default: bool = False) -> bool:
        return Confirm.ask(prompt, console=self.console, default=default)


class DefaultsPrompter:
    """Modo no interactivo: responde siempre el valor por defecto."""

    def ask(self, prompt: str, default: str = "", password: bool = False) -> str:
        return default

    def confirm(self, prompt: str, default: bool = False) -> bool:
        return default


def _format_menu(options: List[Tuple[str, str]], indent: str = "  ") -> str:
    """Genera texto del menú numerado."""
    lines = []
    for i, (value, desc) in enumerate(options, 1):
        lines.append(f"{indent}{i}) {value:<10} - {desc}")
    return "\n".join(lines)


def _parse_choice(raw: str, options: List[Tuple[str, str]]) -> int:
    """
    Acepta número (1..n), el valor completo o su inicial (o/s/r; 'a' = auto-increment = rename).
    Retorna índice 1-based o -1 si es inválido.
    """
    s = (raw or "").strip().lower()
    if s.isdigit():
        n = int(s)
        return n if 1 <= n <= len(options) else -1
    if s == "a":
        s = ConflictResolution.RENAME.value
    for i, (value, _) in enumerate(options, 1):
        if s and (s == value or s == value[0]):
            return i
    return -1


def prompt_numbered(
    prompter: Prompter,
    title: str,
    options: List[Tuple[str, str]],
    default: int = 1,
    on_invalid: Optional[Callable[[str], None]] = None,
) -> str:
    """
    Muestra menú numerado y retorna el valor seleccionado (no el número).
    Repite hasta recibir una opción válida.
    """
    question = f"{title}\n{_format_menu(options)}\n>"
    while True:
        raw = prompter.ask(question, default=str(default))
        idx = _parse_choice(raw, options)
        if idx >= 1:
            return options[idx - 1][0]
        if on_invalid:
            on_invalid(f"Opción inválida. Elige un número entre 1 y {len(options)}.")


def conflict_resolver(
    prompter: Prompter,
    on_invalid: Optional[Callable[[str], None]] = None,
) -> Callable[[ResourceSpec, str], ConflictResolution]:
    """Callback de conflicto para el Reconciler; por defecto Skip (nunca sobrescribe sin pedirlo)."""

    def resolve(spec: ResourceSpec, existing_key: str) -> ConflictResolution:
        value = prompt_numbered(
            prompter,
            f"'{spec.name}' ya existe ({existing_key}). ¿Qué hacer?",
            CONFLICT_OPTIONS,
            default=2,
            on_invalid=on_invalid,
        )
        return ConflictResolution(value)

    return resolve

"""
Salida para el usuario: todo va a stderr para no interferir con stdout.
"""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from vpnkit.core.models import FinalState
from vpnkit.core.orchestrator import RunReport

console = Console(stderr=True)

_STYLES = {
    "info": "[blue]ℹ[/blue] {}",
    "ok": "[green]✔[/green] {}",
    "warn": "[yellow]⚠ {}[/yellow]",
    "error": "[red]✘ {}[/red]",
}

_STATE_STYLES = {
    FinalState.ALREADY_PRESENT: "dim",
    FinalState.INSTALLED: "green",
    FinalState.SKIPPED: "yellow",
    FinalState.FAILED: "red",
}


def notify(level: str, message: str) -> None:
    """Callback de progreso para Reconciler y bootstraps."""
    template = _STYLES.get(level, "{}")
    console.print(template.format(escape(message)), highlight=False)


def log_info(message: str) -> None:
    notify("info", message)


def log_ok(message: str) -> None:
    notify("ok", message)


def log_warn(message: str) -> None:
    notify("warn", message)


def log_error(message: str) -> None:
    notify("error", message)


def banner(title: str, subtitle: str = "") -> None:
    body = f"[bold cyan]{title}[/bold cyan]"
    if subtitle:
        body += f"\n[dim]{subtitle}[/dim]"
    console.print(Panel.fit(body, border_style="cyan"))


def print_report(report: RunReport) -> None:
    """Resumen de la ejecución en tabla."""
    if not report.outcomes:
        return
    counts = report.counts()
    totals = ", ".join(f"{state.value}: {n}" for state, n in counts.items() if n)
    table = Table(title="Resumen", caption=totals, show_header=True, header_style="bold cyan")
    table.add_column("Recurso", style="cyan")
    table.add_column("Tipo")
    table.add_column("Estado")
    table.add_column("Método", style="dim")
    table.add_column("Detalle", style="red")
    for o in report.outcomes:
        style = _STATE_STYLES[o.final_state]
        table.add_row(
            o.resource_name,
            o.kind.value,
            f"[{style}]{o.final_state.value}[/{style}]",
            o.method_used.value if o.method_used else "-",
            escape(o.error_detail or ""),
        )
    console.print(table)

"""
Aplicación CLI unificada de vpnkit.

Solo compone submódulos y comandos; la lógica vive en core, providers y departamentos.
"""

from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.table import Table

from vpnkit import __version__
from vpnkit.openwrt.cli import app as openwrt_app
from vpnkit.output import banner, console
from vpnkit.servers.cli import app as servers_app

# .env del directorio actual (VPNKIT_*), antes de leer la configuración
_env = Path.cwd() / ".env"
if _env.exists():
    load_dotenv(_env)

app = typer.Typer(
    name="vpnkit",
    help="vpnkit - Bootstrap de software VPN",
    add_completion=False,
    no_args_is_help=True,
)

app.add_typer(openwrt_app, name="openwrt", help="Routers OpenWrt (AmneziaWG, Zashboard)")
app.add_typer(servers_app, name="servers", help="Servidores VPN en Docker (sing-box, OpenVPN)")


@app.command()
def version():
    """Muestra la versión de vpnkit"""
    banner("vpnkit", f"Versión {__version__}")


@app.command()
def info():
    """Muestra los comandos disponibles"""
    table = Table(title="Departamentos", show_header=True, header_style="bold cyan")
    table.add_column("Departamento", style="cyan", width=12)
    table.add_column("Descripción", style="green")
    table.add_column("Comandos", style="yellow")
    table.add_row("openwrt", "Routers OpenWrt (opkg/uci)", "amneziawg, zashboard")
    table.add_row("servers", "VMs Linux con Docker", "sing-box, open-vpn")
    console.print(table)
    console.print("\n[dim]Usa 'vpnkit <departamento> --help' para ver los comandos[/dim]")


def main():
    app()

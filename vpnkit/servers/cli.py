#!/usr/bin/env python3
"""
Módulo Servers - vpnkit
Servidores VPN en Docker (sing-box, OpenVPN) sobre VMs Linux
"""

import typer

from vpnkit.cli.runtime import guarded, load_runtime
from vpnkit.output import banner

from .bootstrap import ServerFlavour, bootstrap_server

app = typer.Typer(
    name="servers",
    help="Bootstrap de servidores VPN en Docker",
    add_completion=False,
    no_args_is_help=True,
)


def _run(flavour: ServerFlavour, title: str) -> None:
    settings, prompter = load_runtime()
    banner(title, "Bootstrap Script")
    with guarded():
        report = bootstrap_server(flavour, settings, prompter)
    if not report.ok:
        raise typer.Exit(code=report.exit_code)


@app.command("sing-box")
def sing_box():
    """
    Instala Docker + Compose, clona el repositorio de sing-box y ejecuta 'make start'

    Ejemplo: vpnkit servers sing-box
    """
    _run(ServerFlavour.SING_BOX, "Sing-Box VPN Server")


@app.command("open-vpn")
def open_vpn():
    """
    Instala Docker + Compose, clona el repositorio de OpenVPN y ejecuta 'make start'

    Ejemplo: vpnkit servers open-vpn
    """
    _run(ServerFlavour.OPEN_VPN, "OpenVPN Docker Server")

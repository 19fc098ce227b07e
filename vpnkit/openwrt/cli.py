#!/usr/bin/env python3
"""
Módulo OpenWrt - vpnkit
AmneziaWG (kmod + tools + LuCI + interfaz) y Zashboard
"""

import typer

from vpnkit.cli.runtime import guarded, load_runtime
from vpnkit.output import banner

from .amneziawg import bootstrap_amneziawg
from .zashboard import install_zashboard

app = typer.Typer(
    name="openwrt",
    help="Bootstrap en routers OpenWrt (opkg/uci)",
    add_completion=False,
    no_args_is_help=True,
)


@app.command()
def amneziawg():
    """
    Instala AmneziaWG y crea la interfaz, zona y forwarding

    Ejemplo: vpnkit openwrt amneziawg
    """
    settings, prompter = load_runtime()
    banner("AmneziaWG - OpenWrt", "kmod-amneziawg, amneziawg-tools, LuCI")
    with guarded():
        report = bootstrap_amneziawg(settings, prompter)
    if not report.ok:
        raise typer.Exit(code=report.exit_code)


@app.command()
def zashboard():
    """
    Instala Zashboard para la clash_api de sing-box

    Ejemplo: vpnkit openwrt zashboard
    """
    settings, _ = load_runtime()
    banner("Zashboard - OpenWrt")
    with guarded():
        install_zashboard(settings)

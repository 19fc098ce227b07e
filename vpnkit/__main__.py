"""
Punto de entrada: python -m vpnkit
"""

from vpnkit.cli.app import app

if __name__ == "__main__":
    app()

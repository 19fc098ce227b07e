"""
vpnkit - Bootstrap de software VPN (AmneziaWG en OpenWrt, Zashboard, servidores Docker)
"""

__version__ = "1.0.0"

"""
Servers: servidores VPN en Docker (sing-box, OpenVPN).
"""

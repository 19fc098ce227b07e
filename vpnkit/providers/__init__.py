"""
Providers: implementaciones concretas de los contratos de vpnkit.core.contracts
(opkg, apt/yum, uci, descargas HTTP, prompts de terminal, git).
"""

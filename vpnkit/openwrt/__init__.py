"""
OpenWrt: AmneziaWG y Zashboard.
"""

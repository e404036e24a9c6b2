"""
Modem Console services
"""

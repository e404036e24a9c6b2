"""
Modem Console
Telemetry parsing and signal aggregation for cellular modem/router consoles
"""

__version__ = "1.0.0"

"""
HexCrypt Command-Line Interface
===============================

- **hexcrypt**: encipher, inspect, validate and build Intel HEX files

Implemented as a Click-based application with per-command help and
uniform error reporting (see cli.errors).
"""

__all__ = ["hexcrypt"]

# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Foreign data wrapper for the Corrently GrünstromIndex prediction API."""

__version__ = "0.1.0"

__all__ = [
    "cache",
    "cli",
    "config",
    "errors",
    "fdw",
    "host",
    "http",
    "local_host",
    "parser",
    "quals",
    "schema",
]

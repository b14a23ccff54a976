"""
Command Line Interface for the stream predictions backend.

Provides commands for running the API server, managing the database and
inspecting predictions and users through a rich terminal interface.
"""

from stream11.cli.commands import cli

__all__ = ["cli"]

"""
This module initializes the console package, exposing command execution
and the usage text for the focusguard CLI.
"""

from .process import execute_command, ExitCode
from .handler import print_usage

__all__ = ["execute_command", "ExitCode", "print_usage"]

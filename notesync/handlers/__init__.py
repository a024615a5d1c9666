"""
Handlers package
"""

from .command_handlers import ICommandHandler, parse_command
from .command_factory import CommandFactory

__all__ = ['ICommandHandler', 'parse_command', 'CommandFactory']

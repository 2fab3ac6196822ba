"""Top-level command dispatch through the tier chain."""

from .lib import TIER_CHAIN, Backends, CommandDispatcher, CommandResult, dispatch_command

__all__ = [
    "TIER_CHAIN",
    "Backends",
    "CommandResult",
    "CommandDispatcher",
    "dispatch_command",
]

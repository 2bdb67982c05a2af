"""CLI command handlers."""

from .checkout import cmd_checkout
from .plan import cmd_plan
from .settings import cmd_settings

__all__ = [
    "cmd_checkout",
    "cmd_plan",
    "cmd_settings",
]

"""CLI commands"""

from .edit import bind_command, delete_command, expression_command, set_value_command
from .inspect import check_command, eval_command, scope_command, usage_command

__all__ = [
    "bind_command",
    "check_command",
    "delete_command",
    "eval_command",
    "expression_command",
    "scope_command",
    "set_value_command",
    "usage_command",
]

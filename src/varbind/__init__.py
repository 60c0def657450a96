"""Varbind - variables, scopes and expression bindings for a page tree"""

from varbind._version import __version__

# Re-export from config
from varbind.config import VarbindSettings

# Re-export from expression
from varbind.expression import (
    decode_variable,
    encode_variable,
    evaluate_expression,
    parse_variable_value,
    validate_expression,
)

# Re-export from core
from varbind.dependencies import DependencyTracker, used_variables
from varbind.operations import (
    VariablesService,
    bind_variable,
    delete_variable,
    remove_expression,
    rename_variable,
    save_resource_variable,
    save_variable,
    set_prop_expression,
    set_prop_value,
)
from varbind.project import ProjectFile
from varbind.scope import variable_aliases, visible_variables
from varbind.session import SessionState, VariableEditSession, variable_list_items
from varbind.store import Store, Transaction, TransactionLog

__all__ = [
    "__version__",
    # config
    "VarbindSettings",
    # expression
    "decode_variable",
    "encode_variable",
    "evaluate_expression",
    "parse_variable_value",
    "validate_expression",
    # core
    "DependencyTracker",
    "used_variables",
    "VariablesService",
    "bind_variable",
    "delete_variable",
    "remove_expression",
    "rename_variable",
    "save_resource_variable",
    "save_variable",
    "set_prop_expression",
    "set_prop_value",
    "ProjectFile",
    "variable_aliases",
    "visible_variables",
    "SessionState",
    "VariableEditSession",
    "variable_list_items",
    "Store",
    "Transaction",
    "TransactionLog",
]

"""Dependency tracking - which variables are referenced by props."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from varbind.exceptions import DeletionBlockedError, ParseError
from varbind.expression.validator import collect_variables
from varbind.models import Prop, Variable
from varbind.store import Store

log = logging.getLogger(__name__)


def used_variables(
    props: Iterable[Prop], effects: Iterable[str] | None = None
) -> frozenset[str]:
    """Ids of every variable referenced by an expression or action prop.

    A prop that fails to parse contributes nothing instead of aborting the
    scan.
    """
    effects = None if effects is None else frozenset(effects)
    used: set[str] = set()
    for prop in props:
        if prop.kind == "expression":
            try:
                used |= collect_variables(prop.value)
            except ParseError as e:
                log.debug(f"Skipping malformed expression prop {prop.id}: {e}")
        elif prop.kind == "action":
            for step in prop.value:
                try:
                    used |= collect_variables(step.code, effectful=True, effects=effects)
                except ParseError as e:
                    log.debug(f"Skipping malformed action step in prop {prop.id}: {e}")
    return frozenset(used)


def ensure_deletable(variable: Variable, used: frozenset[str]) -> None:
    """Raise DeletionBlockedError unless `variable` may be deleted.

    Parameters belong to the instance declaring them and are never deleted
    here, value and resource variables only while no prop references them.
    """
    if variable.kind == "parameter":
        raise DeletionBlockedError(variable.id, reason="parameter")
    if variable.id in used:
        raise DeletionBlockedError(variable.id)


class DependencyTracker:
    """Used-variables set of a store, recomputed when props change."""

    def __init__(self, store: Store, effects: Iterable[str] | None = None):
        self.store = store
        self.effects = None if effects is None else frozenset(effects)
        self._version: int | None = None
        self._used: frozenset[str] = frozenset()

    def used(self) -> frozenset[str]:
        version = self.store.version("props")
        if version != self._version:
            self._used = used_variables(self.store.props.values(), self.effects)
            self._version = version
            log.debug(f"Recomputed used variables at props version {version}")
        return self._used

    def is_used(self, variable_id: str) -> bool:
        return variable_id in self.used()

    def is_deletable(self, variable: Variable) -> bool:
        return variable.kind != "parameter" and not self.is_used(variable.id)

    def ensure_deletable(self, variable: Variable) -> None:
        ensure_deletable(variable, self.used())

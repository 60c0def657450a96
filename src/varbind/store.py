"""Varbind Store

In-memory owner of the variables, resources and props collections.
All writes go through `Store.transact`, which stages changes on copies and
swaps them in together once the mutator returns.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Any, TypeVar

from pydantic import BaseModel, Field
from uuid_extensions import uuid7str

from varbind.exceptions import TransactionAbortError
from varbind.models import Instance, InstanceTree, MappingInstanceTree, Prop, Resource, Variable

log = logging.getLogger(__name__)

COLLECTIONS = ("variables", "resources", "props")

T = TypeVar("T")


class Change(BaseModel):
    """One entity delta, `before` is None on insert and `after` on delete"""

    collection: str
    key: str
    before: Any = None
    after: Any = None


class Transaction(BaseModel):
    """A committed batch of changes, as published to subscribers"""

    id: str = Field(default_factory=uuid7str)
    collections: list[str]
    changes: list[Change]
    committed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_jsonl(self) -> str:
        """Convert to JSON line"""
        return self.model_dump_json()


class CollectionView(MutableMapping):
    """Mutable view of one collection, handed to a transaction mutator.

    Reads see the mutator's own writes. Nothing reaches the store unless
    the whole transaction commits.
    """

    def __init__(self, name: str, base: dict[str, Any]):
        self.name = name
        self._base = base
        self._staged = dict(base)

    def __getitem__(self, key: str) -> Any:
        return self._staged[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._staged[key] = value

    def __delitem__(self, key: str) -> None:
        del self._staged[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._staged)

    def __len__(self) -> int:
        return len(self._staged)

    def set(self, key: str, value: Any) -> None:
        self[key] = value

    def delete(self, key: str) -> bool:
        """Delete `key` if present, returns whether anything was removed"""
        if key in self._staged:
            del self._staged[key]
            return True
        return False

    def changes(self) -> list[Change]:
        result: list[Change] = []
        for key, before in self._base.items():
            if key not in self._staged:
                result.append(Change(collection=self.name, key=key, before=before))
                continue
            after = self._staged[key]
            if after != before:
                result.append(
                    Change(collection=self.name, key=key, before=before, after=after)
                )
        for key, after in self._staged.items():
            if key not in self._base:
                result.append(Change(collection=self.name, key=key, after=after))
        return result

    @property
    def staged(self) -> dict[str, Any]:
        return self._staged


@dataclass(frozen=True)
class Snapshot:
    """Read-only state of every collection at one point in time"""

    variables: Mapping[str, Variable]
    resources: Mapping[str, Resource]
    props: Mapping[str, Prop]
    versions: Mapping[str, int]


Listener = Callable[[Transaction], None]


class Store:
    """Owns the collections and applies transactions.

    The instance tree is read-only here, it belongs to whoever builds the
    store.
    """

    def __init__(
        self,
        variables: Mapping[str, Variable] | None = None,
        resources: Mapping[str, Resource] | None = None,
        props: Mapping[str, Prop] | None = None,
        instances: InstanceTree | Mapping[str, Instance] | None = None,
    ):
        self._data: dict[str, dict[str, Any]] = {
            "variables": dict(variables or {}),
            "resources": dict(resources or {}),
            "props": dict(props or {}),
        }
        self._versions = {name: 0 for name in COLLECTIONS}
        self._listeners: list[Listener] = []
        self._in_transaction = False

        if instances is None:
            instances = MappingInstanceTree({})
        elif isinstance(instances, Mapping):
            instances = MappingInstanceTree(instances)
        self.instances: InstanceTree = instances

    def get(self, name: str) -> Mapping[str, Any]:
        """Read-only snapshot of a collection"""
        if name not in self._data:
            raise KeyError(f"Unknown collection: {name}")
        return MappingProxyType(self._data[name])

    @property
    def variables(self) -> Mapping[str, Variable]:
        return self.get("variables")

    @property
    def resources(self) -> Mapping[str, Resource]:
        return self.get("resources")

    @property
    def props(self) -> Mapping[str, Prop]:
        return self.get("props")

    def version(self, name: str) -> int:
        """Counter bumped by every commit that changes `name`"""
        return self._versions[name]

    def snapshot(self) -> Snapshot:
        return Snapshot(
            variables=self.variables,
            resources=self.resources,
            props=self.props,
            versions=MappingProxyType(dict(self._versions)),
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a commit listener, returns a function that removes it"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def transact(self, names: Sequence[str], mutator: Callable[..., T]) -> T:
        """Run `mutator` with one view per named collection and commit atomically.

        Args:
            names: Collections the mutator may touch, views are passed in
                this order.
            mutator: Receives the views, may return a value.

        Returns:
            Whatever the mutator returned.

        Raises:
            TransactionAbortError: The mutator raised, the call is nested or a
                name is unknown. No collection is modified.
        """
        if self._in_transaction:
            raise TransactionAbortError("Nested transactions are not supported")
        unknown = [name for name in names if name not in self._data]
        if unknown:
            raise TransactionAbortError(f"Unknown collections: {', '.join(unknown)}")

        views = [CollectionView(name, self._data[name]) for name in names]
        self._in_transaction = True
        try:
            result = mutator(*views)
        except Exception as e:
            log.debug(f"Transaction on {', '.join(names)} aborted: {e}")
            raise TransactionAbortError(f"Transaction aborted: {e}") from e
        finally:
            self._in_transaction = False

        changes = [change for view in views for change in view.changes()]
        if not changes:
            return result

        changed = {change.collection for change in changes}
        for view in views:
            if view.name in changed:
                self._data[view.name] = view.staged
                self._versions[view.name] += 1

        transaction = Transaction(collections=list(names), changes=changes)
        log.debug(
            f"Committed transaction {transaction.id} ({len(changes)} changes on {', '.join(sorted(changed))})"
        )
        self._publish(transaction)
        return result

    def _publish(self, transaction: Transaction) -> None:
        for listener in list(self._listeners):
            try:
                listener(transaction)
            except Exception:
                # the commit stands, listeners only observe it
                log.exception(f"Listener failed for transaction {transaction.id}")


class TransactionLog:
    """Appends committed transactions to a JSON lines file.

    Subscribe it to a store: `store.subscribe(TransactionLog(path))`.
    """

    def __init__(self, path: Path):
        self.path = path

    def __call__(self, transaction: Transaction) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a") as f:
            f.write(transaction.to_jsonl() + "\n")

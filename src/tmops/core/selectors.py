"""Placement policies for `ContainerManager.create_advanced`.

When a container is created without an explicit database server, the
manager enumerates the registered servers and asks a ServerSelector which
one should host the new database. Policies are frozen values and can be
nested with AllOf/AnyOf style composites (`AndSelector`, `OrSelector`).
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Sequence

if TYPE_CHECKING:
    from tmops.core.tm import DatabaseServerRef


class ServerSelector(ABC):
    """A predicate over database servers; `select` keeps enumeration order."""

    @abstractmethod
    def matches(self, server: DatabaseServerRef) -> bool: ...

    def select(
        self, servers: Sequence[DatabaseServerRef]
    ) -> DatabaseServerRef | None:
        """Return the earliest server accepted by `matches`, else None."""
        for server in servers:
            if self.matches(server):
                return server
        return None


@dataclass(frozen=True)
class FirstServerSelector(ServerSelector):
    """Accept any host. Used when the deployment has a single database server."""

    def matches(self, server: DatabaseServerRef) -> bool:
        return True


@dataclass(frozen=True)
class NameRegexSelector(ServerSelector):
    """Host whose friendly name contains a match for `pattern` (re.search)."""

    pattern: str
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            compiled = re.compile(self.pattern)
        except re.error as exc:
            raise ValueError(f"Invalid regex expression: {exc}") from exc
        object.__setattr__(self, "_compiled", compiled)

    def matches(self, server: DatabaseServerRef) -> bool:
        return self._compiled.search(server.name) is not None


@dataclass(frozen=True)
class PropertySelector(ServerSelector):
    """Host whose connection properties map `key` to exactly `value`."""

    key: str
    value: str

    def matches(self, server: DatabaseServerRef) -> bool:
        props = server.properties or {}
        return self.key in props and props[self.key] == self.value


@dataclass(frozen=True)
class AndSelector(ServerSelector):
    selectors: Sequence[ServerSelector]

    def matches(self, server: DatabaseServerRef) -> bool:
        return all(child.matches(server) for child in self.selectors)


@dataclass(frozen=True)
class OrSelector(ServerSelector):
    selectors: Sequence[ServerSelector]

    def matches(self, server: DatabaseServerRef) -> bool:
        return any(child.matches(server) for child in self.selectors)


def _parse_property(raw: str) -> PropertySelector:
    key, sep, value = raw.partition("=")
    if not sep:
        raise ValueError(f"Invalid property selector: '{raw}' (expected key=value)")
    if not key:
        raise ValueError(f"Invalid property selector: '{raw}' (empty key)")
    return PropertySelector(key, value)


def build_server_selector(
    *,
    name: str | None,
    properties: Iterable[str],
    use_or: bool,
) -> ServerSelector:
    """
    Turn `--server-name` / `--property key=value` / `--or` into a policy.

    No criteria yields FirstServerSelector; a single criterion is returned
    as-is; several are joined with AND unless `use_or` is set.

    Raises:
        ValueError: On an invalid name regex or a malformed property filter.
    """
    criteria: list[ServerSelector] = [NameRegexSelector(name)] if name else []
    criteria.extend(_parse_property(raw) for raw in properties)

    if not criteria:
        return FirstServerSelector()
    if len(criteria) == 1:
        return criteria[0]
    return OrSelector(tuple(criteria)) if use_or else AndSelector(tuple(criteria))

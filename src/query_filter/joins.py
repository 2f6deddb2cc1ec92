"""
Join planning for multi-segment filter paths.

A :class:`JoinPlanner` lives for exactly one compilation. Join nodes form
a tree rooted at the query entity: a node is identified by its parent
node plus ``(owning type, association, kind)``, so paths sharing a prefix
share one join subtree while the same association reached through a
different prefix gets its own join. Each node joins an aliased entity,
which keeps self-referential and repeated target types apart.

Filter paths always use inner joins. Sort paths reuse an inner join when
a filter already created one and fall back to left outer joins otherwise,
so ordering never removes rows.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import aliased

from .enums import JoinKind
from .hooks import JOIN_CREATED, JOIN_REUSED

if TYPE_CHECKING:
    from .schema import AssociationStep

logger = logging.getLogger("query_filter.joins")

JoinKey = tuple["JoinKey | None", type[Any], str, JoinKind]


@dataclass(eq=False)
class JoinNode:
    """A join from ``parent`` (or the query root) across one association."""

    owning_type: type[Any]
    association_name: str
    target_type: type[Any]
    parent: JoinNode | None = None
    kind: JoinKind = JoinKind.INNER
    multi_valued: bool = False
    alias: Any = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.alias is None:
            self.alias = aliased(self.target_type)

    @property
    def key(self) -> JoinKey:
        parent_key = self.parent.key if self.parent is not None else None
        return (parent_key, self.owning_type, self.association_name, self.kind)

    @property
    def is_outer(self) -> bool:
        return self.kind is JoinKind.LEFT_OUTER

    @property
    def path(self) -> tuple[str, ...]:
        prefix = self.parent.path if self.parent is not None else ()
        return (*prefix, self.association_name)

    @property
    def depth(self) -> int:
        return len(self.path)

    def column(self, name: str) -> Any:
        """The aliased attribute ``name`` of the joined entity."""
        return getattr(self.alias, name)

    def onclause(self, root: type[Any]) -> Any:
        """Relationship attribute to join along, targeting this node's alias."""
        source = self.parent.alias if self.parent is not None else root
        return getattr(source, self.association_name).of_type(self.alias)


class JoinPlanner:
    """Builds and reuses :class:`JoinNode` chains for one compilation."""

    def __init__(
        self,
        root: type[Any],
        on_event: Callable[[str, JoinNode], None] | None = None,
    ) -> None:
        self.root = root
        self._joins: dict[JoinKey, JoinNode] = {}
        self._on_event = on_event

    def plan(
        self,
        steps: Iterable[AssociationStep],
        kind: JoinKind = JoinKind.INNER,
    ) -> JoinNode | None:
        """
        Return the deepest join node for ``steps``.

        ``None`` means the path has no association hop and its column
        lives on the root entity. With ``kind=LEFT_OUTER`` every hop that
        already has an inner join under the same parent reuses it; the
        remaining hops become left outer joins.
        """
        current: JoinNode | None = None
        for step in steps:
            parent_key = current.key if current is not None else None
            node = self._joins.get(
                (parent_key, step.owning_type, step.name, JoinKind.INNER)
            )
            if node is None and kind is not JoinKind.INNER:
                node = self._joins.get((parent_key, step.owning_type, step.name, kind))
            if node is None:
                node = JoinNode(
                    owning_type=step.owning_type,
                    association_name=step.name,
                    target_type=step.target_type,
                    parent=current,
                    kind=kind,
                    multi_valued=step.multi_valued,
                )
                self._joins[node.key] = node
                logger.debug(
                    "Created %s join %s on %s",
                    kind.value,
                    ".".join(node.path),
                    self.root.__name__,
                )
                self._emit(JOIN_CREATED, node)
            else:
                self._emit(JOIN_REUSED, node)
            current = node
        return current

    def column(self, node: JoinNode | None, name: str) -> Any:
        """Column ``name`` on ``node``, or on the root entity when ``node`` is None."""
        if node is None:
            return getattr(self.root, name)
        return node.column(name)

    @property
    def joins(self) -> tuple[JoinNode, ...]:
        """Join nodes in creation order; parents always precede children."""
        return tuple(self._joins.values())

    def __len__(self) -> int:
        return len(self._joins)

    def _emit(self, name: str, node: JoinNode) -> None:
        if self._on_event is not None:
            self._on_event(name, node)

"""
Arena storage for command trees.

Commands never hold strong references to their parents. Every tree lives in
an Arena that owns the nodes and records parent links as opaque Handles;
"walk to the root" is a loop over handles. Attaching a subcommand moves its
whole subtree into the parent's arena (adopt()).
"""
import logging
from typing import final

logger = logging.getLogger(__name__)


@final
class Handle:
    """Opaque reference to a node inside one Arena."""
    __slots__ = ("_arena", "_slot")

    def __init__(self, arena, slot, /):
        self._arena = arena
        self._slot = slot

    def __eq__(self, other):
        if not isinstance(other, Handle):
            return NotImplemented
        return self._arena is other._arena and self._slot == other._slot

    def __hash__(self):
        return hash((id(self._arena), self._slot))

    def __repr__(self):
        return f"<handle #{self._slot}>"


class Arena:
    __slots__ = ("_nodes", "_parents")

    def __init__(self):
        self._nodes = []
        self._parents = []

    def _check(self, handle, /):
        if not isinstance(handle, Handle) or handle._arena is not self:
            raise KeyError(handle)
        return handle._slot

    def add(self, node, /, parent=None):
        """store node (optionally under parent) and return its handle."""
        if parent is not None:
            self._check(parent)
        self._nodes.append(node)
        self._parents.append(parent)
        return Handle(self, len(self._nodes) - 1)

    def __getitem__(self, handle, /):
        return self._nodes[self._check(handle)]

    def __contains__(self, handle, /):
        return isinstance(handle, Handle) and handle._arena is self

    def __len__(self):
        return len(self._nodes)

    def parent(self, handle, /):
        return self._parents[self._check(handle)]

    def children(self, handle, /):
        self._check(handle)
        return tuple(
            Handle(self, slot) for slot, parent in enumerate(self._parents) if parent == handle
        )

    def ancestors(self, handle, /):
        """yield the nodes above handle, nearest first."""
        while (handle := self.parent(handle)) is not None:
            yield self[handle]

    def descendants(self, handle, /):
        """yield (handle, node) for every node below handle, depth first."""
        for child in self.children(handle):
            yield child, self[child]
            yield from self.descendants(child)

    def adopt(self, other, root, /, parent):
        """
        Move the subtree of ``other`` rooted at ``root`` under ``parent``.

        Returns a mapping of each moved node to its new handle. The moved
        handles stop being valid in ``other``, which should be discarded.
        """
        self._check(parent)
        moved = {}
        pending = [(root, parent)]
        while pending:
            handle, above = pending.pop(0)
            node = other[handle]
            new = self.add(node, above)
            moved[node] = new
            pending.extend((child, new) for child in other.children(handle))
        logger.debug("arena adopted %d node(s) under %r", len(moved), parent)
        return moved


__all__ = (
    "Arena",
    "Handle",
)

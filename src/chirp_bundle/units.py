"""Compiled units and the unit tree.

A ``Unit`` wraps one compiler-produced renderer plus the bookkeeping the
cache needs: a link to its owner and an optional freshness timestamp.
Children are keyed by name in build order, so the tree mirrors the
source directory it was built from.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from chirp_bundle.compiler import Renderer

type Origin = Literal["root", "file", "block", "directory"]

# Attribute names that never appear in generated artifacts
BOOKKEEPING_FIELDS = frozenset({"parent", "own_freshness"})


@dataclass(slots=True, eq=False)
class Unit:
    """One addressable node of the unit tree.

    ``parent`` is a back-reference for freshness propagation, not
    ownership: a rebuild discards the whole tree at once.
    """

    name: str
    render: Renderer
    origin: Origin = "file"
    own_freshness: float | None = None
    parent: Unit | None = field(default=None, repr=False)
    children: dict[str, Unit] = field(default_factory=dict, repr=False)

    def attach(self, child: Unit) -> Unit:
        """Attach *child* under its name, replacing nothing.

        Raises ``ValueError`` if the name is taken or the child already
        has an owner.
        """
        if child.name in self.children:
            msg = f"Unit {self.key_path_str()!r} already has a child named {child.name!r}"
            raise ValueError(msg)
        if child.parent is not None:
            msg = f"Unit {child.name!r} is already attached"
            raise ValueError(msg)
        child.parent = self
        self.children[child.name] = child
        return child

    @property
    def key_path(self) -> tuple[str, ...]:
        """Names from the root down to this unit (root excluded)."""
        names: list[str] = []
        unit: Unit | None = self
        while unit is not None and unit.parent is not None:
            names.append(unit.name)
            unit = unit.parent
        return tuple(reversed(names))

    def key_path_str(self) -> str:
        return ".".join(self.key_path) or "<root>"


def walk(unit: Unit, prefix: tuple[str, ...] = ()) -> Iterator[tuple[tuple[str, ...], Unit]]:
    """Yield ``(relative_key_path, unit)`` pairs in pre-order.

    Key paths are relative to *unit*, which is yielded first with *prefix*.
    """
    yield prefix, unit
    for name, child in unit.children.items():
        yield from walk(child, (*prefix, name))


def count(unit: Unit) -> int:
    """Number of units in the subtree rooted at *unit*."""
    return sum(1 for _ in walk(unit))

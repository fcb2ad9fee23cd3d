"""Freshness tracking for the unit tree.

An artifact built for a directory embeds every descendant, so a change
anywhere below a unit must make that unit look newer too. Timestamps are
pushed upward when they are recorded; units without their own timestamp
(inline blocks) read their parent's on demand.
"""

from chirp_bundle.units import Unit

# Freshness of units that have never been marked
EPOCH = 0.0


def mark_fresh(unit: Unit, timestamp: float) -> None:
    """Record *timestamp* on *unit* and raise every older ancestor to it.

    The walk stops at the first ancestor that is already at least as
    fresh, since everything above it was raised when it was.
    """
    unit.own_freshness = timestamp
    ancestor = unit.parent
    while ancestor is not None:
        current = ancestor.own_freshness
        if current is not None and current >= timestamp:
            break
        ancestor.own_freshness = timestamp
        ancestor = ancestor.parent


def effective_freshness(unit: Unit) -> float:
    """Return the timestamp staleness checks compare against."""
    node: Unit | None = unit
    while node is not None:
        if node.own_freshness is not None:
            return node.own_freshness
        node = node.parent
    return EPOCH

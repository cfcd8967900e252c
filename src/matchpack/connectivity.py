"""Strong pin connectivity precomputation.

Two pins are strongly connected when a chain of direct pin-to-pin connections
joins them. The packing phase uses this as an adjacency signal: chips whose
pins are strongly connected are placed next to each other.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping
from types import MappingProxyType

from .types import InputProblem, PinId

__all__ = ["get_pin_id_to_strongly_connected_pins"]


def get_pin_id_to_strongly_connected_pins(
    problem: InputProblem,
) -> Mapping[PinId, frozenset[PinId]]:
    """Map every pin to the pins transitively reachable through strong connections.

    The pin itself is never part of its own set. Pins with no strong
    connections map to an empty set. Connections that mention pins missing
    from ``problem.chip_pin_map`` still contribute to reachability.

    Args:
        problem: Problem to analyse. Not modified.

    Returns:
        Read-only mapping from pin id to a frozenset of pin ids.
    """
    adjacency: dict[PinId, set[PinId]] = {pin_id: set() for pin_id in problem.chip_pin_map}
    for a, b in problem.pin_strong_connections:
        if a == b:
            continue
        adjacency.setdefault(a, set()).add(b)
        adjacency.setdefault(b, set()).add(a)

    result: dict[PinId, frozenset[PinId]] = {}
    for start in adjacency:
        if start in result:
            continue

        # Breadth-first walk of the component containing ``start``
        component = {start}
        queue = deque([start])
        while queue:
            pin = queue.popleft()
            for neighbor in adjacency[pin]:
                if neighbor not in component:
                    component.add(neighbor)
                    queue.append(neighbor)

        members = frozenset(component)
        for pin in component:
            result[pin] = members - {pin}

    return MappingProxyType(result)

from __future__ import annotations

import logging
from typing import Iterable, Sequence

import networkx as nx

from src.domain.models import Direction, GtfsTrip, RouteStopOrder, StopOrder

logger = logging.getLogger(__name__)

_ORDERED_DIRECTIONS = (Direction.OUTBOUND, Direction.INBOUND)


def build_stop_graph(sequences: Iterable[Sequence[str]]) -> nx.DiGraph:
    """Precedence graph: an edge a -> b for every stop a directly followed by b."""

    graph = nx.DiGraph()
    for stops in sequences:
        graph.add_nodes_from(stops)
        for a, b in zip(stops, stops[1:]):
            # A repeated stop id (dwell split over two rows) is not a precedence.
            if a != b:
                graph.add_edge(a, b)
    return graph


def topological_stop_order(graph: nx.DiGraph) -> StopOrder | None:
    """Order the stops of a precedence graph.

    Ties are broken lexicographically by stop id so identical input always
    yields identical output. If trips disagree and the graph has a cycle, the
    stops emitted before the sort stalled are returned with is_total=False.
    """

    if graph.number_of_nodes() == 0:
        return None

    ordered: list[str] = []
    try:
        for stop_id in nx.lexicographical_topological_sort(graph):
            ordered.append(stop_id)
    except nx.NetworkXUnfeasible:
        cycle = nx.find_cycle(graph)
        logger.warning(
            "Stop order has a cycle (%s); keeping %d of %d stops",
            " -> ".join(str(a) for a, _ in cycle),
            len(ordered),
            graph.number_of_nodes(),
        )
        return StopOrder(stop_ids=tuple(ordered), is_total=False)

    return StopOrder(stop_ids=tuple(ordered))


def infer_stop_order(sequences: Iterable[Sequence[str]]) -> StopOrder | None:
    return topological_stop_order(build_stop_graph(sequences))


def resolve_route_stop_order(
    route_id: str, trips: Iterable[GtfsTrip]
) -> RouteStopOrder | None:
    """Canonical outbound/inbound stop order for one route.

    Trips with an unknown direction are ignored here. A direction whose trips
    never visit two distinct stops in a row borrows the reversed order of the
    opposite direction when that one is known. A direction without any trips
    gets no order. Returns None when neither direction could be ordered.
    """

    sequences: dict[Direction, list[tuple[str, ...]]] = {}
    for trip in trips:
        if trip.direction not in _ORDERED_DIRECTIONS:
            continue
        sequences.setdefault(trip.direction, []).append(trip.stop_ids)

    graphs = {d: build_stop_graph(seqs) for d, seqs in sequences.items()}
    informative = {
        d: topological_stop_order(g) for d, g in graphs.items() if g.number_of_edges()
    }

    orders: dict[Direction, StopOrder | None] = {}
    for direction, opposite in (
        (Direction.OUTBOUND, Direction.INBOUND),
        (Direction.INBOUND, Direction.OUTBOUND),
    ):
        if direction not in graphs:
            continue
        if direction in informative:
            orders[direction] = informative[direction]
        elif informative.get(opposite) is not None:
            orders[direction] = informative[opposite].reversed()
        else:
            orders[direction] = topological_stop_order(graphs[direction])

    outbound = orders.get(Direction.OUTBOUND)
    inbound = orders.get(Direction.INBOUND)
    if outbound is None and inbound is None:
        return None
    return RouteStopOrder(route_id=route_id, outbound=outbound, inbound=inbound)


def resolve_stop_orders(trips: Iterable[GtfsTrip]) -> dict[str, RouteStopOrder]:
    """Resolve stop orders for every route that has trips."""

    by_route: dict[str, list[GtfsTrip]] = {}
    for trip in trips:
        by_route.setdefault(trip.route_id, []).append(trip)

    out: dict[str, RouteStopOrder] = {}
    for route_id in sorted(by_route):
        resolved = resolve_route_stop_order(route_id, by_route[route_id])
        if resolved is not None:
            out[route_id] = resolved
    return out

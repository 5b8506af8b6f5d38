"""Presentation of edges: colours, arrow markers and path geometry."""

import math

from relgraph.config import GraphOptions
from relgraph.domain.relationship import Relationship

Point = tuple[float, float]


def edge_color(relationship: Relationship, options: GraphOptions) -> str:
    colors = {
        "outgoing": options.outgoing_color,
        "incoming": options.incoming_color,
        "bidirectional": options.bidirectional_color,
        "undirected": options.undirected_color,
    }
    return colors[relationship.direction]


def marker_end(relationship: Relationship, options: GraphOptions) -> str:
    """Marker drawn at the target end of the edge."""
    if not options.show_arrows:
        return ""
    if relationship.direction in ("outgoing", "bidirectional"):
        return f"url(#arrow-{relationship.direction})"
    return ""


def marker_start(relationship: Relationship, options: GraphOptions) -> str:
    """Marker drawn at the source end of the edge."""
    if not options.show_arrows:
        return ""
    if relationship.direction in ("incoming", "bidirectional"):
        return f"url(#arrow-{relationship.direction}-reverse)"
    return ""


def edge_path(source: Point, target: Point, curve_offset: float) -> str:
    """SVG path for an edge.

    The first edge of a pair is a straight line. Parallel edges are arcs whose
    radius grows with the curve offset, so they fan out instead of overlapping.
    """
    sx, sy = source
    tx, ty = target
    if curve_offset == 0:
        return f"M{sx:.2f},{sy:.2f}L{tx:.2f},{ty:.2f}"
    radius = math.hypot(tx - sx, ty - sy) + curve_offset
    return f"M{sx:.2f},{sy:.2f}A{radius:.2f},{radius:.2f} 0 0,1 {tx:.2f},{ty:.2f}"


def label_position(source: Point, target: Point) -> Point:
    """Midpoint of an edge, where its label is anchored."""
    return (source[0] + target[0]) / 2, (source[1] + target[1]) / 2

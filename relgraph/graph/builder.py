"""Building the renderable graph model from indexed relationships."""

from typing import Collection, Iterable

from relgraph.domain.graph import GraphEdge, GraphModel, GraphNode
from relgraph.domain.relationship import Relationship

# Spacing between parallel edges of the same endpoint pair
CURVE_SPACING = 30.0


class GraphModelBuilder:
    """Builds deduplicated node/edge models with ghost flags and edge bundling."""

    def __init__(self, curve_spacing: float = CURVE_SPACING) -> None:
        self.curve_spacing = curve_spacing

    def build(
        self,
        node_ids: Iterable[str],
        relationships: Iterable[Relationship],
        existing_ids: Collection[str],
        label_filter: str = "",
    ) -> GraphModel:
        """Build the graph model for one render.

        Args:
            node_ids: Identifiers that should appear even without edges
            relationships: All relationships currently in the index
            existing_ids: Identifiers of documents that exist
            label_filter: Keep only relationships whose label contains this text

        Returns:
            GraphModel with nodes in first-seen order and bundled edges
        """
        retained = self.filter_by_label(relationships, label_filter)
        nodes = self._build_nodes(node_ids, retained, existing_ids)
        edges = self._build_edges(retained)
        return GraphModel(nodes=nodes, edges=edges)

    @staticmethod
    def filter_by_label(
        relationships: Iterable[Relationship], label_filter: str
    ) -> list[Relationship]:
        """Keep relationships whose label contains the filter, case-insensitively.

        An empty filter keeps everything. Unlabeled relationships never match a
        non-empty filter.
        """
        needle = label_filter.strip().lower()
        if not needle:
            return list(relationships)
        return [rel for rel in relationships if rel.label and needle in rel.label.lower()]

    @staticmethod
    def _build_nodes(
        node_ids: Iterable[str],
        relationships: list[Relationship],
        existing_ids: Collection[str],
    ) -> list[GraphNode]:
        seen: dict[str, None] = dict.fromkeys(node_ids)
        for rel in relationships:
            seen[rel.source_file] = None
            seen[rel.target_file] = None
        return [GraphNode(id=node_id, is_ghost=node_id not in existing_ids) for node_id in seen]

    def _build_edges(self, relationships: list[Relationship]) -> list[GraphEdge]:
        edge_counts: dict[tuple[str, str], int] = {}
        edges = []
        for rel in relationships:
            key = pair_key(rel.source_file, rel.target_file)
            count = edge_counts.get(key, 0)
            edge_counts[key] = count + 1
            edges.append(GraphEdge(relationship=rel, curve_offset=count * self.curve_spacing))
        return edges


def pair_key(a: str, b: str) -> tuple[str, str]:
    """Key shared by both directions of an endpoint pair."""
    first, second = sorted((a, b))
    return first, second

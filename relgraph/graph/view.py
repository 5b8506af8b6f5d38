"""Live graph view over the relationship index."""

from typing import TYPE_CHECKING, Callable, Collection, Literal

from loguru import logger
from pydantic import BaseModel

from relgraph.config import GraphOptions
from relgraph.domain.graph import EdgeView, GraphEdge, GraphModel, GraphSnapshot, NodePosition
from relgraph.graph import styling
from relgraph.graph.builder import GraphModelBuilder
from relgraph.graph.layout import ForceLayout
from relgraph.index.base import RelationshipStore

if TYPE_CHECKING:
    from relgraph.ingestion.orchestrator import SyncOrchestrator

NavigateCallback = Callable[[str, int | None], None]
CreateCallback = Callable[[str], None]


class Activation(BaseModel):
    """What the host should do after a node or edge was activated."""

    action: Literal["navigate", "create"]
    doc_id: str
    line: int | None = None


class GraphView:
    """Rebuilds the graph model from the index and keeps its layout running."""

    def __init__(
        self,
        index: RelationshipStore,
        options: GraphOptions,
        existing_ids: Collection[str],
        *,
        on_navigate: NavigateCallback | None = None,
        on_create: CreateCallback | None = None,
        width: float = 800,
        height: float = 600,
        seed: int | None = None,
    ) -> None:
        """Initialize the view.

        Args:
            index: Relationship store queried on every refresh
            options: Display and physics options
            existing_ids: Identifiers of documents that exist, for ghost detection
            on_navigate: Called with (document, line) to open a document
            on_create: Called with a ghost node's identifier to create it
            width: Viewport width
            height: Viewport height
            seed: Seed for placement of new nodes
        """
        self.index = index
        self.options = options
        self.existing_ids = set(existing_ids)
        self.on_navigate = on_navigate
        self.on_create = on_create
        self.builder = GraphModelBuilder()
        self.layout = ForceLayout(options, width=width, height=height, seed=seed)
        self.model = GraphModel()
        self._detach: Callable[[], None] | None = None

    def attach(self, orchestrator: "SyncOrchestrator") -> None:
        """Refresh whenever the orchestrator applies a document change."""
        self.update_existing_ids(orchestrator.existing_ids)
        self._detach = orchestrator.subscribe(
            lambda: self.update_existing_ids(orchestrator.existing_ids)
        )

    def refresh(self) -> GraphModel:
        """Re-query the index and rebuild the graph model."""
        self.model = self.builder.build(
            self.index.all_node_identifiers(),
            self.index.all_relationships(),
            self.existing_ids,
            self.options.label_filter,
        )
        self.layout.set_graph(self.model)
        logger.debug(
            f"Graph refreshed: {len(self.model.nodes)} nodes, {len(self.model.edges)} edges"
        )
        return self.model

    def update_options(self, options: GraphOptions) -> None:
        self.options = options
        self.layout.update_options(options)
        self.refresh()

    def update_existing_ids(self, existing_ids: Collection[str]) -> None:
        self.existing_ids = set(existing_ids)
        self.refresh()

    def frame(self) -> bool:
        """Advance the layout by one display frame."""
        return self.layout.frame()

    def activate_node(self, node_id: str) -> Activation:
        """Open an existing document, or offer to create a ghost node's document."""
        node = next((n for n in self.model.nodes if n.id == node_id), None)
        if node is None:
            raise KeyError(f"Node {node_id} not in graph")

        if node.is_ghost:
            if self.on_create:
                self.on_create(node.id)
            return Activation(action="create", doc_id=node.id)

        if self.on_navigate:
            self.on_navigate(node.id, None)
        return Activation(action="navigate", doc_id=node.id)

    def activate_edge(self, edge_id: str) -> Activation:
        """Jump to the line declaring a relationship."""
        edge = self._edge(edge_id)
        rel = edge.relationship
        if self.on_navigate:
            self.on_navigate(rel.source_file, rel.line)
        return Activation(action="navigate", doc_id=rel.source_file, line=rel.line)

    def _edge(self, edge_id: str) -> GraphEdge:
        for edge in self.model.edges:
            if edge.id == edge_id:
                return edge
        raise KeyError(f"Edge {edge_id} not in graph")

    def snapshot(self) -> GraphSnapshot:
        """Current positions and styled edges."""
        positions = self.layout.positions()
        nodes = [
            NodePosition(id=n.id, x=positions[n.id][0], y=positions[n.id][1], is_ghost=n.is_ghost)
            for n in self.model.nodes
        ]

        edges = []
        for edge in self.model.edges:
            rel = edge.relationship
            source, target = positions[edge.source], positions[edge.target]
            show_label = self.options.show_labels and rel.label is not None
            label_x, label_y = (
                styling.label_position(source, target) if show_label else (None, None)
            )
            edges.append(
                EdgeView(
                    id=edge.id,
                    source=edge.source,
                    target=edge.target,
                    direction=rel.direction,
                    label=rel.label if show_label else None,
                    line=rel.line,
                    color=styling.edge_color(rel, self.options),
                    marker_start=styling.marker_start(rel, self.options),
                    marker_end=styling.marker_end(rel, self.options),
                    path=styling.edge_path(source, target, edge.curve_offset),
                    curve_offset=edge.curve_offset,
                    label_x=label_x,
                    label_y=label_y,
                )
            )

        return GraphSnapshot(
            nodes=nodes, edges=edges, alpha=self.layout.alpha, settled=self.layout.settled
        )

    def close(self) -> None:
        """Stop the layout and release subscriptions."""
        if self._detach:
            self._detach()
            self._detach = None
        self.layout.destroy()

"""Graph model derived from the relationship index."""

from pydantic import BaseModel

from relgraph.domain.relationship import Relationship


class GraphNode(BaseModel):
    """A node of the rendered graph.

    Ghost nodes are identifiers that no existing document carries.
    """

    id: str
    is_ghost: bool = False


class GraphEdge(BaseModel):
    """One visual edge per relationship.

    Edges sharing an unordered endpoint pair get increasing curve offsets so
    parallel edges render as distinct curves.
    """

    relationship: Relationship
    curve_offset: float = 0.0

    @property
    def id(self) -> str:
        return self.relationship.id

    @property
    def source(self) -> str:
        return self.relationship.source_file

    @property
    def target(self) -> str:
        return self.relationship.target_file


class GraphModel(BaseModel):
    """Nodes and bundled edges for a single rebuild."""

    nodes: list[GraphNode] = []
    edges: list[GraphEdge] = []

    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]

    def connectivity(self) -> set[tuple[str, str]]:
        """Endpoint pairs of every edge, used to detect shape changes."""
        return {(edge.source, edge.target) for edge in self.edges}


class NodePosition(BaseModel):
    """Position of a node in a layout snapshot."""

    id: str
    x: float
    y: float
    is_ghost: bool = False


class EdgeView(BaseModel):
    """Styled edge in a layout snapshot."""

    id: str
    source: str
    target: str
    direction: str
    label: str | None = None
    line: int
    color: str
    marker_start: str = ""
    marker_end: str = ""
    path: str
    curve_offset: float = 0.0
    label_x: float | None = None
    label_y: float | None = None


class GraphSnapshot(BaseModel):
    """Everything a renderer needs to draw one frame."""

    nodes: list[NodePosition] = []
    edges: list[EdgeView] = []
    alpha: float = 0.0
    settled: bool = True

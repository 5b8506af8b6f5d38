from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class GraphOptions(BaseModel):
    """Display and physics options consumed by the graph builder and layout.

    Attributes:
        show_arrows: Draw arrowheads on directed edges.
        show_labels: Draw label text on labeled edges.
        label_filter: Only keep edges whose label contains this text.
        outgoing_color: Edge colour for source -> target.
        incoming_color: Edge colour for target -> source.
        undirected_color: Edge colour for undirected edges.
        bidirectional_color: Edge colour for edges with arrows on both ends.
        link_distance: Ideal distance between connected nodes.
        node_repulsion: How strongly nodes push away from each other.
    """

    model_config = {"frozen": True}

    show_arrows: bool = True
    show_labels: bool = True
    label_filter: str = ""
    outgoing_color: str = Field("#00BFFF", pattern=HEX_COLOR)
    incoming_color: str = Field("#FF6347", pattern=HEX_COLOR)
    undirected_color: str = Field("#999999", pattern=HEX_COLOR)
    bidirectional_color: str = Field("#9B59B6", pattern=HEX_COLOR)
    link_distance: float = Field(150, ge=50, le=500)
    node_repulsion: float = Field(300, ge=0, le=1000)


class Settings(BaseSettings):
    # Document settings
    notes_folder: Path = Path("data/notes")
    document_extension: str = ".md"
    legacy_syntax: bool = False  # also accept <descriptor>[[target]]
    index_snapshot_path: str | None = None

    # Sync settings
    debounce_seconds: float = 0.5
    tick_interval_seconds: float = 1 / 30

    # Viewport
    viewport_width: float = 800
    viewport_height: float = 600

    # Graph display and physics
    show_arrows: bool = True
    show_labels: bool = True
    label_filter: str = ""
    outgoing_color: str = "#00BFFF"
    incoming_color: str = "#FF6347"
    undirected_color: str = "#999999"
    bidirectional_color: str = "#9B59B6"
    link_distance: float = 150
    node_repulsion: float = 300

    log_level: str = "INFO"  # Can be DEBUG, INFO, WARNING, ERROR, CRITICAL

    def graph_options(self) -> GraphOptions:
        """Freeze the graph-related settings into an options value."""
        return GraphOptions(
            show_arrows=self.show_arrows,
            show_labels=self.show_labels,
            label_filter=self.label_filter,
            outgoing_color=self.outgoing_color,
            incoming_color=self.incoming_color,
            undirected_color=self.undirected_color,
            bidirectional_color=self.bidirectional_color,
            link_distance=self.link_distance,
            node_repulsion=self.node_repulsion,
        )


settings = Settings()

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from relgraph.api import create_app
from relgraph.config import GraphOptions
from relgraph.graph.view import GraphView
from relgraph.index.memory_index import RelationshipIndex
from relgraph.ingestion.orchestrator import SyncOrchestrator
from tests.fakes import FakeClock, FakeDocumentSource


@pytest.fixture
def vault_documents() -> dict[str, str]:
    return {
        "Alice": "# Alice\nAlice <<manages+>>[[Bob]]\n<<-+>>[[Project X]]\n",
        "Bob": "# Bob\n<<+manages>>[[Alice]]\nBob <<depends on>>[[Library Core]]\n",
        "Project X": "Plain note that mentions [[Alice]] as an ordinary wikilink.",
    }


@pytest.fixture
def fake_source(vault_documents: dict[str, str]) -> FakeDocumentSource:
    return FakeDocumentSource(vault_documents)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock(start=100.0)


@pytest.fixture
def index() -> RelationshipIndex:
    return RelationshipIndex()


@pytest.fixture
def orchestrator(
    index: RelationshipIndex, fake_source: FakeDocumentSource, fake_clock: FakeClock
) -> SyncOrchestrator:
    return SyncOrchestrator(
        index=index,
        document_source=fake_source,
        debounce_seconds=0.5,
        clock=fake_clock,
    )


@pytest.fixture
def graph_options() -> GraphOptions:
    return GraphOptions()


@pytest.fixture
def navigations() -> list[tuple[str, int | None]]:
    return []


@pytest.fixture
def creations() -> list[str]:
    return []


@pytest.fixture
def view(
    index: RelationshipIndex,
    graph_options: GraphOptions,
    orchestrator: SyncOrchestrator,
    navigations: list[tuple[str, int | None]],
    creations: list[str],
) -> Generator[GraphView, None, None]:
    """Graph view attached to a fully scanned orchestrator."""
    graph_view = GraphView(
        index,
        graph_options,
        orchestrator.existing_ids,
        on_navigate=lambda doc_id, line: navigations.append((doc_id, line)),
        on_create=creations.append,
        seed=7,
    )
    graph_view.attach(orchestrator)
    orchestrator.full_scan()
    yield graph_view
    graph_view.close()


@pytest.fixture
def test_client(orchestrator: SyncOrchestrator, view: GraphView) -> TestClient:
    """Create test client around the scanned orchestrator and view."""
    app = create_app(orchestrator=orchestrator, view=view, tick_interval_seconds=0.01)
    return TestClient(app)


@pytest.fixture
def temp_notes_base() -> Generator[Path, None, None]:
    """Create a temporary notes directory structure."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def notes_directory(temp_notes_base: Path) -> Path:
    """Create notes subdirectory."""
    notes_dir = temp_notes_base / "notes"
    notes_dir.mkdir()
    return notes_dir

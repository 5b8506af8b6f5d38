import sys

from loguru import logger

from relgraph.api import create_app
from relgraph.config import settings
from relgraph.document_store.local import FolderDocumentSource
from relgraph.graph.view import GraphView
from relgraph.index.memory_index import RelationshipIndex
from relgraph.ingestion.orchestrator import SyncOrchestrator

logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])

logger.info(f"Indexing relationship declarations in {settings.notes_folder}")
index = RelationshipIndex(
    extension=settings.document_extension,
    legacy_syntax=settings.legacy_syntax,
)
document_source = FolderDocumentSource(settings.notes_folder, settings.document_extension)
orchestrator = SyncOrchestrator(
    index=index,
    document_source=document_source,
    debounce_seconds=settings.debounce_seconds,
    extension=settings.document_extension,
)
view = GraphView(
    index,
    settings.graph_options(),
    orchestrator.existing_ids,
    on_navigate=lambda doc_id, line: logger.info(f"Navigate to {doc_id} line {line}"),
    on_create=lambda doc_id: logger.info(f"Offer to create {doc_id}"),
    width=settings.viewport_width,
    height=settings.viewport_height,
)
view.attach(orchestrator)
orchestrator.full_scan()

app = create_app(
    orchestrator=orchestrator,
    view=view,
    tick_interval_seconds=settings.tick_interval_seconds,
)

from typing import Literal

from fastapi import APIRouter, HTTPException
from loguru import logger
from pydantic import BaseModel

from relgraph.config import GraphOptions
from relgraph.domain.graph import GraphSnapshot
from relgraph.domain.relationship import Relationship
from relgraph.graph.view import Activation, GraphView
from relgraph.ingestion.orchestrator import SyncOrchestrator


class DocumentText(BaseModel):
    text: str


class RenameRequest(BaseModel):
    old_id: str
    new_id: str


class DragRequest(BaseModel):
    phase: Literal["start", "move", "end"]
    x: float | None = None
    y: float | None = None


class SyncStatus(BaseModel):
    pending: int
    documents: int
    relationships: int


def _status(orchestrator: SyncOrchestrator) -> SyncStatus:
    return SyncStatus(
        pending=orchestrator.pending,
        documents=len(orchestrator.existing_ids),
        relationships=len(orchestrator.index.all_relationships()),
    )


def _create_document_endpoints(router: APIRouter, orchestrator: SyncOrchestrator) -> None:
    """Inbound document lifecycle events from the host."""

    @router.post("/api/documents/{doc_id}")
    async def create_document(doc_id: str, body: DocumentText | None = None) -> SyncStatus:
        orchestrator.apply_create(doc_id, body.text if body else None)
        return _status(orchestrator)

    @router.put("/api/documents/{doc_id}")
    async def modify_document(doc_id: str, body: DocumentText) -> SyncStatus:
        orchestrator.apply_modify(doc_id, body.text)
        return _status(orchestrator)

    @router.delete("/api/documents/{doc_id}")
    async def delete_document(doc_id: str) -> SyncStatus:
        orchestrator.apply_delete(doc_id)
        return _status(orchestrator)

    @router.post("/api/rename")
    async def rename_document(body: RenameRequest) -> SyncStatus:
        orchestrator.apply_rename(body.old_id, body.new_id)
        return _status(orchestrator)

    @router.post("/api/scan")
    async def full_scan() -> SyncStatus:
        orchestrator.full_scan()
        return _status(orchestrator)

    @router.post("/api/flush")
    async def flush() -> SyncStatus:
        orchestrator.flush_all()
        return _status(orchestrator)


def _create_graph_endpoints(router: APIRouter, view: GraphView) -> None:
    """Outbound graph queries and interaction callbacks."""

    @router.get("/api/graph")
    async def graph() -> GraphSnapshot:
        return view.snapshot()

    @router.get("/api/relationships")
    async def relationships(source: str | None = None) -> list[Relationship]:
        if source is not None:
            return view.index.relationships_for(source)
        return view.index.all_relationships()

    @router.get("/api/nodes")
    async def nodes() -> list[str]:
        return view.index.all_node_identifiers()

    @router.put("/api/options")
    async def update_options(options: GraphOptions) -> GraphSnapshot:
        view.update_options(options)
        return view.snapshot()

    @router.post("/api/nodes/{node_id}/activate")
    async def activate_node(node_id: str) -> Activation:
        try:
            return view.activate_node(node_id)
        except KeyError as err:
            logger.warning(f"Activation of unknown node {node_id}")
            raise HTTPException(status_code=404, detail="Node not found") from err

    @router.post("/api/edges/{edge_id}/activate")
    async def activate_edge(edge_id: str) -> Activation:
        try:
            return view.activate_edge(edge_id)
        except KeyError as err:
            logger.warning(f"Activation of unknown edge {edge_id}")
            raise HTTPException(status_code=404, detail="Edge not found") from err

    @router.post("/api/nodes/{node_id}/drag")
    async def drag_node(node_id: str, body: DragRequest) -> GraphSnapshot:
        try:
            if body.phase == "start":
                view.layout.drag_start(node_id)
            elif body.phase == "move":
                if body.x is None or body.y is None:
                    raise HTTPException(status_code=422, detail="Drag move needs x and y")
                view.layout.drag_to(node_id, body.x, body.y)
            else:
                view.layout.drag_end(node_id)
        except KeyError as err:
            raise HTTPException(status_code=404, detail="Node not found") from err
        return view.snapshot()

    @router.post("/api/layout/tick")
    async def tick(steps: int = 1) -> GraphSnapshot:
        view.layout.tick(max(steps, 0))
        return view.snapshot()


def get_endpoints_router(*, orchestrator: SyncOrchestrator, view: GraphView) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    async def health_check():
        return {"status": "healthy"}

    _create_document_endpoints(router, orchestrator)
    _create_graph_endpoints(router, view)

    return router

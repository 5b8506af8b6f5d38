"""CLI for scanning a folder of notes, settling the graph layout and saving it as JSON"""

import argparse
import json
import sys
from pathlib import Path

from loguru import logger

from relgraph.config import settings
from relgraph.document_store.local import FolderDocumentSource
from relgraph.graph.view import GraphView
from relgraph.index.memory_index import RelationshipIndex
from relgraph.ingestion.orchestrator import SyncOrchestrator


def main(
    in_folder: str,
    outfile: str,
    *,
    index_outfile: str | None = None,
    label_filter: str | None = None,
    max_ticks: int = 1000,
    legacy_syntax: bool = False,
    seed: int | None = None,
) -> dict:
    # Setup paths and services
    folder = Path(in_folder)
    index = RelationshipIndex(extension=settings.document_extension, legacy_syntax=legacy_syntax)
    orchestrator = SyncOrchestrator(
        index=index,
        document_source=FolderDocumentSource(folder, settings.document_extension),
        extension=settings.document_extension,
    )
    options = settings.graph_options()
    if label_filter is not None:
        options = options.model_copy(update={"label_filter": label_filter})

    orchestrator.full_scan()
    view = GraphView(
        index,
        options,
        orchestrator.existing_ids,
        width=settings.viewport_width,
        height=settings.viewport_height,
        seed=seed,
    )
    view.refresh()
    ticks = view.layout.run(max_ticks)
    state = "settled" if view.layout.settled else "stopped"
    logger.info(f"Layout {state} after {ticks} ticks")

    snapshot = view.snapshot().model_dump()
    with open(outfile, "w") as f:
        json.dump(snapshot, f, indent=2)
    logger.info(
        f"Wrote {len(snapshot['nodes'])} nodes, {len(snapshot['edges'])} edges to {outfile}"
    )

    if index_outfile:
        index.save(index_outfile)

    view.close()
    return snapshot


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--in-folder", type=str, required=True, help="Folder containing markdown files"
    )
    parser.add_argument(
        "--outfile", type=str, required=False, help="Output graph JSON file", default="graph.json"
    )
    parser.add_argument(
        "--outfile-index",
        type=str,
        required=False,
        help="Optional relationship index snapshot file",
        default=settings.index_snapshot_path,
    )
    parser.add_argument(
        "--label-filter", type=str, required=False, help="Only keep edges with this label text"
    )
    parser.add_argument(
        "--max-ticks", type=int, required=False, help="Maximum layout ticks", default=1000
    )
    parser.add_argument(
        "--legacy-syntax",
        action="store_true",
        help="Also parse the single-delimiter <descriptor>[[target]] form",
        default=settings.legacy_syntax,
    )
    parser.add_argument("--seed", type=int, required=False, help="Seed for node placement")

    args = parser.parse_args()

    logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])
    main(
        in_folder=args.in_folder,
        outfile=args.outfile,
        index_outfile=args.outfile_index,
        label_filter=args.label_filter,
        max_ticks=args.max_ticks,
        legacy_syntax=args.legacy_syntax,
        seed=args.seed,
    )

#!/usr/bin/env python3
"""
Main CLI entry point for the Renstra planner.

Provides commands for database setup, importing the Kepmen reference
catalogue, browsing hierarchy grids and serving the API.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from src.config.settings import settings
from src.db.gateway import DataAccessError, DataGateway
from src.db.session import init_db, reset_db
from src.pipeline.reference_importer import ReferenceImporter
from src.schemas.hierarchy import Dataset, HierarchyLevel
from src.services.dashboard import dataset_summary
from src.services.field_mapping import resolve_fields
from src.services.grid_orchestrator import filter_rows
from src.services.navigation import mount_grid
from src.utils.formatting import format_rupiah, join_items
from src.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def setup_cli_logging(verbose: bool = False) -> None:
    """Set up logging for CLI operations."""
    log_level = "DEBUG" if verbose else "INFO"
    setup_logging(level=log_level, structured=False)  # Human-readable for CLI


def cmd_init_db(args: argparse.Namespace) -> int:
    """Initialize database tables."""
    try:
        logger.info("Initializing database...")

        if args.reset:
            logger.warning("Resetting database (this will delete all data!)")
            if not args.force:
                confirm = input("Are you sure? Type 'yes' to confirm: ")
                if confirm.lower() != 'yes':
                    logger.info("Database reset cancelled")
                    return 0
            reset_db()
            logger.info("Database reset complete")
        else:
            init_db()
            logger.info("Database initialization complete")

        return 0

    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")
        return 1


def cmd_import_reference(args: argparse.Namespace) -> int:
    """Import Kepmen reference rows from a JSON file."""
    input_path = Path(args.input_path)
    if not input_path.is_file() or input_path.suffix != '.json':
        logger.error(f"Input must be an existing JSON file: {input_path}")
        return 1

    importer = ReferenceImporter(DataGateway(allow_reference_writes=True))
    success = importer.import_json_file(input_path)

    print(f"Rows imported: {importer.stats['rows_created']}")
    if not success:
        print(f"Errors: {importer.stats['errors']}")
        return 1
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """Print the rows of one hierarchy level."""
    dataset = Dataset(args.dataset)
    level = HierarchyLevel(args.level)
    gateway = DataGateway()

    if dataset.editable:
        grid = mount_grid(f"/{dataset.value}", gateway)
        if not grid.set_level(level):
            for note in grid.notifications.drain():
                logger.error(note.description)
            return 1
        grid.set_search(args.search)
        fields = grid.fields
        rows = grid.visible_rows
    else:
        fields = resolve_fields(level, dataset)
        try:
            rows = filter_rows(gateway.fetch(fields.table), args.search, fields)
        except DataAccessError as e:
            logger.error(f"Failed to load data: {e}")
            return 1

    print(f"\n{dataset.value} / {level.label} ({len(rows)} rows)")
    for row in rows:
        print(f"{row.get(fields.code_field)}  {row.get(fields.name_field)}")
        if args.details and fields.has_details:
            print(f"    Sasaran: {join_items(row.get(fields.sasaran_field))}")
            print(f"    Indikator: {join_items(row.get(fields.indikator_field))}")
            print(f"    Satuan: {row.get(fields.satuan_field) or '-'}")
        if fields.budget_fields:
            budgets = " | ".join(format_rupiah(row.get(b)) for b in fields.budget_fields)
            print(f"    Anggaran N+1..N+{len(fields.budget_fields)}: {budgets}")

    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Check database health and row totals."""
    logger.info("Checking system status...")
    gateway = DataGateway()

    try:
        summaries = [dataset_summary(gateway, dataset) for dataset in Dataset]
    except DataAccessError as e:
        print("\nSystem Status:")
        print("Database: error")
        print(f"  - {e}")
        return 1

    print("\nSystem Status:")
    print(f"Database: connected ({settings.database_url})")
    for summary in summaries:
        print(f"\n{summary['dataset']}:")
        for level, total in summary["totals"].items():
            print(f"  {level}: {total}")
        for level, sums in summary.get("budgets", {}).items():
            print(f"  {level} budget: {format_rupiah(sum(sums))}")

    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Renstra Planner CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Initialize database
  python -m src.main init-db

  # Import the Kepmen 900 reference catalogue
  python -m src.main import-reference data/kepmen_900_sample.json

  # List programs of the strategic plan containing "kesehatan"
  python -m src.main list renstra program --search kesehatan

  # Row totals and budgets
  python -m src.main status

  # Start the API
  python -m src.main serve --port 8000
        """
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Init DB command
    init_parser = subparsers.add_parser("init-db", help="Initialize database")
    init_parser.add_argument(
        "--reset",
        action="store_true",
        help="Reset database (delete all data)"
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Force reset without confirmation"
    )

    # Import command
    import_parser = subparsers.add_parser("import-reference", help="Import Kepmen reference data")
    import_parser.add_argument("input_path", help="Path to the reference JSON file")

    # List command
    list_parser = subparsers.add_parser("list", help="List rows of a hierarchy level")
    list_parser.add_argument("dataset", choices=[d.value for d in Dataset])
    list_parser.add_argument("level", choices=[lv.value for lv in HierarchyLevel])
    list_parser.add_argument(
        "--search",
        default="",
        help="Filter on code and name (case-insensitive)"
    )
    list_parser.add_argument(
        "--details",
        action="store_true",
        help="Show objectives, indicators and unit"
    )

    # Status command
    subparsers.add_parser("status", help="Check system status")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Set up logging
    setup_cli_logging(args.verbose)

    # Route to appropriate command
    if args.command == "init-db":
        return cmd_init_db(args)
    elif args.command == "import-reference":
        return cmd_import_reference(args)
    elif args.command == "list":
        return cmd_list(args)
    elif args.command == "status":
        return cmd_status(args)
    elif args.command == "serve":
        return cmd_serve(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    try:
        exit_code = main()
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        sys.exit(130)

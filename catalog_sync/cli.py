"""
Catalog Sync CLI

Runs the Shopify catalog import and the Google Drive folder import from the
command line, shows the import status, and initializes the database.
"""

import argparse
import json
import logging
import sys

from .config import get_config
from .database import close_database, db_session_scope, init_database
from .exceptions import ImportAbortedError
from .logging_config import setup_logging
from .models import SyncType
from .services.import_orchestrator import ImportOrchestrator
from .services.progress_tracker import SyncProgressTracker

logger = logging.getLogger(__name__)


def _print_json(data):
    print(json.dumps(data, indent=2, default=str))


def import_catalog(args, config):
    """Import the Shopify catalog."""
    with db_session_scope() as session:
        summary = ImportOrchestrator(session, config=config).run_catalog_import()
    _print_json(summary.to_dict())
    return 0 if summary.success else 2


def import_folder(args, config):
    """Import a Google Drive SKU folder into Storj."""
    folder_id = args.folder_id or config.GOOGLE_DRIVE_SKU_FOLDER_ID
    bucket = args.bucket or config.STORJ_S3_BUCKET

    if not folder_id:
        logger.error("folder id is required (or set GOOGLE_DRIVE_SKU_FOLDER_ID)")
        return 1
    if not bucket:
        logger.error("bucket is required (use --bucket or set STORJ_S3_BUCKET)")
        return 1

    with db_session_scope() as session:
        summary = ImportOrchestrator(session, config=config).run_folder_import(
            folder_id, bucket, args.base_path
        )
    _print_json(summary.to_dict())
    return 0 if summary.success else 2


def show_status(args, config):
    """Show import status."""
    sync_type = SyncType.DRIVE_IMPORT.value if args.drive else SyncType.SHOPIFY_IMPORT.value
    with db_session_scope() as session:
        status = SyncProgressTracker(session).status(
            sync_type, errors_page=args.errors_page, errors_page_size=args.errors_page_size
        )
    _print_json(status)
    return 0


def init_db(args, config):
    """Create database tables."""
    logger.info("Database tables are ready")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog='catalog-sync',
        description='Shopify catalog and Google Drive media sync',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('--env', help='Configuration name (development, production, testing)')
    parser.add_argument('--database-url', help='Database URL (overrides DATABASE_URL)')
    parser.add_argument('--log-level', help='Log level (overrides LOG_LEVEL)')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Catalog import command
    catalog_parser = subparsers.add_parser('import-catalog', help='Import all products from Shopify')
    catalog_parser.set_defaults(func=import_catalog)

    # Folder import command
    folder_parser = subparsers.add_parser('import-folder', help='Import a Google Drive SKU folder into Storj')
    folder_parser.add_argument('folder_id', nargs='?', help='Google Drive folder ID (default GOOGLE_DRIVE_SKU_FOLDER_ID)')
    folder_parser.add_argument('--bucket', help='Target bucket (default STORJ_S3_BUCKET)')
    folder_parser.add_argument('--base-path', help='Key prefix inside the bucket (default STORJ_BASE_PATH)')
    folder_parser.set_defaults(func=import_folder)

    # Status command
    status_parser = subparsers.add_parser('status', help='Show import status')
    status_parser.add_argument('--drive', action='store_true', help='Show the Google Drive import instead of Shopify')
    status_parser.add_argument('--errors-page', type=int, default=1, help='Page of recent errors')
    status_parser.add_argument('--errors-page-size', type=int, default=10, help='Recent errors per page')
    status_parser.set_defaults(func=show_status)

    # Init command
    init_parser = subparsers.add_parser('init-db', help='Create database tables')
    init_parser.set_defaults(func=init_db)

    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    config = get_config(args.env)
    setup_logging(config.LOG_PATH, args.log_level or config.LOG_LEVEL)

    init_database(args.database_url or config.DATABASE_URL, create_tables=True)
    try:
        return args.func(args, config)
    except ImportAbortedError as e:
        logger.error(f"Import aborted: {e}")
        return 1
    finally:
        close_database()


if __name__ == '__main__':
    sys.exit(main())

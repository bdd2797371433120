"""
Sync API endpoints

Thin HTTP surface over the import orchestrator: trigger the Shopify catalog
import and the Google Drive folder import, poll the catalog import status, and
browse the Drive folder and the Storj bucket.
"""

import logging
from flask import Blueprint, Flask, current_app, jsonify, request
from flask_cors import CORS

from .config import get_config
from .database import db_session_scope, init_database
from .exceptions import ConfigurationError, ImportAbortedError, SyncError
from .logging_config import setup_app_logging
from .models import SyncType
from .services.asset_import_service import clean_prefix
from .services.drive_client import GoogleDriveClient
from .services.import_orchestrator import ImportOrchestrator
from .services.object_storage import ObjectStorage
from .services.progress_tracker import SyncProgressTracker

# Create blueprint
sync_bp = Blueprint('catalog_sync', __name__, url_prefix='/api/sync')

logger = logging.getLogger(__name__)


def _sync_config():
    return current_app.config.get('SYNC_CONFIG') or get_config()


@sync_bp.route('/shopify/import', methods=['POST'])
def run_shopify_import():
    """Run the full Shopify catalog import and return its summary."""
    try:
        with db_session_scope() as session:
            summary = ImportOrchestrator(session, config=_sync_config()).run_catalog_import()
        return jsonify(summary.to_dict())
    except ImportAbortedError as e:
        logger.error(f"Shopify import aborted: {e}")
        return jsonify({'error': 'Import failed', 'message': str(e), 'runId': e.run_id}), 500


@sync_bp.route('/shopify/import', methods=['GET'])
def shopify_import_status():
    """Get the status of the Shopify catalog import."""
    with db_session_scope() as session:
        status = SyncProgressTracker(session).status(
            SyncType.SHOPIFY_IMPORT.value,
            errors_page=request.args.get('errorsPage', 1),
            errors_page_size=request.args.get('errorsPageSize', 10)
        )
    return jsonify(status)


@sync_bp.route('/gdrive/import', methods=['POST'])
def run_gdrive_import():
    """Copy a Google Drive SKU folder tree into Storj and the media library."""
    config = _sync_config()
    data = request.get_json(silent=True) or {}

    folder_id = data.get('folderId') or config.GOOGLE_DRIVE_SKU_FOLDER_ID
    bucket = data.get('bucket') or config.STORJ_S3_BUCKET
    base_path = clean_prefix(data.get('basePath')) or clean_prefix(config.STORJ_BASE_PATH)

    if not folder_id:
        return jsonify({'error': 'folderId is required (or set GOOGLE_DRIVE_SKU_FOLDER_ID)'}), 400
    if not bucket:
        return jsonify({'error': 'bucket is required (set STORJ_S3_BUCKET or STORJ_BUCKET)'}), 400

    logger.info(f"Google Drive import started for folder {folder_id} into bucket {bucket}")
    try:
        with db_session_scope() as session:
            summary = ImportOrchestrator(session, config=config).run_folder_import(folder_id, bucket, base_path)
        return jsonify(summary.to_dict())
    except ImportAbortedError as e:
        logger.error(f"Google Drive import aborted: {e}")
        return jsonify({'error': 'Import failed', 'message': str(e), 'runId': e.run_id}), 500


@sync_bp.route('/gdrive/list', methods=['GET'])
def list_gdrive_folder():
    """List the direct children of a Google Drive folder."""
    config = _sync_config()
    folder_id = request.args.get('folderId') or config.GOOGLE_DRIVE_SKU_FOLDER_ID
    if not folder_id:
        return jsonify({'error': 'folderId is required (or set GOOGLE_DRIVE_SKU_FOLDER_ID)'}), 400

    try:
        files = GoogleDriveClient.from_config(config).list_children(folder_id)
        return jsonify({'folderId': folder_id, 'files': files})
    except ConfigurationError as e:
        return jsonify({'error': 'Google Drive not configured', 'message': str(e)}), 503
    except SyncError as e:
        logger.error(f"Error listing Google Drive folder {folder_id}: {e}")
        return jsonify({'error': 'Failed to list folder', 'message': str(e)}), 502


@sync_bp.route('/storj/list', methods=['GET'])
def list_storj_prefix():
    """List one page of objects under a Storj prefix."""
    config = _sync_config()
    bucket = request.args.get('bucket') or config.STORJ_S3_BUCKET
    prefix = request.args.get('prefix', '')
    if not bucket:
        return jsonify({'error': 'bucket is required (set STORJ_S3_BUCKET or STORJ_BUCKET)'}), 400

    try:
        listing = ObjectStorage.from_config(config).list_prefix(
            bucket, prefix, continuation_token=request.args.get('continuationToken')
        )
        return jsonify({'bucket': bucket, 'prefix': prefix, **listing})
    except ConfigurationError as e:
        return jsonify({'error': 'Storj not configured', 'message': str(e)}), 503
    except SyncError as e:
        logger.error(f"Error listing s3://{bucket}/{prefix}: {e}")
        return jsonify({'error': 'Failed to list bucket', 'message': str(e)}), 502


def create_app(config_name=None, database_url=None):
    """Application factory serving the sync blueprint."""
    config = get_config(config_name)

    app = Flask(__name__)
    app.config.from_object(config)
    app.config['SYNC_CONFIG'] = config

    CORS(app, origins=config.CORS_ORIGINS, supports_credentials=True)
    setup_app_logging(app, log_path=None if getattr(config, "TESTING", False) else config.LOG_PATH, level=config.LOG_LEVEL)

    init_database(database_url or config.DATABASE_URL, create_tables=True)
    app.register_blueprint(sync_bp)
    return app

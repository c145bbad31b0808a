#!/usr/bin/env python3
"""
Region Picker API Server
Persists selected image regions (one row per pixel) to the shape store.
"""

import os
import logging
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify
from flask_cors import CORS

from .repositories.shape_repository import ShapeRepository
from .services.shape_service import ShapeService

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Centralized logging configuration for the entry points."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )


def create_app(shape_service: ShapeService = None) -> Flask:
    """Build the Flask app; a ShapeService backed by DATABASE_URL is created if none is given."""
    app = Flask(__name__)
    CORS(app)  # Enable CORS for browser clients
    app.config['MAX_CONTENT_LENGTH'] = int(os.getenv("MAX_UPLOAD_SIZE_MB", "100")) * 1024 * 1024
    app.json.ensure_ascii = False

    shape_service = shape_service or ShapeService(ShapeRepository())

    @app.route('/api/save-shape', methods=['POST'])
    def save_shape():
        """Insert the posted pixel rows in one transaction."""
        data = request.get_json(silent=True, force=True)
        try:
            result = shape_service.save_payload(data)
        except Exception as e:
            logger.error(f"Save shape error: {e}")
            result = {'success': False, 'error': str(e)}
        return jsonify(result)

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'message': 'Region Picker API is running',
        })

    @app.errorhandler(413)
    def too_large(e):
        """Handle request too large error."""
        return jsonify({'success': False, 'error': 'Request too large'}), 413

    @app.errorhandler(400)
    def bad_request(e):
        """Handle bad request error."""
        return jsonify({'success': False, 'error': 'Bad request'}), 400

    @app.errorhandler(500)
    def internal_error(e):
        """Handle internal server error."""
        logger.error(f"Internal server error: {e}")
        return jsonify({'success': False, 'error': 'Internal server error'}), 500

    return app


def main():
    configure_logging()
    host = os.getenv("API_HOST", "127.0.0.1")
    port = int(os.getenv("API_PORT", "5000"))
    app = create_app()

    print("🚀 Starting Region Picker API Server...")
    print(f"🗄️  Database: {os.getenv('DATABASE_URL', 'sqlite:///data/shape_data.db').split('@')[-1]}")
    print(f"🔧 Max request size: {app.config['MAX_CONTENT_LENGTH'] // (1024*1024)}MB")
    print("🌐 CORS enabled for browser clients")
    print("📋 Endpoints:")
    print("   POST /api/save-shape")
    print("   GET  /api/health")
    print("="*60)

    app.run(host=host, port=port, debug=False)


if __name__ == '__main__':
    main()

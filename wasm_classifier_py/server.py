"""
WebAssembly Classifier Flask Server

Features:
- Multi-file uploads classified in a single request
- JSON results with matched rule and decode status
- Upload size limit from configuration
"""

import re
import os
from typing import Optional

from flask import Flask, request, jsonify
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.utils import secure_filename

from . import __version__
from .config import Config
from .classifier.engine import Classifier
from .classifier.labels import Label
from .classifier.signatures import SignatureCatalog
from .formats.wasm import parse


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for echoing back to the client."""
    filename = secure_filename(filename)
    filename = re.sub(r'[^\w\-_\.]', '_', filename)
    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[:250] + ext
    return filename


def create_app(config: Optional[Config] = None, classifier: Optional[Classifier] = None) -> Flask:
    """
    Build the Flask application.

    Args:
        config: Configuration, loaded from the packaged config.json by default
        classifier: Classifier to use, built from the configured catalog by default
    """
    config = config if config is not None else Config.load(None)
    if classifier is None:
        path = config.signatures_file
        classifier = Classifier(SignatureCatalog.load(path)) if path else Classifier()

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = config.max_upload_size

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(_error):
        limit_mb = config.max_upload_size // (1024 * 1024)
        return jsonify({'error': f'Upload exceeds {limit_mb}MB limit'}), 413

    @app.route('/api/classify', methods=['POST'])
    def classify_upload():
        """Classify every uploaded module."""
        if 'files' not in request.files:
            return jsonify({'error': 'No files provided'}), 400

        results = []
        for file in request.files.getlist('files'):
            if not file.filename:
                continue

            view = parse(file.read())
            result = classifier.classify(view)
            results.append({
                'filename': sanitize_filename(file.filename),
                'label': result.label.value,
                'matchedRule': result.matched_rule,
                'evidence': result.evidence,
                'decodeStatus': view.decode_status.value,
                'decodeError': view.error,
            })

        if not results:
            return jsonify({'error': 'No files provided'}), 400

        return jsonify({'results': results})

    @app.route('/api/labels')
    def list_labels():
        """List the labels and rules in priority order."""
        return jsonify({
            'labels': [label.value for label in Label],
            'rules': [
                {'id': rule.rule_id, 'label': rule.label.value}
                for rule in classifier.rules
            ],
        })

    @app.route('/api/docs')
    def api_docs():
        """API documentation."""
        return jsonify({
            'name': 'WebAssembly Classifier API',
            'version': __version__,
            'endpoints': {
                'POST /api/classify': {
                    'description': 'Classify uploaded WebAssembly modules',
                    'content_type': 'multipart/form-data',
                    'fields': {'files': 'one or more module files'},
                    'response': {'results': [{
                        'filename': 'string',
                        'label': '|'.join(label.value for label in Label),
                        'matchedRule': 'string or null',
                        'evidence': 'string or null',
                        'decodeStatus': 'string',
                        'decodeError': 'string or null',
                    }]}
                },
                'GET /api/labels': {
                    'description': 'Labels and rules in priority order'
                },
            },
            'limits': {
                'max_upload_size': f'{config.max_upload_size // (1024 * 1024)} MB',
            },
        })

    return app


if __name__ == '__main__':
    print("=" * 60)
    print(f"WebAssembly Classifier Server v{__version__}")
    print("=" * 60)
    print("API Docs: http://localhost:5000/api/docs")
    print("=" * 60)

    create_app().run(host='0.0.0.0', port=5000, debug=False, threaded=True)

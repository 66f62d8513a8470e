"""
app.py: Flask application for the write side of the crime records service.

Handles everything that changes data or the logged-in session:
- login / register / logout
- add, update and delete crimes (Admin only)
- CSV dataset import in the background, with a status endpoint (Admin only)

Run with: python -m crime_write_service.app (starts on port 5000).
The read service (crime_read_service.app) serves queries from the same database.
"""

import logging

from flask import Flask, jsonify, request
from jsonschema import validate, ValidationError as SchemaError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from crime_write_service import config
from crime_write_service.auth import AccessDeniedError, AuthError, AuthService, Operation, require
from crime_write_service.consumers.crime_importer import ALREADY_RUNNING_MESSAGE, ImportJobStatus
from crime_write_service.consumers.sample_data import create_sample_data, load_sample_data
from crime_write_service.db.preferences import PreferenceStore
from crime_write_service.db.record_store import RecordStore, RecordStoreError
from crime_write_service.db.session import make_engine
from crime_write_service.models import CrimeRecord
from crime_write_service.repository import CrimeRepository
from crime_write_service.validation import ValidationError

logger = logging.getLogger(__name__)

LOGIN_SCHEMA = {
    "type": "object",
    "properties": {
        "email": {"type": "string"},
        "password": {"type": "string"},
    },
    "required": ["email", "password"],
}

REGISTER_SCHEMA = {
    "type": "object",
    "properties": {
        "full_name": {"type": "string"},
        "email": {"type": "string"},
        "password": {"type": "string"},
        "role": {"type": "string", "enum": ["Admin", "User"]},
    },
    "required": ["full_name", "email", "password"],
}

CRIME_SCHEMA = {
    "type": "object",
    "properties": {
        "crime_id": {"type": "string"},
        "crime_type": {"type": "string"},
        "reported_by": {"type": "string"},
        "lsoa_name": {"type": "string"},
        "latitude": {"type": "number"},
        "longitude": {"type": "number"},
        "outcome_category": {"type": "string"},
        "month": {"type": "string"},
    },
    "required": ["crime_type", "latitude", "longitude"],
}

IMPORT_SCHEMA = {
    "type": "object",
    "properties": {
        "source": {"type": "string", "minLength": 1},
    },
}


def _session_to_dict(session):
    return {
        "user_id": session.user_id,
        "name": session.display_name,
        "email": session.email,
        "role": session.role.value,
    }


def _json_body(schema):
    """Request JSON checked against schema. Raises SchemaError."""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    validate(instance=data, schema=schema)
    return data


def create_app(engine=None):
    """Build the write service app. Pass an engine to use a different database (tests do)."""
    app = Flask(__name__)
    app.logger.setLevel("INFO")

    engine = engine or make_engine()
    store = RecordStore(engine)
    auth = AuthService(PreferenceStore(engine))
    repository = CrimeRepository(store)
    import_status = ImportJobStatus()

    repository.sync.check_connectivity()
    if config.SEED_SAMPLE_DATA:
        load_sample_data(store)

    app.extensions["crimes"] = {
        "engine": engine,
        "store": store,
        "auth": auth,
        "repository": repository,
        "import_status": import_status,
    }

    # ---------- error handlers ----------

    @app.errorhandler(SchemaError)
    def bad_request_body(error):
        return jsonify({"error": f"Invalid request body: {error.message}"}), 400

    @app.errorhandler(ValidationError)
    def invalid_record(error):
        return jsonify({"error": str(error), "problems": error.problems}), 400

    @app.errorhandler(AuthError)
    def auth_failed(error):
        return jsonify({"error": str(error)}), 401

    @app.errorhandler(AccessDeniedError)
    def access_denied(error):
        return jsonify({"error": str(error)}), 403

    @app.errorhandler(RecordStoreError)
    def store_failed(error):
        app.logger.error(f"Store failure: {error}")
        return jsonify({"error": "Database error"}), 500

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Endpoint not found"}), 404

    # ---------- health ----------

    @app.route('/health', methods=['GET'])
    def health():
        """Checks the database connection and reports the remote sync status."""
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            database_status = True
        except SQLAlchemyError as e:
            app.logger.error(f"Database health check failed: {e}")
            database_status = False

        return jsonify({
            "status": "ok" if database_status else "error",
            "service": "write_service",
            "database": database_status,
            "sync": repository.sync.status,
        })

    # ---------- session ----------

    @app.route('/api/login', methods=['POST'])
    def login():
        data = _json_body(LOGIN_SCHEMA)
        session = auth.login(data["email"], data["password"])
        return jsonify(_session_to_dict(session)), 200

    @app.route('/api/register', methods=['POST'])
    def register():
        data = _json_body(REGISTER_SCHEMA)
        session = auth.register(data["full_name"], data["email"], data["password"],
                                data.get("role", "User"))
        return jsonify(_session_to_dict(session)), 201

    @app.route('/api/logout', methods=['POST'])
    def logout():
        auth.logout()
        return jsonify({"logged_in": False}), 200

    @app.route('/api/session', methods=['GET'])
    def current_session():
        session = auth.current_session()
        if session is None:
            return jsonify({"logged_in": False}), 200
        return jsonify({"logged_in": True, **_session_to_dict(session)}), 200

    # ---------- crimes ----------

    @app.route('/api/crimes', methods=['POST'])
    def add_crime():
        data = _json_body({**CRIME_SCHEMA, "required": CRIME_SCHEMA["required"] + ["crime_id"]})
        record = repository.add_crime(auth.current_session(), CrimeRecord.from_dict(data))
        return jsonify(record.to_dict()), 201

    @app.route('/api/crimes/<crime_id>', methods=['PUT'])
    def update_crime(crime_id):
        data = _json_body(CRIME_SCHEMA)
        # The id in the URL wins, crime ids cannot be changed
        record = CrimeRecord.from_dict({**data, "crime_id": crime_id})
        if not repository.update_crime(auth.current_session(), record):
            return jsonify({"error": f"Crime {crime_id} not found"}), 404
        return jsonify(record.to_dict()), 200

    @app.route('/api/crimes/<crime_id>', methods=['DELETE'])
    def delete_crime(crime_id):
        if not repository.delete_crime(auth.current_session(), crime_id):
            return jsonify({"error": f"Crime {crime_id} not found"}), 404
        return jsonify({"deleted": crime_id}), 200

    # ---------- import ----------

    @app.route('/api/import', methods=['POST'])
    def start_import():
        """
        Start importing a CSV file (path or URL) in the background.
        Poll GET /api/import/status for progress.
        """
        data = _json_body(IMPORT_SCHEMA)
        session = auth.current_session()
        require(Operation.IMPORT, session)

        source = data.get("source") or config.CRIME_CSV
        # Marked running before it is queued, not when the worker picks it up
        if repository.importer.is_running or not import_status.try_start(source):
            return jsonify({"error": ALREADY_RUNNING_MESSAGE, **import_status.to_dict()}), 409

        # Snapshot before the worker starts, it may finish before we respond
        started = import_status.to_dict()
        repository.import_dataset(session, source, import_status, background=True)
        app.logger.info(f"Import of {source} started by {session.email}")
        return jsonify(started), 202

    @app.route('/api/import/status', methods=['GET'])
    def import_progress():
        return jsonify(import_status.to_dict()), 200

    @app.route('/api/sample-data', methods=['POST'])
    def sample_data():
        require(Operation.CREATE, auth.current_session())
        listener = ImportJobStatus()
        listener.start("sample data")
        create_sample_data(store, listener)
        status = listener.to_dict()
        return jsonify(status), 201 if status["state"] == "succeeded" else 500

    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    logging.info("The write service Python app has started.")
    create_app().run(host='0.0.0.0', port=config.WRITE_PORT, debug=config.FLASK_DEBUG)

"""
app.py: Main Flask application for the query side (Read Service) of the crime records service.

This microservice handles read-only operations:
- Listing, looking up and counting crimes.
- "All Fields" and single-field substring searches.
- Crimes with usable coordinates for map clients.
- Open API (Swagger) integration for documentation.

Run with: python -m crime_read_service.app (starts on port 5001).
Shares the database (and the persisted login) with crime_write_service.
"""

import logging

from flask import Flask, jsonify
from flask_cors import CORS
from flask_swagger_ui import get_swaggerui_blueprint
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from crime_write_service import config
from crime_write_service.auth import AuthService
from crime_write_service.db.preferences import PreferenceStore
from crime_write_service.db.record_store import RecordStore, RecordStoreError
from crime_write_service.db.session import make_engine
from crime_read_service.api.crimes import create_crimes_blueprint
from crime_read_service.processors.search_processor import SearchProcessor

logger = logging.getLogger(__name__)

# Swagger UI configuration
SWAGGER_URL = '/swagger'  # URL for Swagger UI (e.g., http://localhost:5001/swagger)
API_URL = '/swagger.json'

SWAGGER_CONFIG = {
    'app_name': "Crime Records API - Read Service",
    'deepLinking': True,
    'defaultModelsExpandDepth': -1,
}

CRIME_EXAMPLE = {
    "crime_id": "CRIME001",
    "crime_type": "Burglary",
    "reported_by": "West Yorkshire Police",
    "lsoa_name": "Leeds 001A",
    "latitude": 53.8008,
    "longitude": -1.5491,
    "outcome_category": "Investigation complete; no suspect identified",
    "month": "2024-01",
}

OPENAPI_SPEC = {
    "openapi": "3.0.0",
    "info": {"title": "Crime Records API Read Service", "version": "1.0.0"},
    "paths": {
        "/health": {
            "get": {
                "summary": "Health check",
                "responses": {"200": {"description": "OK"}}
            }
        },
        "/api/crimes": {
            "get": {
                "summary": "All crimes",
                "tags": ["Crimes"],
                "description": "Every crime, ordered by crime id (highest first, compared as text). Requires a logged-in session.",
                "responses": {
                    "200": {
                        "description": "All crimes",
                        "content": {"application/json": {"example": {"total": 1, "crimes": [CRIME_EXAMPLE]}}}
                    },
                    "401": {"description": "Not logged in"}
                }
            }
        },
        "/api/crimes/{crime_id}": {
            "get": {
                "summary": "One crime by id",
                "tags": ["Crimes"],
                "parameters": [{"name": "crime_id", "in": "path", "required": True, "schema": {"type": "string"}}],
                "responses": {
                    "200": {"description": "The crime", "content": {"application/json": {"example": CRIME_EXAMPLE}}},
                    "404": {"description": "No crime with that id"}
                }
            }
        },
        "/api/crimes/search": {
            "get": {
                "summary": "Search crimes",
                "tags": ["Crimes"],
                "description": "Case-insensitive substring search. With field omitted or 'All Fields' it matches crime type, LSOA name, outcome category, reported by and crime id. Unknown field names search the crime type.",
                "parameters": [
                    {"name": "q", "in": "query", "required": False, "schema": {"type": "string"}},
                    {"name": "field", "in": "query", "required": False, "schema": {
                        "type": "string",
                        "enum": ["All Fields", "Crime Type", "LSOA Name", "Outcome Category", "Reported By"]
                    }}
                ],
                "responses": {"200": {"description": "Matching crimes"}}
            }
        },
        "/api/crimes/count": {
            "get": {
                "summary": "Number of crimes",
                "tags": ["Crimes"],
                "responses": {"200": {"description": "Count", "content": {"application/json": {"example": {"total": 10}}}}}
            }
        },
        "/api/crimes/map": {
            "get": {
                "summary": "Crimes that can be drawn on a map",
                "tags": ["Crimes"],
                "description": "Crimes with latitude in [-90, 90], longitude in [-180, 180] and not at (0, 0).",
                "responses": {"200": {"description": "Mappable crimes"}}
            }
        }
    }
}


def create_app(engine=None):
    """Build the read service app. Pass an engine to use a different database (tests do)."""
    app = Flask(__name__)

    # Use Flask CORS to allow connections from other sites
    CORS(app)

    # Make sure INFO-level logs show up
    app.logger.setLevel("INFO")

    engine = engine or make_engine()
    store = RecordStore(engine)
    auth = AuthService(PreferenceStore(engine))
    processor = SearchProcessor(store)
    app.extensions["crimes"] = {"engine": engine, "store": store, "auth": auth, "processor": processor}

    swaggerui_blueprint = get_swaggerui_blueprint(SWAGGER_URL, API_URL, config=SWAGGER_CONFIG)
    app.register_blueprint(swaggerui_blueprint)
    app.register_blueprint(create_crimes_blueprint(processor, auth))

    # Basic health check endpoint (Query side: Check DB connection)
    @app.route('/health', methods=['GET'])
    def health():
        """
        Health check for read_service: Verifies the database connection for queries.
        Returns: {"status": "ok", "database": true}
        """
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            database_status = True
        except SQLAlchemyError as e:
            app.logger.error(f"Database health check failed: {e}")
            database_status = False

        return jsonify({
            "status": "ok" if database_status else "error",
            "service": "read_service",
            "database": database_status
        })

    @app.route('/swagger.json', methods=['GET'])
    def swagger_spec():
        """Open API spec for read_service endpoints."""
        return jsonify(OPENAPI_SPEC)

    @app.errorhandler(RecordStoreError)
    def store_failed(error):
        app.logger.error(f"Query failed: {error}")
        return jsonify({"error": "Internal server error"}), 500

    # Error handler for 404
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Endpoint not found"}), 404

    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    create_app().run(host='0.0.0.0', port=config.READ_PORT, debug=config.FLASK_DEBUG)

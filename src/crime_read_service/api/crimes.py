# src/crime_read_service/api/crimes.py

from flask import Blueprint, request, jsonify

from crime_write_service.auth import Operation, is_authorized_for


def create_crimes_blueprint(processor, auth):
    """
    Factory that creates the crimes blueprint with access to the
    SearchProcessor (queries) and AuthService (who is logged in).

    Endpoints:
        GET /api/crimes                       all crimes, highest id first
        GET /api/crimes/<crime_id>            one crime
        GET /api/crimes/search?q=&field=      substring search
        GET /api/crimes/count                 number of crimes
        GET /api/crimes/map                   crimes with usable coordinates

    Every endpoint needs a logged-in session (any role).
    """
    bp = Blueprint("crimes", __name__, url_prefix="/api")

    @bp.before_request
    def require_login():
        operation = Operation.SEARCH if request.endpoint == "crimes.search_crimes" else Operation.READ
        if not is_authorized_for(operation, auth.current_session()):
            return jsonify({"error": "Access denied: login required"}), 401
        return None

    @bp.route("/crimes", methods=["GET"])
    def list_crimes():
        crimes = [c.to_dict() for c in processor.get_all()]
        return jsonify({"total": len(crimes), "crimes": crimes})

    @bp.route("/crimes/count", methods=["GET"])
    def count_crimes():
        return jsonify({"total": processor.count()})

    @bp.route("/crimes/map", methods=["GET"])
    def mappable_crimes():
        """Crimes whose coordinates are in range and not (0, 0)."""
        crimes = [c.to_dict() for c in processor.get_mappable()]
        return jsonify({"total": len(crimes), "crimes": crimes})

    @bp.route("/crimes/search", methods=["GET"])
    def search_crimes():
        """
        Query Parameters:
            q (str): text to look for (case-insensitive substring)
            field (str, optional): "All Fields" (default), "Crime Type",
                "LSOA Name", "Outcome Category" or "Reported By".
                Anything else searches the crime type.
        """
        term = request.args.get("q", "")
        field = request.args.get("field")
        crimes = [c.to_dict() for c in processor.search(field, term)]
        return jsonify({"field": field or "All Fields", "q": term,
                        "total": len(crimes), "crimes": crimes})

    @bp.route("/crimes/<crime_id>", methods=["GET"])
    def get_crime(crime_id):
        crime = processor.get_by_id(crime_id)
        if crime is None:
            return jsonify({"error": f"Crime {crime_id} not found"}), 404
        return jsonify(crime.to_dict())

    return bp

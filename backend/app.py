"""
=============================================================================
ENERGY SHEET TRACKER - MAIN FLASK APPLICATION
=============================================================================

This is the backend server for the energy dashboard.
It provides REST API endpoints for:
- Reading the published gas/power sheet as JSON
- Filtering the data by period (consolidato / forecast) and date range
- Exporting a date range as an Italian-format CSV file

The data lives in a Google Sheet published as CSV. Nothing is stored
locally: every request downloads, parses and validates the sheet again.

How to run:
    python -m backend.app

Then visit: http://127.0.0.1:5000/api/energy-data
=============================================================================
"""

# =============================================================================
# IMPORTS - Libraries we need for this application
# =============================================================================

# Flask - A lightweight web framework for Python
# - Flask: The main class to create our web application
# - request: Access data sent by the client (query parameters)
# - jsonify: Convert Python dictionaries to JSON responses
# - Response: Build non-JSON responses (the CSV export)
from flask import Flask, request, jsonify, Response

# logging - Application logs (Flask's app.logger is built on it)
import logging

# os - For interacting with the operating system (environment variables)
import os

# dotenv - Load environment variables from .env file
# This keeps deployment settings (sheet URL, parser options) out of our code
from dotenv import load_dotenv

# Load environment variables from .env file
# This must be called before accessing any environment variables
load_dotenv()

# =============================================================================
# CUSTOM LIBRARY IMPORTS - Our own modules for processing the energy sheet
# =============================================================================

# SheetService: Downloads, parses and validates the published sheet
from backend.lib.sheet_service import SheetService

# EnergyAnalyzer: Dashboard filters (period, date range, zero rows, sorting)
# FilterOptions / FilterError: Validated filter parameters and their error
from backend.lib.energy_sheet_core.processor import EnergyAnalyzer, FilterOptions, FilterError, parse_sheet_date

# CsvExporter: Builds the "Data;Gas;Power" export file
from backend.lib.energy_sheet_core.exporter import CsvExporter

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# =============================================================================
# FLASK APPLICATION INITIALIZATION
# =============================================================================

# Create the Flask application instance
app = Flask(__name__)

# =============================================================================
# SHEET SERVICE INITIALIZATION
# =============================================================================
# Built once at start-up from the environment (see .env.example).
# A bad ROW_MODE / FIRST_QUANTITY / ON_PARSE_FAILURE / DATA_START_ROW raises
# ValueError here, so the app refuses to start instead of failing every request.
# The service only holds settings and a pooled HTTP session, never sheet data,
# so concurrent requests do not share results.
sheet_service = SheetService()

# CORS headers sent with every /api response
# The dashboard may be served from a different origin than the API
CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Allow-Methods': 'GET, POST, PUT, DELETE',
}

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_sheet_service() -> SheetService:
    """
    Return the SheetService used by the routes.

    Tests replace it by setting app.config["SHEET_SERVICE"].
    """
    return app.config.get("SHEET_SERVICE") or sheet_service


def load_snapshot_or_error():
    """
    Load the sheet, turning any failure into a 500 response.

    Returns:
        tuple: (snapshot, None) on success, (None, error_response) on failure
    """
    try:
        return get_sheet_service().load_snapshot(), None
    except Exception as e:
        # Transport errors, validation errors, anything else: no partial data
        app.logger.exception("Error fetching energy data")
        return None, (jsonify({
            "message": "Failed to fetch energy data from Google Sheets",
            "error": str(e)
        }), 500)


@app.after_request
def add_cors_headers(response):
    """Attach the CORS headers to every /api response."""
    if request.path.startswith("/api/"):
        response.headers.update(CORS_HEADERS)
    return response

# =============================================================================
# API ROUTES - BASIC ENDPOINTS
# =============================================================================

@app.route("/health", methods=["GET"])
def health():
    """Simple liveness check for the load balancer."""
    return jsonify({"status": "ok"})


@app.route("/api/energy-data", methods=["GET", "OPTIONS"])
def energy_data():
    """
    Return the whole sheet as JSON.

    Response body:
        {
            "fileDate": "15/03/2024",
            "data": [{"date": "01/01/2024", "gas": 5.0, "power": 10.0}, ...]
        }

    HTTP Status Codes:
        200: OK - Sheet loaded (OPTIONS also returns 200 with an empty body)
        500: Internal Server Error - Download, parsing or validation failed
    """
    # Browser preflight request, nothing to load
    if request.method == "OPTIONS":
        return "", 200

    snapshot, error = load_snapshot_or_error()
    if error:
        return error
    return jsonify(snapshot.to_dict())

# =============================================================================
# API ROUTES - DASHBOARD ENDPOINTS
# =============================================================================

@app.route("/api/energy-data/filtered", methods=["GET"])
def filtered_energy_data():
    """
    Return the sheet filtered the same way the dashboard does it.

    Query Parameters:
        period: 'consolidato' and/or 'forecast' (repeatable, default: both)
        startDate: Optional first day to include (DD/MM/YYYY)
        endDate: Optional last day to include (DD/MM/YYYY)

    Rows where gas and power are both 0 are removed and the result is
    sorted by date (the plain /api/energy-data keeps the sheet order).

    HTTP Status Codes:
        200: OK
        400: Bad Request - Unknown period or malformed date
        500: Internal Server Error - Sheet could not be loaded
    """
    try:
        options = FilterOptions.from_params(
            period=request.args.getlist("period"),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
    except FilterError as e:
        return jsonify({"error": str(e)}), 400

    snapshot, error = load_snapshot_or_error()
    if error:
        return error

    analyzer = EnergyAnalyzer(snapshot)
    result = analyzer.filtered_snapshot(options).to_dict()
    result["availableMonths"] = analyzer.available_months()
    return jsonify(result)


@app.route("/api/energy-data/export", methods=["GET"])
def export_energy_data():
    """
    Download a date range as CSV (European format).

    Query Parameters:
        startDate: Required, first day to export (DD/MM/YYYY)
        endDate: Required, last day to export (DD/MM/YYYY)
        commodity: 'gas' and/or 'power' (repeatable, default: both)

    Example output:
        Data;Gas;Power
        01/01/2024;5;10,5

    HTTP Status Codes:
        200: OK - CSV attachment
        400: Bad Request - Missing/malformed dates or unknown commodity
        500: Internal Server Error - Sheet could not be loaded
    """
    start_text = request.args.get("startDate")
    end_text = request.args.get("endDate")
    if not start_text or not end_text:
        return jsonify({"error": "startDate and endDate are required"}), 400

    try:
        start = parse_sheet_date(start_text)
        end = parse_sheet_date(end_text)
        exporter = CsvExporter(request.args.getlist("commodity") or ("gas", "power"))
    except FilterError as e:
        return jsonify({"error": str(e)}), 400

    snapshot, error = load_snapshot_or_error()
    if error:
        return error

    csv_text = exporter.export(snapshot.data, start, end)
    return Response(
        csv_text,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{exporter.filename(start, end)}"'},
    )

# =============================================================================
# RUN THE SERVER
# =============================================================================

if __name__ == "__main__":
    """
    Start the Flask development server.

    This block only runs when executing the file directly:
        python -m backend.app

    WARNING: Never use debug=True in production!
    """
    app.run(debug=True)

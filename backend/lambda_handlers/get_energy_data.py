# backend/lambda_handlers/get_energy_data.py
"""
Lambda function serving the energy sheet as JSON
Triggered by API Gateway (any path containing "energy-data")
"""
import json

from backend.lib.sheet_service import SheetService

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Allow-Methods': 'GET, POST, PUT, DELETE',
}


def lambda_handler(event, context, service: SheetService = None):
    """
    Download, parse and validate the published sheet.

    - OPTIONS: CORS preflight, empty body
    - GET .../energy-data: {fileDate, data}
    - anything else: 404
    """
    path = event.get('path') or event.get('rawPath') or ''
    method = event.get('httpMethod') or event.get('requestContext', {}).get('http', {}).get('method', '')
    print(f"Received {method} {path}")

    if method == 'OPTIONS':
        return {'statusCode': 200, 'headers': dict(CORS_HEADERS), 'body': ''}

    if 'energy-data' in path and method == 'GET':
        try:
            service = service or SheetService()
            snapshot = service.load_snapshot()
            print(f"Parsed data: fileDate={snapshot.file_date}, dataCount={len(snapshot.data)}")
            return response(200, snapshot.to_dict())
        except Exception as e:
            print(f"Error fetching energy data: {str(e)}")
            return response(500, {
                'error': 'Failed to fetch energy data',
                'details': str(e)
            })

    return response(404, {'error': 'Not found'})


def response(status_code: int, body: dict) -> dict:
    """Create API Gateway response."""
    return {
        'statusCode': status_code,
        'headers': {
            **CORS_HEADERS,
            'Content-Type': 'application/json',
        },
        'body': json.dumps(body)
    }

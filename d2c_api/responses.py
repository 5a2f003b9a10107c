"""
API Gateway proxy responses.

Kept free of third-party imports so the Lambda asset runs on the bare
Python runtime.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

JSON_HEADERS = {"Content-Type": "application/json"}


def json_response(status_code: int, body: Any) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": dict(JSON_HEADERS),
        "body": json.dumps(body),
    }


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[List[str]] = None,
) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = list(details)
    return json_response(status_code, {"error": error})

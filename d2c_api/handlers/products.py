"""
Products endpoint.

GET lists products and POST creates one. Both are placeholders until the
inventory database and search domain are wired in; the bindings for them
are already present in the environment.
"""

import logging
import os
from typing import Any, Callable, Dict, Optional

from d2c_api.config import INVENTORY_DB_PORT, LOG_LEVEL, BackendBindings, load_bindings
from d2c_api.responses import error_response, json_response

logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)

_bindings: Optional[BackendBindings] = None


def get_bindings() -> BackendBindings:
    global _bindings
    if _bindings is None:
        try:
            _bindings = load_bindings()
        except ValueError as e:
            # a malformed port is left unbound
            logger.error("Ignoring invalid backend binding: %s", e)
            _bindings = load_bindings({k: v for k, v in os.environ.items() if k != INVENTORY_DB_PORT})
        missing = _bindings.missing()
        if missing:
            logger.warning("Backend bindings not set: %s", ", ".join(missing))
    return _bindings


def list_products(event: Dict[str, Any]) -> Dict[str, Any]:
    return json_response(200, {"products": [], "message": "Product listing endpoint"})


def create_product(event: Dict[str, Any]) -> Dict[str, Any]:
    return json_response(201, {"message": "Product created"})


ROUTES: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "GET": list_products,
    "POST": create_product,
}


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    get_bindings()

    method = (event or {}).get("httpMethod", "")
    route = ROUTES.get(method)
    if route is None:
        logger.info("products  method=%s  rejected", method)
        return error_response(405, "METHOD_NOT_ALLOWED", "Method not allowed")

    response = route(event)
    logger.info("products  method=%s  status=%s", method, response["statusCode"])
    return response

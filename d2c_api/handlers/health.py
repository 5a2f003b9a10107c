import logging
from datetime import datetime, timezone
from typing import Any, Dict

from d2c_api.config import LOG_LEVEL
from d2c_api.responses import json_response

logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    logger.debug("health check  path=%s", (event or {}).get("path"))
    return json_response(200, {"status": "healthy", "timestamp": _utc_timestamp()})

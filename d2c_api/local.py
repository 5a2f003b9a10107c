"""
Local stand-in for the API Gateway front door.

Routes requests to the same Lambda handlers that are deployed, after the
same CORS preflight and bearer check the deployed gateway applies.

Run with:
    uvicorn d2c_api.local:app --port 8000
"""

import asyncio
import base64
import logging
import os
import uuid
from typing import Any, Callable, Dict, Optional, Tuple

from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from d2c_api import __version__
from d2c_api.handlers import health, products

logger = logging.getLogger("uvicorn.error")

LOCAL_BEARER_TOKEN = os.getenv("D2C_LOCAL_BEARER_TOKEN", "local-dev-token")

# CORS preflights are answered by the middleware before routing; every
# other method reaches the handler, which rejects what it does not serve
PRODUCT_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

LambdaHandler = Callable[[Dict[str, Any], Any], Dict[str, Any]]


def require_bearer(authorization: Optional[str] = Header(default=None)) -> Dict[str, str]:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")
    token = authorization[len("Bearer "):].strip()
    if token != LOCAL_BEARER_TOKEN:
        raise HTTPException(status_code=403, detail="Forbidden")
    return {"sub": "local-user", "token_use": "id"}


def _encode_body(body: bytes) -> Tuple[Optional[str], bool]:
    """Text bodies pass through; anything else is base64, as API Gateway does."""
    if not body:
        return None, False
    try:
        return body.decode("utf-8"), False
    except UnicodeDecodeError:
        return base64.b64encode(body).decode("ascii"), True


async def _to_proxy_event(request: Request, claims: Optional[Dict[str, str]]) -> Dict[str, Any]:
    body, is_base64 = _encode_body(await request.body())
    request_context: Dict[str, Any] = {"requestId": str(uuid.uuid4())}
    if claims is not None:
        request_context["authorizer"] = {"claims": claims}
    return {
        "httpMethod": request.method,
        "path": request.url.path,
        "headers": dict(request.headers),
        "queryStringParameters": dict(request.query_params) or None,
        "body": body,
        "isBase64Encoded": is_base64,
        "requestContext": request_context,
    }


async def _invoke(handler: LambdaHandler, event: Dict[str, Any]) -> Response:
    result = await asyncio.to_thread(handler, event, None)
    return Response(
        content=result.get("body") or "",
        status_code=result["statusCode"],
        headers=result.get("headers") or {},
    )


app = FastAPI(title="D2C Platform API (local)", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_route(request: Request) -> Response:
    return await _invoke(health.handler, await _to_proxy_event(request, None))


@app.api_route("/products", methods=PRODUCT_METHODS)
async def products_route(request: Request, claims: Dict[str, str] = Depends(require_bearer)) -> Response:
    event = await _to_proxy_event(request, claims)
    logger.info("products  %s  request_id=%s", request.method, event["requestContext"]["requestId"])
    return await _invoke(products.handler, event)

import logging
import os
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from degendogs.auth.endpoint import handle_verify
from degendogs.logging_config import configure_logging

configure_logging()
log = logging.getLogger("degendogs")

app = FastAPI(title="Degen Dogs Holder Gate", version="0.1.0")


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.middleware("http")
async def req_log(request: Request, call_next):
    start = time.time()
    route = request.url.path
    remote = request.client.host if request.client else "-"
    resp = await call_next(request)
    duration_ms = int((time.time() - start) * 1000)
    log.info(f"request_complete status={resp.status_code} duration_ms={duration_ms}",
             extra={"request_id": request.headers.get("x-request-id", "-"), "route": route,
                    "remote_addr": remote})
    return resp


@app.api_route("/api/verify", methods=["GET", "POST", "OPTIONS", "PUT", "PATCH", "DELETE"])
async def verify(request: Request):
    """Verify a Quick Auth token and return the enriched identity.

    The token is read from a JSON body {"token": ...} or from an
    `Authorization: Bearer` header. Every response carries CORS headers.
    """
    body = await request.body()
    outcome = await handle_verify(request.method, request.headers, body)
    if outcome.body is None:
        return Response(status_code=outcome.status, headers=outcome.headers)
    return JSONResponse(status_code=outcome.status, content=outcome.body, headers=outcome.headers)


@app.get("/version")
def version():
    # GIT_SHA is injected at deploy time
    return {"git_sha": os.getenv("GIT_SHA", "unknown")}


@app.get("/admin")
def admin():
    """Return all configurable items for operator visibility.

    Gated by ADMIN_ENDPOINT_ENABLED (default: True for dev, False for prod).
    """
    from degendogs.core.config import (
        ALLOWED_ALGORITHMS,
        BASE_CHAIN_ID,
        DOGS_CONTRACT,
        QUICK_AUTH_ISSUER,
        CLOCK_SKEW_SECONDS,
        POST_TITLE_MAX,
        POST_BODY_MAX,
        THREAD_BODY_MAX,
        MAX_BODY_BYTES,
        JWKS_FETCH_TIMEOUT_SECONDS,
        JWKS_CACHE_TTL_SECONDS,
        DIRECTORY_TIMEOUT_SECONDS,
        RPC_TIMEOUT_SECONDS,
        APP_DOMAIN,
        CORS_ORIGIN,
        QUICK_AUTH_JWKS_URL,
        NEYNAR_API_KEY,
        BASE_RPC_URL,
        ADMIN_ENDPOINT_ENABLED,
    )

    if not ADMIN_ENDPOINT_ENABLED:
        return JSONResponse(
            status_code=404,
            content={"detail": "Admin endpoint disabled"}
        )

    return {
        "normative": {
            "allowed_algorithms": sorted(ALLOWED_ALGORITHMS),
            "base_chain_id": BASE_CHAIN_ID,
            "dogs_contract": DOGS_CONTRACT,
            "quick_auth_issuer": QUICK_AUTH_ISSUER,
        },
        "configurable": {
            "clock_skew_seconds": CLOCK_SKEW_SECONDS,
            "post_title_max": POST_TITLE_MAX,
            "post_body_max": POST_BODY_MAX,
            "thread_body_max": THREAD_BODY_MAX,
        },
        "policy": {
            "max_body_bytes": MAX_BODY_BYTES,
            "jwks_fetch_timeout_seconds": JWKS_FETCH_TIMEOUT_SECONDS,
            "jwks_cache_ttl_seconds": JWKS_CACHE_TTL_SECONDS,
            "directory_timeout_seconds": DIRECTORY_TIMEOUT_SECONDS,
            "rpc_timeout_seconds": RPC_TIMEOUT_SECONDS,
        },
        "operational": {
            "app_domain": APP_DOMAIN or None,
            "cors_origin": CORS_ORIGIN or None,
            "quick_auth_jwks_url": QUICK_AUTH_JWKS_URL,
            "base_rpc_url": BASE_RPC_URL,
            "profile_enrichment_enabled": bool(NEYNAR_API_KEY),
            "admin_endpoint_enabled": ADMIN_ENDPOINT_ENABLED,
        },
        "environment": {
            "log_level": logging.getLogger().getEffectiveLevel(),
            "log_level_name": logging.getLevelName(logging.getLogger().getEffectiveLevel()),
        },
    }


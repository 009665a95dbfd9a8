"""HTTP endpoint for the oracle signing service.

Routes:
  GET  /health           - liveness plus the oracle public key
  GET  /api/public-key   - public key as base64, hex and byte list
  POST /api/verify-score - validate a score claim and return its signature

``/api/`` routes are rate-limited per remote address.
"""

from __future__ import annotations

import base64
import time
from typing import Any

import bittensor as bt
from aiohttp import web

from moisture.errors import RateLimitError, ValidationError

from .service import OracleSigningService

_CORS_HEADERS = {
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Credentials": "true",
}


def _caller(request: web.Request) -> str:
    return request.remote or "unknown"


class OracleHTTPServer:
    """Lightweight async HTTP server in front of OracleSigningService."""

    def __init__(
        self,
        service: OracleSigningService,
        host: str = "0.0.0.0",
        port: int = 3001,
        allowed_origins: list[str] | None = None,
    ):
        self.service = service
        self.host = host
        self.port = port
        self.allowed_origins = set(allowed_origins or [])
        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None

    def build_app(self) -> web.Application:
        app = web.Application(middlewares=[self._cors_middleware])
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/api/public-key", self._handle_public_key)
        app.router.add_post("/api/verify-score", self._handle_verify_score)
        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        self._app = self.build_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        bt.logging.info({"oracle_http": {"status": "started", "port": self.port, "public_key": self.service.public_key_base64}})

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            bt.logging.info({"oracle_http": "stopped"})

    # -- Middleware --

    @web.middleware
    async def _cors_middleware(self, request: web.Request, handler: Any) -> web.StreamResponse:
        if request.method == "OPTIONS":
            response: web.StreamResponse = web.Response(status=204)
        else:
            response = await handler(request)

        origin = request.headers.get("Origin")
        if origin and origin in self.allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers.update(_CORS_HEADERS)
        return response

    # -- Routes --

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({
            "status": "ok",
            "timestamp": int(time.time() * 1000),
            "publicKey": self.service.public_key_base64,
        })

    async def _handle_public_key(self, request: web.Request) -> web.Response:
        try:
            info = self.service.public_key(caller=_caller(request))
        except RateLimitError as e:
            bt.logging.warning({"oracle_request": {"endpoint": "public-key", "status": 429, "caller": _caller(request)}})
            return web.json_response({"error": e.message}, status=429)
        return web.json_response(info)

    async def _handle_verify_score(self, request: web.Request) -> web.Response:
        try:
            body = await request.json()
            if not isinstance(body, dict):
                raise ValueError("body must be an object")
        except Exception:
            bt.logging.warning({"oracle_request": {"endpoint": "verify-score", "status": 400, "error": "invalid_body"}})
            return web.json_response({"valid": False, "error": "invalid_body"}, status=400)

        try:
            signed = self.service.verify_and_sign(
                body.get("playerId"),
                body.get("roundId"),
                body.get("survivalTime"),
                body.get("events"),
                body.get("checksum"),
                caller=_caller(request),
            )
        except RateLimitError as e:
            bt.logging.warning({"oracle_request": {"endpoint": "verify-score", "status": 429, "caller": _caller(request)}})
            return web.json_response({"valid": False, "error": e.message}, status=429)
        except ValidationError as e:
            bt.logging.info({"oracle_request": {"endpoint": "verify-score", "status": 400, "reason": e.message}})
            return web.json_response({"valid": False, "error": e.message}, status=400)
        except Exception as e:
            bt.logging.error({"oracle_request": {"endpoint": "verify-score", "status": 500, "error": str(e)}})
            return web.json_response({"valid": False, "error": "Internal server error"}, status=500)

        bt.logging.info({"oracle_request": {"endpoint": "verify-score", "status": 200, "player": signed.player[:10]}})
        return web.json_response({
            "valid": True,
            "signature": list(signed.signature),
            "signatureBase64": base64.b64encode(signed.signature).decode(),
        })


__all__ = ["OracleHTTPServer"]

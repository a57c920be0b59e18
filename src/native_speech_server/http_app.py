"""REST front-end on aiohttp.

Thin adapter: parse the JSON body, hand it to the dispatcher, and turn the
outcome into a JSON response with a status code.

Routes:
    GET  /voices  -> ["voice", ...]
    POST /tts     {text, voice?, speed?} -> {"success": true}
    POST /stt     {duration?} -> {"text": "..."}
    POST /chat    {message, voice?, speed?} -> {"success", "response", "spoken"}
    GET  /health  -> {"status": "ok", "engine": "..."}
"""

import os
from typing import Any, Optional

from aiohttp import web
from loguru import logger

from native_speech_server.dispatcher import Dispatcher
from native_speech_server.domain.outcome import OperationOutcome

_STATUS_BY_KIND = {
    "InvalidArguments": 400,
    "MethodNotFound": 404,
    "Timeout": 408,
}

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


class _InvalidBody(Exception):
    pass


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Allow any origin and answer preflight requests directly."""
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=_CORS_HEADERS)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers.update(_CORS_HEADERS)
        raise
    response.headers.update(_CORS_HEADERS)
    return response


def outcome_to_response(outcome: OperationOutcome) -> web.Response:
    """Serialize a failed outcome as ``{"error": ...}`` plus any partial payload."""
    status = _STATUS_BY_KIND.get(outcome.error_kind or "", 500)
    message = "Operation timed out" if status == 408 else outcome.message
    return web.json_response({"error": message, **outcome.payload}, status=status)


async def _read_json(request: web.Request) -> dict[str, Any]:
    if not request.body_exists:
        return {}
    raw = await request.read()
    if not raw.strip():
        return {}
    try:
        body = await request.json()
    except ValueError:
        raise _InvalidBody("Invalid JSON body") from None
    if not isinstance(body, dict):
        raise _InvalidBody("Request body must be a JSON object")
    return body


class SpeechRoutes:
    """Request handlers bound to one dispatcher."""

    def __init__(self, dispatcher: Dispatcher, engine_name: str):
        self._dispatcher = dispatcher
        self._engine_name = engine_name

    async def _run(self, operation: str, request: web.Request) -> web.Response:
        try:
            body = await _read_json(request)
        except _InvalidBody as e:
            return web.json_response({"error": str(e)}, status=400)
        outcome = await self._dispatcher.dispatch(operation, body)
        if not outcome.ok:
            return outcome_to_response(outcome)
        return web.json_response(outcome.payload)

    async def voices(self, request: web.Request) -> web.Response:
        outcome = await self._dispatcher.dispatch("list_voices", {})
        if not outcome.ok:
            return outcome_to_response(outcome)
        return web.json_response(outcome.payload["voices"])

    async def tts(self, request: web.Request) -> web.Response:
        return await self._run("text_to_speech", request)

    async def stt(self, request: web.Request) -> web.Response:
        return await self._run("speech_to_text", request)

    async def chat(self, request: web.Request) -> web.Response:
        return await self._run("chat", request)

    async def health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "engine": self._engine_name})


def create_app(
    dispatcher: Dispatcher, engine_name: str = "", static_dir: Optional[str] = None
) -> web.Application:
    """Build the aiohttp application.

    Args:
        dispatcher: Core request handler.
        engine_name: Reported by ``/health``.
        static_dir: Optional directory of static files (e.g. a test page) served at ``/``.

    """
    routes = SpeechRoutes(dispatcher, engine_name)
    app = web.Application(middlewares=[cors_middleware])
    app.add_routes(
        [
            web.get("/voices", routes.voices),
            web.post("/tts", routes.tts),
            web.post("/stt", routes.stt),
            web.post("/chat", routes.chat),
            web.get("/health", routes.health),
        ]
    )
    if static_dir:
        if os.path.isdir(static_dir):
            app.router.add_static("/", static_dir)
            logger.info(f"Serving static files from {static_dir}")
        else:
            logger.warning(f"Static directory {static_dir} does not exist, not serving it")
    return app

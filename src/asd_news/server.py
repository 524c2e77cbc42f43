"""HTTP trigger surface for the update cycle.

Routes:
    POST /api/update  manual update, gated by UPDATE_PASSWORD when set
    GET  /api/cron    scheduled update, gated by "Authorization: Bearer <CRON_SECRET>"
    GET  /api/news    stored articles as JSON
"""

import secrets
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from .config.settings import Settings
from .pipeline.update import MSG_ALREADY_RUNNING, UpdatePipeline, UpdateResult
from .storage.interfaces import StorageError

logger = structlog.get_logger()

MSG_WRONG_PASSWORD = "更新パスワードが違います"
MSG_READ_FAILED = "ニュースの取得に失敗しました。"


def _matches(given: Optional[str], expected: str) -> bool:
    if not isinstance(given, str):
        return False
    return secrets.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


def _result_response(result: UpdateResult) -> JSONResponse:
    if result.success:
        return JSONResponse({
            "success": True,
            "message": result.message,
            "count": result.added_count,
        })

    status_code = 409 if result.message == MSG_ALREADY_RUNNING else 500
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": result.message},
    )


def create_app(settings: Settings, pipeline: UpdatePipeline = None) -> FastAPI:
    """Build the application around one pipeline instance."""
    app = FastAPI(title="ASD News")
    app.state.settings = settings
    app.state.pipeline = pipeline or UpdatePipeline(settings)

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "updating": app.state.pipeline.is_running,
        }

    @app.post("/api/update")
    async def update(request: Request):
        """Manual update, e.g. from an "update now" button."""
        logger.info("manual_update_requested")

        if settings.update_password:
            try:
                body = await request.json()
            except ValueError:
                body = {}
            password = body.get("password") if isinstance(body, dict) else None
            if not _matches(password, settings.update_password):
                logger.warning("manual_update_rejected", reason="password_mismatch")
                return JSONResponse(
                    status_code=401,
                    content={"success": False, "error": MSG_WRONG_PASSWORD},
                )

        result = await app.state.pipeline.run_update_cycle()
        return _result_response(result)

    @app.get("/api/cron")
    async def cron(request: Request):
        authorization = request.headers.get("authorization")
        if not settings.cron_secret or not _matches(authorization, f"Bearer {settings.cron_secret}"):
            logger.warning("cron_update_rejected")
            return PlainTextResponse("Unauthorized", status_code=401)

        logger.info("cron_update_triggered")
        result = await app.state.pipeline.run_update_cycle()
        return _result_response(result)

    @app.get("/api/news")
    async def news():
        try:
            articles = await app.state.pipeline.list_articles()
        except StorageError as e:
            logger.error("news_listing_failed", error=str(e))
            return JSONResponse(
                status_code=503,
                content={"success": False, "error": MSG_READ_FAILED},
            )
        return [a.to_dict() for a in articles]

    return app

"""FastAPI server exposing the live session WebSocket and attempt endpoints."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, WebSocket
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
import uvicorn

from quiz_live.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from quiz_live.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT, WEBSOCKET_PATH
from quiz_live.core.errors import (
    AlreadyCompleted,
    AlreadyInProgress,
    Forbidden,
    InternalError,
    InvalidRequest,
    NoQuestions,
    NotAssigned,
    NotAuthenticated,
    NotFound,
    SessionError,
    StorageFailure,
)
from quiz_live.core.models import AttemptFilters, Identity
from quiz_live.core.session_coordinator import SessionCoordinator
from quiz_live.server.auth_tokens import TokenVerifier
from quiz_live.server.realtime import RealtimeConnection

_STATUS_BY_ERROR: dict[type[SessionError], int] = {
    NotAuthenticated: 401,
    Forbidden: 403,
    NotAssigned: 403,
    NotFound: 404,
    AlreadyInProgress: 409,
    AlreadyCompleted: 409,
    NoQuestions: 422,
    InvalidRequest: 422,
    StorageFailure: 503,
    InternalError: 500,
}


class StartAttemptPayload(BaseModel):
    """Payload schema for starting a quiz attempt."""

    quiz_id: int


class SyncStatePayload(BaseModel):
    """Partial attempt state pushed by a client."""

    state: dict[str, Any] | None = None
    client_id: str | None = None


def _http_error(exc: SessionError) -> HTTPException:
    status_code = _STATUS_BY_ERROR.get(type(exc), 400)
    return HTTPException(status_code=status_code, detail=exc.to_payload())


def _get_coordinator_dependency(coordinator: SessionCoordinator):
    def dependency() -> SessionCoordinator:
        return coordinator

    return dependency


def _get_identity_dependency(verifier: TokenVerifier):
    bearer = HTTPBearer(auto_error=False)

    def dependency(
        credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    ) -> Identity:
        identity = verifier.verify(credentials.credentials if credentials else None)
        if identity is None:
            raise _http_error(NotAuthenticated("Missing or invalid bearer token."))
        return identity

    return dependency


def create_api_app(coordinator: SessionCoordinator, verifier: TokenVerifier) -> FastAPI:
    """Create a FastAPI application wired to the provided session coordinator."""

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        await coordinator.shutdown()

    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
        lifespan=lifespan,
    )
    coordinator_dep = _get_coordinator_dependency(coordinator)
    identity_dep = _get_identity_dependency(verifier)

    @app.websocket(WEBSOCKET_PATH)
    async def realtime_endpoint(websocket: WebSocket) -> None:
        await RealtimeConnection(websocket, coordinator, verifier).run()

    @app.get("/health")
    def health(manager: SessionCoordinator = Depends(coordinator_dep)) -> dict[str, object]:
        return {"status": "ok", "active_timers": len(manager.timers.active_attempt_ids())}

    @app.post("/attempts/start", status_code=201)
    async def start_attempt(
        payload: StartAttemptPayload,
        identity: Identity = Depends(identity_dep),
        manager: SessionCoordinator = Depends(coordinator_dep),
    ) -> dict[str, object]:
        try:
            started = await manager.start_session(identity.user_id, payload.quiz_id)
        except SessionError as exc:
            raise _http_error(exc) from exc
        response = started.to_payload()
        response.update(remaining_time=started.remaining_time, total_time=started.total_time)
        return response

    @app.get("/attempts/my")
    async def list_my_attempts(
        identity: Identity = Depends(identity_dep),
        manager: SessionCoordinator = Depends(coordinator_dep),
    ) -> list[dict[str, object]]:
        try:
            return await manager.list_my_attempts(identity.user_id)
        except SessionError as exc:
            raise _http_error(exc) from exc

    @app.get("/attempts/{attempt_id}")
    async def get_attempt(
        attempt_id: int,
        identity: Identity = Depends(identity_dep),
        manager: SessionCoordinator = Depends(coordinator_dep),
    ) -> dict[str, object]:
        try:
            return await manager.get_attempt(attempt_id, identity)
        except SessionError as exc:
            raise _http_error(exc) from exc

    @app.post("/attempts/{attempt_id}/sync")
    async def sync_attempt(
        attempt_id: int,
        payload: SyncStatePayload,
        identity: Identity = Depends(identity_dep),
        manager: SessionCoordinator = Depends(coordinator_dep),
    ) -> dict[str, object]:
        try:
            state = await manager.sync_state(
                attempt_id, identity.user_id, payload.state, client_id=payload.client_id
            )
        except SessionError as exc:
            raise _http_error(exc) from exc
        return {"attempt_id": attempt_id, "state": state.to_dict()}

    @app.post("/attempts/{attempt_id}/submit")
    async def submit_attempt(
        attempt_id: int,
        identity: Identity = Depends(identity_dep),
        manager: SessionCoordinator = Depends(coordinator_dep),
    ) -> dict[str, object]:
        try:
            submission = await manager.submit_session(attempt_id, identity.user_id)
        except SessionError as exc:
            raise _http_error(exc) from exc
        return submission.to_payload()

    @app.get("/admin/live-attempts")
    async def list_live_attempts(
        school: str | None = None,
        class_name: str | None = Query(default=None, alias="class"),
        section: str | None = None,
        quiz_title: str | None = None,
        student_name: str | None = None,
        identity: Identity = Depends(identity_dep),
        manager: SessionCoordinator = Depends(coordinator_dep),
    ) -> list[dict[str, object]]:
        filters = AttemptFilters(
            school=school,
            class_name=class_name,
            section=section,
            quiz_title=quiz_title,
            student_name=student_name,
        )
        try:
            return await manager.list_live_attempts(identity, filters)
        except SessionError as exc:
            raise _http_error(exc) from exc

    return app


def run_api_server(
    coordinator: SessionCoordinator,
    verifier: TokenVerifier,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API on the current thread until interrupted."""
    app = create_api_app(coordinator, verifier)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()

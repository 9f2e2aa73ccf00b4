"""WebSocket command surface for live quiz sessions.

Every message in either direction is a JSON object ``{"event": ..., "data": ...}``.
Replies and broadcasts share the connection's observer queue, so a client sees
them in the order they were produced.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from quiz_live.constants.session_constants import MONITOR_ROLES
from quiz_live.core.errors import InternalError, InvalidRequest, NotAuthenticated, SessionError
from quiz_live.core.models import AttemptFilters, Identity
from quiz_live.core.services.broadcaster import Observer
from quiz_live.core.session_coordinator import SessionCoordinator
from quiz_live.server.auth_tokens import TokenVerifier

logger = logging.getLogger(__name__)


class FiltersPayload(BaseModel):
    """Monitoring filters; ``class`` is accepted as the key for ``class_name``."""

    model_config = ConfigDict(populate_by_name=True)

    school: str | None = None
    class_name: str | None = Field(default=None, alias="class")
    section: str | None = None
    quiz_title: str | None = None
    student_name: str | None = None

    def to_filters(self) -> AttemptFilters:
        return AttemptFilters(
            school=self.school,
            class_name=self.class_name,
            section=self.section,
            quiz_title=self.quiz_title,
            student_name=self.student_name,
        )


class AuthenticateCommand(BaseModel):
    token: str | None = None


class AttemptCommand(BaseModel):
    attempt_id: int


class StartQuizCommand(BaseModel):
    quiz_id: int


class SyncStateCommand(BaseModel):
    attempt_id: int
    state: dict[str, Any] | None = None
    client_id: str | None = None


class LiveAttemptsCommand(BaseModel):
    filters: FiltersPayload = Field(default_factory=FiltersPayload)


class ResetTimerCommand(BaseModel):
    attempt_id: int
    new_duration: int | None = None


class ResetAssignmentCommand(BaseModel):
    quiz_id: int
    student_id: int


class MassResetTimerCommand(BaseModel):
    filters: FiltersPayload = Field(default_factory=FiltersPayload)
    new_duration: int | None = None


class MassResetAssignmentCommand(BaseModel):
    filters: FiltersPayload = Field(default_factory=FiltersPayload)


Handler = Callable[[Any], Awaitable[None]]


class RealtimeConnection:
    """One WebSocket client: authentication state, observer and command dispatch."""

    def __init__(
        self,
        websocket: WebSocket,
        coordinator: SessionCoordinator,
        verifier: TokenVerifier,
    ) -> None:
        self._websocket = websocket
        self._coordinator = coordinator
        self._verifier = verifier
        self.observer = Observer()
        self.identity: Identity | None = None
        self._handlers: dict[str, Handler] = {
            "authenticate": self._authenticate,
            "start_timer": self._start_timer,
            "start_quiz": self._start_quiz,
            "get_attempt": self._get_attempt,
            "submit_attempt": self._submit_attempt,
            "sync_state": self._sync_state,
            "admin_get_live_attempts": self._admin_get_live_attempts,
            "admin_reset_timer": self._admin_reset_timer,
            "admin_reset_assignment": self._admin_reset_assignment,
            "admin_mass_reset_timer": self._admin_mass_reset_timer,
            "admin_mass_reset_assignment": self._admin_mass_reset_assignment,
        }

    async def run(self) -> None:
        await self._websocket.accept()
        writer = asyncio.create_task(self._write_loop())
        token = self._websocket.query_params.get("token")
        if token:
            self._apply_token(token)
        try:
            while True:
                raw = await self._websocket.receive_text()
                await self.handle_message(raw)
        except WebSocketDisconnect:
            logger.info("Client %s disconnected", self.observer.name)
        finally:
            self._coordinator.broadcaster.unregister(self.observer)
            writer.cancel()
            await asyncio.gather(writer, return_exceptions=True)

    async def handle_message(self, raw: str) -> None:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            self._send_error(None, InvalidRequest("Message is not valid JSON."))
            return
        if not isinstance(message, dict) or not isinstance(message.get("event"), str):
            self._send_error(None, InvalidRequest("Message must be an object with an event."))
            return

        command = message["event"]
        handler = self._handlers.get(command)
        if handler is None:
            self._send_error(command, InvalidRequest(f"Unknown command {command!r}."))
            return
        data = message.get("data")
        try:
            if command != "authenticate" and self.identity is None:
                raise NotAuthenticated("Authenticate before sending commands.")
            await handler({} if data is None else data)
        except ValidationError as exc:
            self._send_error(command, InvalidRequest("Invalid command payload.", errors=_describe(exc)))
        except SessionError as exc:
            self._send_error(command, exc)
        except Exception:
            logger.exception("Command %s from %s crashed", command, self.observer.name)
            self._send_error(command, InternalError("Command failed unexpectedly."))

    # --- Outbound ---

    async def _write_loop(self) -> None:
        while True:
            message = await self.observer.next_message()
            await self._websocket.send_json(message)
            if self.observer.overflowed:
                logger.warning("Closing client %s: outbound queue overflowed", self.observer.name)
                await self._websocket.close(code=1013)
                return

    def _reply(self, event: str, payload: Any) -> None:
        self.observer.deliver(event, payload)

    def _send_error(self, command: str | None, error: SessionError) -> None:
        payload = error.to_payload()
        payload["command"] = command
        if command is not None:
            logger.info("Command %s from %s failed: %s", command, self.observer.name, error.code)
        self._reply("error", payload)

    # --- Commands ---

    def _apply_token(self, token: str | None) -> Identity | None:
        broadcaster = self._coordinator.broadcaster
        identity = self._verifier.verify(token)
        if identity is None:
            return None
        if self.identity is not None and self.identity != identity:
            broadcaster.unregister(self.observer)
        self.identity = identity
        if identity.role in MONITOR_ROLES:
            broadcaster.register(self.observer)
        logger.info("Client %s authenticated as user %s (%s)", self.observer.name, identity.user_id, identity.role)
        return identity

    async def _authenticate(self, data: Any) -> None:
        command = AuthenticateCommand.model_validate(data)
        identity = self._apply_token(command.token)
        if identity is None:
            self._reply("auth_error", {"message": "Invalid or expired token."})
            return
        self._reply("authenticated", {"user_id": identity.user_id, "role": identity.role})

    async def _start_timer(self, data: Any) -> None:
        command = AttemptCommand.model_validate(data)
        await self._coordinator.resume_session(command.attempt_id, self.identity.user_id, self.observer)

    async def _start_quiz(self, data: Any) -> None:
        command = StartQuizCommand.model_validate(data)
        started = await self._coordinator.start_session(self.identity.user_id, command.quiz_id, self.observer)
        self._reply("quiz_started", started.to_payload())
        self._reply("timer_update", started.timer_payload())

    async def _get_attempt(self, data: Any) -> None:
        command = AttemptCommand.model_validate(data)
        attempt = await self._coordinator.get_attempt(command.attempt_id, self.identity, self.observer)
        self._reply("attempt", attempt)

    async def _submit_attempt(self, data: Any) -> None:
        command = AttemptCommand.model_validate(data)
        submission = await self._coordinator.submit_session(command.attempt_id, self.identity.user_id)
        self._reply("attempt_submitted", submission.to_payload())

    async def _sync_state(self, data: Any) -> None:
        command = SyncStateCommand.model_validate(data)
        state = await self._coordinator.sync_state(
            command.attempt_id,
            self.identity.user_id,
            command.state,
            client_id=command.client_id,
            observer=self.observer,
        )
        self._reply("state_synced", {"attempt_id": command.attempt_id, "state": state.to_dict()})

    async def _admin_get_live_attempts(self, data: Any) -> None:
        command = LiveAttemptsCommand.model_validate(data)
        rows = await self._coordinator.list_live_attempts(self.identity, command.filters.to_filters())
        self._reply("admin_live_attempts", rows)

    # Admin overrides answer through the global channel the caller is registered on.

    async def _admin_reset_timer(self, data: Any) -> None:
        command = ResetTimerCommand.model_validate(data)
        await self._coordinator.reset_timer(self.identity, command.attempt_id, command.new_duration)

    async def _admin_reset_assignment(self, data: Any) -> None:
        command = ResetAssignmentCommand.model_validate(data)
        await self._coordinator.reset_assignment(self.identity, command.quiz_id, command.student_id)

    async def _admin_mass_reset_timer(self, data: Any) -> None:
        command = MassResetTimerCommand.model_validate(data)
        await self._coordinator.mass_reset_timer(
            self.identity, command.filters.to_filters(), command.new_duration
        )

    async def _admin_mass_reset_assignment(self, data: Any) -> None:
        command = MassResetAssignmentCommand.model_validate(data)
        await self._coordinator.mass_reset_assignment(self.identity, command.filters.to_filters())


def _describe(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": ".".join(str(part) for part in error["loc"]), "msg": error["msg"]}
        for error in exc.errors()
    ]

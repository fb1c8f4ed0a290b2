"""Async client for the remote conversation API.

Translates conversation intents into HTTP calls and converts every outcome
into an ApiResult. Nothing raises past this module's public methods: network
errors, non-2xx statuses and malformed bodies all come back as
``ApiResult(success=False, ...)`` with a display-ready fallback message.

Endpoints per protocol variant:

    v3 (current): POST /v3/start, POST /v3/message, GET /v3/session/{id}
    v2 (legacy):  POST /v2/start, POST /v2/flow_step, GET /v2/session/{id}

Both variants signal an unknown or expired session with 401 or 404.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from wuffchat.client.config import ClientConfig, get_client_config
from wuffchat.models import ApiResult, ErrorCode, Reply, parse_backend_response
from wuffchat.session import SessionStore

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0

START_FALLBACK = "Willkommen! Leider konnte ich die Verbindung nicht herstellen."
DUPLICATE_FALLBACK = "Ein anderer Verbindungsaufbau ist bereits in Gange..."
SEND_FALLBACK = "Entschuldigung, ich konnte deine Nachricht nicht verarbeiten."

_STEP_ENDPOINTS = {"v2": "flow_step", "v3": "message"}
_SESSION_INVALID_STATUSES = (401, 404)


class ApiClientError(Exception):
    """Raised inside the client when a call fails; carries the error code."""

    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


class ApiClient:
    """Client for one conversation backend.

    Holds its own single-flight guard for session creation, so two
    conversations with separate clients never block each other.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        store: SessionStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Optional client configuration.
                    Loads from environment if not provided.
            store: Session store updated on start, refresh and expiry.
            transport: Optional httpx transport (ASGI app in tests).
        """
        self._config = config or get_client_config()
        self._store = store if store is not None else SessionStore()
        self._starting = False
        self._http = httpx.AsyncClient(
            base_url=self._config.api_url,
            headers=self._headers(),
            timeout=REQUEST_TIMEOUT,
            transport=transport,
        )
        logger.info(
            f"ApiClient initialized: base_url={self._config.api_url} "
            f"api_version={self._config.api_version} "
            f"has_api_key={self._config.api_key is not None}"
        )

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def is_starting(self) -> bool:
        return self._starting

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._config.api_key:
            headers["X-API-Key"] = self._config.api_key
        return headers

    def _endpoint(self, name: str) -> str:
        return f"/{self._config.api_version}/{name}"

    @staticmethod
    def _check_response(response: httpx.Response) -> None:
        """Map a non-2xx response onto an error code.

        Raises:
            ApiClientError: If the response status is not successful.
        """
        if response.is_success:
            return
        if response.status_code in _SESSION_INVALID_STATUSES:
            raise ApiClientError(ErrorCode.SESSION_NOT_FOUND.value)
        if response.status_code == 500:
            raise ApiClientError(ErrorCode.SERVER_ERROR.value)
        raise ApiClientError(f"API_ERROR_{response.status_code}")

    async def _request(
        self, method: str, path: str, json: dict[str, Any] | None = None
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            ApiClientError: On network failure, error status or non-JSON body.
        """
        logger.debug(f"{method} {path}")
        try:
            response = await self._http.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error(f"Request to {path} failed: {e}")
            raise ApiClientError(ErrorCode.NETWORK_ERROR.value) from e

        self._check_response(response)

        try:
            return response.json()
        except ValueError as e:
            raise ApiClientError(ErrorCode.INVALID_RESPONSE.value) from e

    async def _post_for_reply(self, path: str, body: dict[str, Any]) -> Reply:
        payload = await self._request("POST", path, json=body)
        try:
            return parse_backend_response(payload)
        except ValidationError as e:
            logger.error(f"Unexpected response shape from {path}: {e}")
            raise ApiClientError(ErrorCode.INVALID_RESPONSE.value) from e

    async def _get_mapping(self, path: str) -> dict[str, Any]:
        payload = await self._request("GET", path)
        if not isinstance(payload, dict):
            raise ApiClientError(ErrorCode.INVALID_RESPONSE.value)
        return payload

    async def start_conversation(self, existing_session_id: str | None = None) -> ApiResult:
        """Start a new conversation or resume an existing one.

        Only one start may be in flight per client; a second call while one
        is pending returns DUPLICATE_REQUEST without touching the network.

        Args:
            existing_session_id: Optional session id to resume.

        Returns:
            ApiResult with the greeting reply, or a failure with a fallback
            greeting suitable for display.
        """
        if self._starting:
            logger.warning("start_conversation already in progress, ignoring duplicate request")
            return ApiResult.fail(
                ErrorCode.DUPLICATE_REQUEST, fallback_message=DUPLICATE_FALLBACK
            )

        self._starting = True
        logger.info("Starting conversation")
        try:
            reply = await self._post_for_reply(
                self._endpoint("start"), {"session_id": existing_session_id}
            )
            if not reply.session_id:
                if not existing_session_id:
                    raise ApiClientError(ErrorCode.INVALID_RESPONSE.value)
                reply.session_id = existing_session_id
            self._store.set(reply.session_id, reply.session_token)
            return ApiResult.ok(reply=reply)
        except ApiClientError as e:
            logger.error(f"Failed to start conversation: {e.code}")
            return ApiResult.fail(e.code, fallback_message=START_FALLBACK)
        except Exception as e:
            logger.exception(f"Unexpected error starting conversation: {e}")
            return ApiResult.fail(ErrorCode.UNEXPECTED_ERROR, fallback_message=START_FALLBACK)
        finally:
            self._starting = False
            logger.debug("Conversation start request completed")

    async def send_message(self, session_id: str | None, message: str) -> ApiResult:
        """Send one user message and return the bot's reply.

        Args:
            session_id: Current session id. Fails fast with NO_SESSION if empty.
            message: The user's message.

        Returns:
            ApiResult with the reply. An unknown or expired session yields
            SESSION_EXPIRED with ``requires_reload`` set and a cleared store.
        """
        if not session_id:
            logger.warning("send_message called without a session")
            return ApiResult.fail(ErrorCode.NO_SESSION, fallback_message=SEND_FALLBACK)

        body: dict[str, Any] = {"session_id": session_id, "message": message}
        record = self._store.get()
        if record is not None and record.session_token:
            body["session_token"] = record.session_token

        try:
            reply = await self._post_for_reply(
                self._endpoint(_STEP_ENDPOINTS[self._config.api_version]), body
            )
        except ApiClientError as e:
            if e.code == ErrorCode.SESSION_NOT_FOUND.value:
                logger.info(f"Session {session_id} no longer valid, reload required")
                self._store.clear()
                return ApiResult.fail(ErrorCode.SESSION_EXPIRED, requires_reload=True)
            logger.error(f"Failed to send message: {e.code}")
            return ApiResult.fail(e.code, fallback_message=SEND_FALLBACK)
        except Exception as e:
            logger.exception(f"Unexpected error sending message: {e}")
            return ApiResult.fail(ErrorCode.UNEXPECTED_ERROR, fallback_message=SEND_FALLBACK)

        self._store.refresh()
        return ApiResult.ok(reply=reply)

    async def get_session_info(self, session_id: str | None) -> ApiResult:
        """Fetch backend details for a session (read-only passthrough)."""
        if not session_id:
            return ApiResult.fail(ErrorCode.NO_SESSION)
        try:
            data = await self._get_mapping(self._endpoint(f"session/{session_id}"))
        except ApiClientError as e:
            logger.error(f"Failed to get session info: {e.code}")
            return ApiResult.fail(e.code)
        except Exception as e:
            logger.exception(f"Unexpected error getting session info: {e}")
            return ApiResult.fail(ErrorCode.UNEXPECTED_ERROR)
        return ApiResult.ok(data=data)

    async def check_health(self) -> ApiResult:
        """Query the backend health endpoint.

        Returns:
            ApiResult whose data carries the raw payload plus a ``healthy`` flag.
        """
        try:
            data = await self._get_mapping("/health")
        except ApiClientError as e:
            logger.error(f"Health check failed: {e.code}")
            return ApiResult.fail(e.code)
        except Exception as e:
            logger.exception(f"Unexpected error during health check: {e}")
            return ApiResult.fail(ErrorCode.UNEXPECTED_ERROR)
        return ApiResult.ok(data={**data, "healthy": data.get("status") == "healthy"})

    async def is_v3_available(self) -> bool:
        """Return True if the backend serves the current protocol."""
        try:
            response = await self._http.get("/v3/health")
        except httpx.HTTPError as e:
            logger.error(f"V3 availability check failed: {e}")
            return False
        except Exception as e:
            logger.exception(f"Unexpected error checking v3 availability: {e}")
            return False
        return response.is_success

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

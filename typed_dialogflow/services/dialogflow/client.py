"""Authenticated Dialogflow ES client with typed intent detection."""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from typed_dialogflow.core.auth import TokenSource, resolve_project_id, resolve_token_source
from typed_dialogflow.core.config import (
    DEFAULT_API_BASE_URL,
    Settings,
    get_settings,
    parse_geolocation,
    parse_language_code,
)
from typed_dialogflow.core.errors import (
    AuthenticationError,
    ConfigurationError,
    ResponseFormatError,
    ServiceError,
    TransportError,
)
from typed_dialogflow.schemas.detect_intent import (
    DetectIntentRequest,
    DetectIntentResponse,
    LatLng,
    QueryInput,
    QueryParameters,
    RawDetectionResult,
    TextInput,
)
from typed_dialogflow.services.intent.contracts import IntentSchema
from typed_dialogflow.services.intent.decoder import decode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectIntentOptions:
    language_code: str = "en"
    geolocation: Optional[tuple[float, float]] = None

    def __post_init__(self) -> None:
        try:
            language_code = parse_language_code(self.language_code)
            geolocation = parse_geolocation(self.geolocation)
        except (AttributeError, TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid detect intent options: {exc}") from exc
        object.__setattr__(self, "language_code", language_code)
        object.__setattr__(self, "geolocation", geolocation)


class DialogflowClient:
    """An authenticated Dialogflow client.

    One HTTP connection is opened per request and closed right after; the
    client itself only holds configuration.
    """

    def __init__(
        self,
        project_id: str,
        token_source: TokenSource,
        *,
        options: DetectIntentOptions = DetectIntentOptions(),
        session_id: str = "dev",
        base_url: str = DEFAULT_API_BASE_URL,
        timeout_seconds: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not project_id:
            raise ConfigurationError("Dialogflow project id must not be empty")
        self.project_id = project_id
        self.options = options
        self.session_id = session_id
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._token_source = token_source
        self._transport = transport

    def with_options(self, options: DetectIntentOptions) -> DialogflowClient:
        clone = copy.copy(self)
        clone.options = options
        return clone

    def detect_intent_url(self, session_id: Optional[str] = None) -> str:
        session = quote(session_id or self.session_id, safe="")
        project = quote(self.project_id, safe="")
        return f"{self.base_url}/v2/projects/{project}/agent/sessions/{session}:detectIntent"

    def build_request(self, text: str) -> DetectIntentRequest:
        geo = None
        if self.options.geolocation is not None:
            latitude, longitude = self.options.geolocation
            geo = LatLng(latitude=latitude, longitude=longitude)
        return DetectIntentRequest(
            query_input=QueryInput(
                text=TextInput(text=text, language_code=self.options.language_code)
            ),
            query_params=QueryParameters(geo_location=geo),
        )

    async def send_utterance(
        self,
        text: str,
        *,
        session_id: Optional[str] = None,
    ) -> RawDetectionResult:
        """Send *text* to ``detectIntent`` and return the untyped ``queryResult``."""
        if not text or not text.strip():
            raise ValueError("Utterance must not be empty")

        body = self.build_request(text).to_wire()
        url = self.detect_intent_url(session_id)
        token = await self._token_source()

        logger.debug("detectIntent POST %s (%d chars)", url, len(text))
        t0 = time.monotonic()

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.post(
                    url,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Content-Type": "application/json",
                    },
                    json=body,
                )
        except httpx.HTTPError as exc:
            logger.warning("detectIntent transport failure: %s", exc)
            raise TransportError(f"Dialogflow request failed: {exc}") from exc

        elapsed = (time.monotonic() - t0) * 1000

        if resp.status_code >= 400:
            message = _error_message(resp)
            logger.warning(
                "detectIntent failed with HTTP %d after %.2fms: %s",
                resp.status_code,
                elapsed,
                message,
            )
            if resp.status_code in (401, 403):
                raise AuthenticationError(message)
            raise ServiceError(resp.status_code, message)

        try:
            parsed = DetectIntentResponse.model_validate_json(resp.content)
        except ValidationError as exc:
            raise ResponseFormatError(f"Cannot deserialize detectIntent response: {exc}") from exc

        result = parsed.query_result
        logger.info(
            "detectIntent matched %r (confidence=%s) in %.2fms",
            result.intent_name,
            result.intent_detection_confidence,
            elapsed,
        )
        return result

    async def detect_intent(
        self,
        text: str,
        schema: IntentSchema,
        *,
        session_id: Optional[str] = None,
    ) -> BaseModel:
        """Detect the intent of *text* and decode it into a variant of *schema*.

        ``TransportError`` and ``DecodeError`` propagate unchanged; an
        utterance Dialogflow did not understand raises ``UnknownIntent``.
        """
        raw = await self.send_utterance(text, session_id=session_id)
        return decode(raw, schema)


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text.strip() or resp.reason_phrase
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        message = payload["error"].get("message")
        if message:
            return str(message)
    return resp.reason_phrase


async def create_client(
    settings: Optional[Settings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DialogflowClient:
    """Build a client from environment settings, failing fast on bad config."""
    settings = settings or get_settings()

    errors = settings.validate_required_config()
    if errors:
        raise ConfigurationError("; ".join(errors))

    project_id = await resolve_project_id(settings)
    return DialogflowClient(
        project_id,
        resolve_token_source(settings),
        options=DetectIntentOptions(
            language_code=settings.dialogflow_language_code,
            geolocation=settings.dialogflow_geolocation,
        ),
        session_id=settings.dialogflow_session_id,
        base_url=settings.dialogflow_api_base_url,
        timeout_seconds=settings.dialogflow_timeout_seconds,
        transport=transport,
    )

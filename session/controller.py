"""
Chat session controller.

Owns the conversation for one chat surface, sends each user message to
Gemini with the full history, and replays the reply through the stream
scheduler while reporting progress to the UI as SessionEvents.
"""
import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from api import (
    GeminiClient,
    GeminiChatError,
    ValidationError,
    SessionBusyError,
    AuthError,
    build_request,
)
from models import Role, Turn, ConversationStore, ChatSettings
from token_counter import count_text_tokens, preload_encoding
import constants as C
from .events import EventType, SessionEvent, EventSink
from .stream import StreamScheduler

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"
    STREAMING = "streaming"


class SessionController:
    """Conversation state machine for a single chat session."""

    def __init__(
        self,
        sink: EventSink,
        client: GeminiClient,
        read_api_key: Callable[[], Optional[str]],
        settings: Optional[ChatSettings] = None,
        scheduler: Optional[StreamScheduler] = None,
    ):
        """Initialize the session.

        Args:
            sink: Receives every SessionEvent for the UI.
            client: Client used for completions.
            read_api_key: Returns the configured API key; read on every submission.
            settings: Generation and pacing settings. The model in it is the
                initial model selection.
            scheduler: Stream scheduler; built from settings if omitted.
        """
        self.settings = settings or ChatSettings()
        self._sink = sink
        self._client = client
        self._read_api_key = read_api_key
        self._scheduler = scheduler or StreamScheduler(
            interval_ms=self.settings.stream_interval_ms,
            words_per_chunk=self.settings.words_per_chunk,
        )
        self._store = ConversationStore()
        self._model = self.settings.model
        self._state = SessionState.IDLE
        self._request: Optional[asyncio.Future] = None
        # Bumped on every clear so replies from before the clear are dropped.
        self._generation = 0
        self._idle = asyncio.Event()
        self._idle.set()

    async def initialize(self) -> None:
        """Load the tokenizer off the event loop.

        Turns submitted before this finishes get character-based token
        estimates.
        """
        await preload_encoding()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def model(self) -> str:
        """Model used for the next request."""
        return self._model

    @property
    def conversation(self) -> tuple[Turn, ...]:
        return self._store.all()

    async def submit(self, text: str) -> None:
        """Send a user message and start streaming the reply.

        Returns once the reply has started streaming or the request failed.
        Failures are reported through an "error" event, not raised.

        Raises:
            ValidationError: If the text is empty.
            SessionBusyError: If a previous message is still being answered.
        """
        if text is None or not text.strip():
            raise ValidationError("Message is empty")
        if self._state is not SessionState.IDLE:
            raise SessionBusyError(f"Cannot submit while {self._state.value}")

        model = self._model
        generation = self._generation
        history = self._store.all()
        request: Optional[asyncio.Future] = None

        user_turn = Turn(role=Role.USER, content=text, model=model, tokens=count_text_tokens(text, load=False))
        self._store.append(user_turn)
        logger.debug("User message: %d chars", len(text))
        self._emit(EventType.USER_MESSAGE, turn=user_turn.to_dict())
        self._emit(EventType.TYPING_STARTED)
        self._set_state(SessionState.AWAITING_RESPONSE)

        try:
            api_key = self._read_api_key()
            if not api_key:
                raise AuthError()
            payload = build_request(history, text, self.settings)
            logger.info(
                "Sending %d turns (~%d tokens) to %s",
                len(payload["contents"]),
                sum(turn.tokens for turn in history) + user_turn.tokens,
                model,
            )
            request = asyncio.ensure_future(self._client.complete(payload, api_key=api_key, model=model))
            self._request = request
            reply = await request
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.info("Discarded in-flight request after the session was cleared")
                return
            self._release_request(request)
            self._set_state(SessionState.IDLE)
            raise
        except GeminiChatError as e:
            self._fail(generation, request, str(e))
            return
        except Exception as e:
            logger.exception("Unexpected error while fetching reply")
            self._fail(generation, request, f"{type(e).__name__} - {e}")
            return
        self._release_request(request)

        if generation != self._generation:
            logger.info("Discarded reply for a cleared session")
            return

        assistant_turn = Turn(role=Role.ASSISTANT, content=reply, model=model, tokens=count_text_tokens(reply, load=False))
        self._store.append(assistant_turn)
        logger.debug("Assistant reply: %d chars, ~%d tokens", len(reply), assistant_turn.tokens)
        self._set_state(SessionState.STREAMING)
        self._emit(EventType.STREAM_STARTED)
        self._scheduler.start(reply, on_chunk=self._on_stream_chunk, on_done=self._on_stream_done)

    def clear_session(self) -> None:
        """Stop any stream or request and empty the conversation."""
        self._generation += 1
        self._scheduler.stop()
        if self._request is not None and not self._request.done():
            self._request.cancel()
        self._request = None
        self._store.clear()
        self._set_state(SessionState.IDLE)
        logger.info("Conversation cleared")
        self._emit(EventType.CLEARED)

    def change_model(self, model_id: str) -> None:
        """Select the model for subsequent requests."""
        if not model_id or not model_id.strip():
            raise ValidationError("Model id is empty")
        model_id = model_id.strip()
        if model_id not in C.AVAILABLE_MODELS:
            logger.warning("Model %s is not in the known model list", model_id)
        logger.info("Model changed: %s -> %s", self._model, model_id)
        self._model = model_id

    def request_credential_status(self) -> None:
        """Report whether an API key is configured."""
        self._emit(EventType.CREDENTIAL_STATUS, present=bool(self._read_api_key()))

    async def wait_until_idle(self) -> None:
        """Wait until no request or stream is in progress."""
        await self._idle.wait()

    async def handle_message(self, message: dict) -> bool:
        """Dispatch a message dict sent by the UI.

        Returns:
            False if the message was rejected or unknown.
        """
        msg_type = message.get("type")
        try:
            if msg_type == "submit":
                await self.submit(message.get("text", ""))
            elif msg_type == "clear-session":
                self.clear_session()
            elif msg_type == "change-model":
                self.change_model(message.get("model", ""))
            elif msg_type == "request-credential-status":
                self.request_credential_status()
            else:
                logger.warning("Ignoring unknown UI message type: %s", msg_type)
                return False
        except ValidationError as e:
            logger.info("Rejected %s: %s", msg_type, e)
            return False
        return True

    def _on_stream_chunk(self, chunk: str) -> None:
        self._emit(EventType.STREAM_CHUNK, text=chunk)

    def _on_stream_done(self) -> None:
        self._set_state(SessionState.IDLE)
        self._emit(EventType.STREAM_ENDED)

    def _release_request(self, request: Optional[asyncio.Future]) -> None:
        # A stale submit must not drop the handle of a newer request.
        if request is not None and self._request is request:
            self._request = None

    def _fail(self, generation: int, request: Optional[asyncio.Future], message: str) -> None:
        self._release_request(request)
        if generation != self._generation:
            return
        logger.error("Failed to get reply: %s", message)
        self._set_state(SessionState.IDLE)
        self._emit(EventType.ERROR, message=f"{C.MSG_ERROR_PREFIX}{message}")

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        if state is SessionState.IDLE:
            self._idle.set()
        else:
            self._idle.clear()

    def _emit(self, event_type: EventType, **data) -> None:
        try:
            self._sink(SessionEvent(event_type, data))
        except Exception as e:
            logger.warning("Event sink failed on %s: %s", event_type.value, e)

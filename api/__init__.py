"""
Gemini API client for content generation.

The generateContent endpoint returns the whole answer in one response;
incremental display is handled client-side by session.stream.
"""
import asyncio
import json
import logging
from typing import Optional

import aiohttp

import constants as C
from .payload import build_contents, build_request

logger = logging.getLogger(__name__)


class GeminiChatError(Exception):
    """Base exception for chat session and API errors."""
    pass


class ValidationError(GeminiChatError):
    """Raised when user input is rejected before any state changes."""
    pass


class SessionBusyError(ValidationError):
    """Raised when a submission arrives while a reply is still in progress."""
    pass


class AuthError(GeminiChatError):
    """Raised when no API key is configured."""

    def __init__(self, message: str = C.MSG_MISSING_API_KEY):
        super().__init__(message)


class RemoteError(GeminiChatError):
    """Raised when the endpoint fails or cannot be reached."""

    def __init__(self, status: Optional[int], message: str):
        self.status = status
        self.message = message
        super().__init__(message)


class MalformedResponseError(GeminiChatError):
    """Raised when a success response does not carry usable text."""
    pass


class GeminiClient:
    """Client for communicating with the Gemini generateContent API."""

    def __init__(self, base_url: str = C.API_BASE_URL, timeout: float = C.API_TIMEOUT):
        """Initialize the Gemini client.

        Args:
            base_url: Base URL of the API (e.g., https://generativelanguage.googleapis.com/v1beta)
            timeout: Total request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> None:
        """Asynchronously initialize the HTTP session."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()

    async def close(self) -> None:
        """Close the HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    async def __aenter__(self) -> "GeminiClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def endpoint_for(self, model: str) -> str:
        """URL of the generateContent endpoint for a model."""
        return f"{self.base_url}{C.API_GENERATE_CONTENT.format(model=model)}"

    async def complete(self, payload: dict, api_key: Optional[str], model: str) -> str:
        """Send one generateContent request and return the reply text.

        Args:
            payload: Request body from api.payload.build_request.
            api_key: Gemini API key.
            model: Model identifier the request is addressed to.

        Returns:
            The full reply text.

        Raises:
            AuthError: If no API key is given. No request is made.
            RemoteError: If the endpoint returns a failure status or is unreachable.
            MalformedResponseError: If a success response has no candidate text.
        """
        if not api_key:
            raise AuthError()
        if self.session is None or self.session.closed:
            await self.initialize()

        url = self.endpoint_for(model)
        logger.info(
            "Sending generateContent request: model=%s contents=%d",
            model,
            len(payload.get("contents", [])),
        )
        try:
            async with self.session.post(
                url,
                params={"key": api_key},
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as resp:
                if not 200 <= resp.status < 300:
                    message = await self._error_message(resp)
                    logger.warning("Gemini API error: status=%d message=%s", resp.status, message)
                    raise RemoteError(resp.status, message)
                try:
                    data = await resp.json(content_type=None)
                except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
                    raise MalformedResponseError("Invalid response from Gemini API") from e
        except asyncio.TimeoutError as e:
            raise RemoteError(None, f"Request timed out (exceeded {self.timeout}s)") from e
        except aiohttp.ClientConnectorError as e:
            raise RemoteError(None, f"Failed to connect to Gemini API: {e}") from e
        except aiohttp.ClientError as e:
            raise RemoteError(None, f"Client error: {e}") from e

        return self._extract_text(data)

    async def _error_message(self, resp: aiohttp.ClientResponse) -> str:
        """Pull the message out of a structured error body, else "HTTP {status}"."""
        fallback = f"HTTP {resp.status}"
        try:
            data = await resp.json(content_type=None)
        except (json.JSONDecodeError, aiohttp.ContentTypeError, UnicodeDecodeError):
            return fallback
        if not isinstance(data, dict):
            return fallback
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"]:
            return error["message"]
        return fallback

    def _extract_text(self, data: object) -> str:
        """Extract reply text from candidates[0].content.parts."""
        if not isinstance(data, dict):
            raise MalformedResponseError("Invalid response from Gemini API")
        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            raise MalformedResponseError("Invalid response from Gemini API")
        content = candidates[0].get("content")
        if not isinstance(content, dict):
            raise MalformedResponseError("Invalid response from Gemini API")
        parts = content.get("parts")
        if not isinstance(parts, list):
            raise MalformedResponseError("Invalid response from Gemini API")

        texts = [part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)]
        text = "".join(texts)
        if not text.strip():
            raise MalformedResponseError("Empty response from Gemini API")
        return text


__all__ = [
    "GeminiClient",
    "GeminiChatError",
    "ValidationError",
    "SessionBusyError",
    "AuthError",
    "RemoteError",
    "MalformedResponseError",
    "build_contents",
    "build_request",
]

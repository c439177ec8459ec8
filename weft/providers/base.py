"""Base provider adapter: transport plumbing shared by every provider."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from ..errors import AuthenticationError, RateLimitError, TransportError
from ..types import IdSource


def translate_sdk_error(sdk: Any, err: Exception, provider: str) -> TransportError:
    """Map an ``openai``/``anthropic`` SDK exception onto the transport error tree.

    Both SDKs expose the same exception names, so one mapping serves both.
    """
    if isinstance(err, sdk.AuthenticationError):
        return AuthenticationError(provider)
    if isinstance(err, sdk.RateLimitError):
        return RateLimitError(provider, _retry_after(err))
    if isinstance(err, sdk.APIStatusError):
        return TransportError(provider, str(err), err.status_code, cause=err)
    if isinstance(err, sdk.APIConnectionError):
        return TransportError(provider, f"Connection error: {err}", cause=err)
    return TransportError.wrap(err, provider)


def _retry_after(err: Any) -> float | None:
    response = getattr(err, "response", None)
    value = response.headers.get("retry-after") if response is not None else None
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None


def as_dict(raw: Any) -> dict[str, Any]:
    """Normalize an SDK response object (pydantic-based) or a plain mapping to a dict."""
    if isinstance(raw, dict):
        return raw
    if hasattr(raw, "model_dump"):
        return raw.model_dump()
    raise TypeError(f"Cannot interpret provider payload of type {type(raw).__name__}")


class BaseProviderAdapter:
    """
    Shared transport half of the adapter contract.

    Subclasses implement the pure translation methods (``build_request``,
    ``parse_response``, ``parse_stream_frame``) plus ``_do_send`` and
    ``_do_stream``. Errors raised by the SDK are translated once, here, via
    ``_translate_error``; anything already a ``TransportError`` passes through.
    No retries happen at this layer.
    """

    name = "base"
    id_source = IdSource.OPENAI

    async def send(self, request: dict[str, Any]) -> Any:
        try:
            return await self._do_send(request)
        except TransportError:
            raise
        except Exception as e:
            raise self._translate_error(e) from e

    async def open_stream(self, request: dict[str, Any]) -> AsyncIterator[Any]:
        try:
            async for frame in self._do_stream(request):
                yield frame
        except TransportError:
            raise
        except Exception as e:
            raise self._translate_error(e) from e

    # -- Override these --

    async def _do_send(self, request: dict[str, Any]) -> Any:
        raise NotImplementedError

    async def _do_stream(self, request: dict[str, Any]) -> AsyncIterator[Any]:
        raise NotImplementedError
        yield  # pragma: no cover

    def _translate_error(self, err: Exception) -> TransportError:
        return TransportError.wrap(err, self.name)

"""Structured error hierarchy for the completion engine."""

from __future__ import annotations


class WeftError(Exception):
    def __init__(self, code: str, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.cause = cause

    @classmethod
    def wrap(cls, err: Exception) -> WeftError:
        if isinstance(err, WeftError):
            return err
        return WeftError("UNKNOWN", str(err), err)


class TransportError(WeftError):
    """Non-success response or network failure. Fatal; never retried by the engine."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int | None = None,
        code: str = "TRANSPORT_ERROR",
        cause: Exception | None = None,
    ) -> None:
        super().__init__(code, message, cause)
        self.provider = provider
        self.status_code = status_code

    @classmethod
    def wrap(cls, err: Exception, provider: str = "unknown") -> TransportError:
        if isinstance(err, TransportError):
            return err
        return TransportError(provider, f"{type(err).__name__}: {err}", cause=err)


class RateLimitError(TransportError):
    def __init__(self, provider: str, retry_after_seconds: float | None = None) -> None:
        super().__init__(provider, f"Rate limited by {provider}", 429, code="RATE_LIMIT")
        self.retry_after_seconds = retry_after_seconds


class AuthenticationError(TransportError):
    def __init__(self, provider: str) -> None:
        super().__init__(provider, f"Authentication failed for {provider}", 401, code="AUTH_ERROR")


class TransportTimeoutError(TransportError):
    def __init__(self, provider: str, timeout_seconds: float) -> None:
        super().__init__(
            provider,
            f"Request to {provider} timed out after {timeout_seconds}s",
            code="TRANSPORT_TIMEOUT",
        )
        self.timeout_seconds = timeout_seconds


class RoundsExceededError(WeftError):
    """The round loop hit ``max_rounds`` without a final answer."""

    def __init__(self, max_rounds: int, partial_content: str = "") -> None:
        message = f"Maximum rounds ({max_rounds}) exceeded without a final answer"
        if partial_content:
            message += f". Last partial response: {partial_content}"
        super().__init__("ROUNDS_EXCEEDED", message)
        self.max_rounds = max_rounds
        self.partial_content = partial_content


class AgentMaxStepsError(RoundsExceededError):
    def __init__(self, steps: int, partial_content: str = "") -> None:
        super().__init__(steps, partial_content)
        self.code = "AGENT_MAX_STEPS"
        self.steps = steps


class MalformedFunctionCallError(WeftError):
    """A function call cannot be routed back to the provider."""

    def __init__(self, name: str | None, reason: str) -> None:
        super().__init__("MALFORMED_FUNCTION_CALL", f'Malformed function call "{name}": {reason}')
        self.name = name
        self.reason = reason


class StructuredOutputError(WeftError):
    """Structured output could not be parsed after every repair attempt."""

    def __init__(
        self,
        target_name: str,
        first_raw: str,
        last_raw: str,
        parse_error: str,
        attempt_count: int,
        schema: str,
    ) -> None:
        super().__init__(
            "STRUCTURED_OUTPUT_FAILED",
            f"Failed to parse response as {target_name} after {attempt_count} attempt(s). "
            f"Parse error: {parse_error}",
        )
        self.target_name = target_name
        self.first_raw = first_raw
        self.last_raw = last_raw
        self.parse_error = parse_error
        self.attempt_count = attempt_count
        self.schema = schema


class UsageError(WeftError):
    def __init__(self, message: str) -> None:
        super().__init__("USAGE_ERROR", message)

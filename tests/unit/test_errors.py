"""Unit tests for the error hierarchy."""

from weft.errors import (
    AgentMaxStepsError,
    AuthenticationError,
    MalformedFunctionCallError,
    RateLimitError,
    RoundsExceededError,
    StructuredOutputError,
    TransportError,
    TransportTimeoutError,
    UsageError,
    WeftError,
)


class TestWeftError:
    def test_wrap_passthrough(self):
        err = UsageError("twice")
        assert WeftError.wrap(err) is err

    def test_wrap_foreign(self):
        cause = ValueError("bad")
        err = WeftError.wrap(cause)
        assert err.code == "UNKNOWN"
        assert err.cause is cause


class TestTransportErrors:
    def test_hierarchy(self):
        assert issubclass(RateLimitError, TransportError)
        assert issubclass(AuthenticationError, TransportError)
        assert issubclass(TransportTimeoutError, TransportError)

    def test_rate_limit(self):
        err = RateLimitError("openai", 3.0)
        assert err.status_code == 429
        assert err.retry_after_seconds == 3.0
        assert err.code == "RATE_LIMIT"

    def test_auth(self):
        err = AuthenticationError("anthropic")
        assert err.status_code == 401
        assert err.provider == "anthropic"

    def test_timeout(self):
        err = TransportTimeoutError("openai", 1.5)
        assert err.timeout_seconds == 1.5
        assert "1.5s" in str(err)

    def test_wrap_keeps_provider(self):
        err = TransportError.wrap(ConnectionError("reset"), "openai")
        assert err.provider == "openai"
        assert "ConnectionError" in str(err)


class TestRoundErrors:
    def test_rounds_exceeded_message(self):
        err = RoundsExceededError(3, "half done")
        assert err.max_rounds == 3
        assert err.partial_content == "half done"
        assert "Maximum rounds (3)" in str(err)

    def test_agent_max_steps_is_rounds_exceeded(self):
        err = AgentMaxStepsError(5, "partial")
        assert isinstance(err, RoundsExceededError)
        assert err.code == "AGENT_MAX_STEPS"
        assert err.steps == 5

    def test_malformed_call(self):
        err = MalformedFunctionCallError("get_weather", "missing correlation id")
        assert err.name == "get_weather"
        assert "missing correlation id" in str(err)


class TestStructuredOutputError:
    def test_diagnostics(self):
        err = StructuredOutputError("Weather", "first", "last", "bad json", 3, "{}")
        assert err.first_raw == "first"
        assert err.last_raw == "last"
        assert err.attempt_count == 3
        assert err.target_name == "Weather"
        assert "3 attempt(s)" in str(err)

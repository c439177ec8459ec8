"""Unit tests for policies and service configuration."""

import pytest
from pydantic import ValidationError

from weft.config import FunctionCallingPolicy, ProviderConfig, ServiceConfig, StructuredOutputPolicy


class TestFunctionCallingPolicy:
    def test_defaults(self):
        p = FunctionCallingPolicy()
        assert p.max_rounds == 20
        assert p.timeout_seconds == 120.0
        assert p.max_concurrency == 4
        assert p.enable_logging is False

    def test_presets(self):
        assert FunctionCallingPolicy.fast().max_rounds == 5
        assert FunctionCallingPolicy.fast().timeout_seconds == 30.0
        assert FunctionCallingPolicy.unlimited_time().timeout_seconds is None

    def test_immutable(self):
        p = FunctionCallingPolicy()
        with pytest.raises(ValidationError):
            p.max_rounds = 3

    def test_with_max_rounds_copies(self):
        p = FunctionCallingPolicy.fast()
        q = p.with_max_rounds(9)
        assert q.max_rounds == 9
        assert q.timeout_seconds == 30.0
        assert p.max_rounds == 5

    def test_rejects_zero_rounds(self):
        with pytest.raises(ValidationError):
            FunctionCallingPolicy(max_rounds=0)

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            FunctionCallingPolicy(timeout_seconds=0)


class TestStructuredOutputPolicy:
    def test_default_defers_to_service(self):
        assert StructuredOutputPolicy.default().resolve(2) == 2

    def test_no_retry(self):
        assert StructuredOutputPolicy.no_retry().resolve(2) == 0

    def test_strict(self):
        assert StructuredOutputPolicy.strict().resolve(2) == 3

    def test_negative_service_default_clamped(self):
        assert StructuredOutputPolicy().resolve(-4) == 0

    def test_rejects_negative(self):
        with pytest.raises(ValidationError):
            StructuredOutputPolicy(max_repair_attempts=-1)


class TestServiceConfig:
    def test_defaults(self):
        c = ServiceConfig()
        assert c.structured_output_max_retries == 2
        assert c.stateless is False
        assert c.default_policy == FunctionCallingPolicy()


class TestProviderConfig:
    def test_model_required(self):
        with pytest.raises(ValidationError):
            ProviderConfig()

    def test_temperature_bounds(self):
        with pytest.raises(ValidationError):
            ProviderConfig(model="m", temperature=3.0)

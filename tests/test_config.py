"""Tests for graphql_api_kit/core/config.py."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from graphql_api_kit.core.config import RequestConfiguration, Valves


class TestValves:
    """Tests for Valves defaults and validation."""

    def test_defaults(self):
        valves = Valves(ENDPOINT_URL="https://api.example.com/graphql")

        assert valves.MAX_ATTEMPTS == 3
        assert valves.DEFAULT_HEADERS == {}
        assert valves.HTTP_TOTAL_TIMEOUT_SECONDS is None
        assert valves.STREAM_BUFFER_SIZE == 32
        assert valves.ENABLE_TIMING_LOG is False

    def test_valves_are_immutable(self):
        valves = Valves()

        with pytest.raises(ValidationError):
            valves.MAX_ATTEMPTS = 5  # type: ignore[misc]

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            Valves(MAX_RETRIES=2)  # type: ignore[call-arg]

    @pytest.mark.parametrize("value", [0, 11])
    def test_max_attempts_bounds(self, value):
        with pytest.raises(ValidationError):
            Valves(MAX_ATTEMPTS=value)

    def test_status_range_must_be_ordered(self):
        with pytest.raises(ValidationError, match="SUCCESS_STATUS_MIN"):
            Valves(SUCCESS_STATUS_MIN=300, SUCCESS_STATUS_MAX=200)

    @pytest.mark.parametrize(("status", "expected"), [(199, False), (200, True), (204, True), (299, True), (300, False)])
    def test_is_success_status(self, status, expected):
        assert Valves().is_success_status(status) is expected

    def test_custom_success_range(self):
        valves = Valves(SUCCESS_STATUS_MIN=200, SUCCESS_STATUS_MAX=200)

        assert valves.is_success_status(200)
        assert not valves.is_success_status(204)

    def test_log_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("GLOBAL_LOG_LEVEL", "warning")

        assert Valves().LOG_LEVEL == "WARNING"

    def test_invalid_environment_log_level_falls_back(self, monkeypatch):
        monkeypatch.setenv("GLOBAL_LOG_LEVEL", "chatty")

        assert Valves().LOG_LEVEL == "INFO"


class TestRequestConfiguration:
    """Tests for RequestConfiguration."""

    def test_additional_headers(self):
        config = RequestConfiguration(headers={"Authorization": "Bearer T"})

        assert config.additional_headers == {"Authorization": "Bearer T"}

    def test_no_headers(self):
        assert RequestConfiguration().additional_headers == {}

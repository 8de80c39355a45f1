"""Unit tests for environment-driven configuration."""

from __future__ import annotations

import pytest

from adminconsole.core.config import (
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    env_bool,
    env_float,
    get_config,
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [("testing", TestingConfig), ("production", ProductionConfig), ("bogus", DevelopmentConfig)],
)
def test_get_config_selects_by_app_env(
    monkeypatch: pytest.MonkeyPatch, name: str, expected: type
) -> None:
    monkeypatch.setenv("APP_ENV", name)

    assert get_config() is expected


def test_get_config_defaults_to_development(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("APP_ENV", raising=False)

    assert get_config() is DevelopmentConfig


@pytest.mark.parametrize(
    ("raw", "expected"), [("1", True), ("Yes", True), ("on", True), ("0", False), ("no", False)]
)
def test_env_bool(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
    monkeypatch.setenv("FLAG_UNDER_TEST", raw)

    assert env_bool("FLAG_UNDER_TEST") is expected


def test_env_bool_default_when_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FLAG_UNDER_TEST", raising=False)

    assert env_bool("FLAG_UNDER_TEST", True) is True


@pytest.mark.parametrize(("raw", "expected"), [("2.5", 2.5), ("", 7.0), ("abc", 7.0)])
def test_env_float(monkeypatch: pytest.MonkeyPatch, raw: str, expected: float) -> None:
    monkeypatch.setenv("NUMBER_UNDER_TEST", raw)

    assert env_float("NUMBER_UNDER_TEST", 7.0) == expected


def test_testing_config_is_isolated() -> None:
    assert TestingConfig.TESTING is True
    assert TestingConfig.CREDENTIAL_BACKEND == "memory"
    assert TestingConfig.SESSION_IDLE_TIMEOUT_SECONDS == 0.0
    assert TestingConfig.CREDENTIAL_KEY == "auth-storage"

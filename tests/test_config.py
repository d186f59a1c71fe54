from __future__ import annotations

import pytest

from compliance_engine.core.config import Settings, _csv, settings
from compliance_engine.core.errors import ConfigError
from compliance_engine.infra import supabase_client
from compliance_engine.services.policy.registry import RulebookRegistry


def test_csv_parsing() -> None:
    assert _csv("http://a, http://b,,") == ["http://a", "http://b"]
    assert _csv("") == []


def test_settings_defaults() -> None:
    s = Settings()
    assert s.DEFAULT_CURRENCY is None or len(s.DEFAULT_CURRENCY) == 3
    assert s.EXPIRING_SOON_DAYS is None or s.EXPIRING_SOON_DAYS >= 0
    assert isinstance(s.CORS_ORIGINS, list)


def test_compliance_defaults_fall_back_to_rulebook_meta(rulebook, loaded_registry, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(RulebookRegistry, "_bundle", rulebook.model_copy(
        update={"meta": rulebook.meta.model_copy(update={"currency": "SAR", "expiring_soon_days": 45})}
    ))
    monkeypatch.setattr(settings, "DEFAULT_CURRENCY", None)
    monkeypatch.setattr(settings, "EXPIRING_SOON_DAYS", None)
    assert RulebookRegistry.default_currency() == "SAR"
    assert RulebookRegistry.expiring_soon_days() == 45

    monkeypatch.setattr(settings, "DEFAULT_CURRENCY", "USD")
    monkeypatch.setattr(settings, "EXPIRING_SOON_DAYS", 0)
    assert RulebookRegistry.default_currency() == "USD"
    assert RulebookRegistry.expiring_soon_days() == 0


def test_supabase_client_fails_fast_without_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    supabase_client.reset_supabase()
    monkeypatch.setattr(supabase_client.settings, "SUPABASE_URL", "")
    with pytest.raises(ConfigError):
        supabase_client.get_supabase()


def test_setup_logging_accepts_level_names() -> None:
    import logging

    from compliance_engine.core.logging import setup_logging

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING
    setup_logging(logging.INFO)
    assert logging.getLogger().level == logging.INFO

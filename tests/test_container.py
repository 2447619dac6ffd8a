"""Tests for container wiring."""

import asyncio

import pytest

from property_stage.adapters.email_code_sender import LoggingCodeSender, ResendCodeSender
from property_stage.adapters.local_account_repository import LocalAccountRepository
from property_stage.containers import build_container
from property_stage.domain.accounts import PlanTier


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert isinstance(container.account_service.repository, LocalAccountRepository)
    assert isinstance(container.auth_flow.code_sender, LoggingCodeSender)
    assert container.account_service.get_by_email("admin@propertystage.hk") is not None
    assert container.plan_credits[PlanTier.PRO] == 50
    asyncio.run(container.close_resources())


def test_build_container_restores_session_from_disk(settings) -> None:
    first = build_container(settings)
    view = first.account_service.signup("agent@example.com", "Agent", "pw")
    first.session_manager.establish(view)

    second = build_container(settings)

    assert second.session_manager.current == view


def test_build_container_uses_resend_when_configured(settings) -> None:
    configured = settings.model_copy(update={"resend_api_key": "re_key"})

    container = build_container(configured)

    assert isinstance(container.auth_flow.code_sender, ResendCodeSender)
    asyncio.run(container.close_resources())


def test_build_container_rejects_incomplete_supabase_settings(settings) -> None:
    configured = settings.model_copy(update={"storage_backend": "supabase"})

    with pytest.raises(ValueError):
        build_container(configured)


def test_build_container_rejects_unknown_backend(settings) -> None:
    configured = settings.model_copy(update={"storage_backend": "redis"})

    with pytest.raises(ValueError):
        build_container(configured)

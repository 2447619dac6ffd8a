"""Tests for the HTTP endpoints."""

from fastapi.testclient import TestClient

from property_stage.api.app import create_app
from property_stage.domain.errors import (
    CreditExhausted,
    DuplicateEmail,
    GenerationInProgress,
    NotSignedIn,
    ResendCooldownActive,
)
from property_stage.domain.generation import TransformResponse
from property_stage.services.messages import GENERIC_RETRY_MESSAGE


def _signed_in_client(container, code_sender, email: str = "agent@example.com") -> TestClient:
    client = TestClient(create_app(container))
    response = client.post(
        "/auth/signup", json={"email": email, "password": "pw", "name": "Agent"}
    )
    assert response.status_code == 200
    response = client.post("/auth/verify", json={"code": code_sender.last_code})
    assert response.status_code == 200
    return client


def test_health(container) -> None:
    client = TestClient(create_app(container))

    assert client.get("/health").json() == {"status": "ok"}


def test_signup_verify_flow(container, code_sender) -> None:
    client = TestClient(create_app(container))

    signup = client.post(
        "/auth/signup", json={"email": "Agent@Example.com", "password": "pw"}
    ).json()
    assert signup["step"] == "VERIFY_2FA"
    assert signup["pending_email"] == "agent@example.com"
    assert signup["resend_remaining_seconds"] == 30
    assert signup["account"] is None

    code = code_sender.last_code
    for index, digit in enumerate(code[:-1]):
        partial = client.post("/auth/verify/digit", json={"index": index, "value": digit})
        assert partial.json()["verified"] is False
    final = client.post("/auth/verify/digit", json={"index": 5, "value": code[-1]}).json()

    assert final["verified"] is True
    assert final["step"] == "SESSION_ESTABLISHED"
    assert final["account"]["email"] == "agent@example.com"
    assert "password_hash" not in final["account"]
    assert client.get("/account").json()["credits"] == 3


def test_wrong_code_returns_error_and_keeps_waiting(container, code_sender) -> None:
    client = TestClient(create_app(container))
    client.post("/auth/signup", json={"email": "agent@example.com", "password": "pw"})
    wrong = "000000" if code_sender.last_code != "000000" else "999999"

    response = client.post("/auth/verify", json={"code": wrong})

    assert response.status_code == 400
    assert response.json()["code"] == "CodeMismatch"
    assert client.get("/auth/state").json()["step"] == "VERIFY_2FA"


def test_resend_during_cooldown_is_rejected(container, code_sender, clock) -> None:
    client = TestClient(create_app(container))
    client.post("/auth/signup", json={"email": "agent@example.com", "password": "pw"})

    response = client.post("/auth/resend")
    assert response.status_code == 429
    assert response.json()["code"] == ResendCooldownActive.__name__

    clock.advance(30)
    assert client.post("/auth/resend").status_code == 200
    assert len(code_sender.codes) == 2


def test_duplicate_signup_conflicts(container, code_sender) -> None:
    container.account_service.signup("agent@example.com", "Agent", "pw")
    client = TestClient(create_app(container))

    response = client.post("/auth/signup", json={"email": "agent@example.com", "password": "x"})

    assert response.status_code == 409
    assert response.json() == {"error": DuplicateEmail.message, "code": "DuplicateEmail"}


def test_login_with_wrong_password_is_unauthorized(container) -> None:
    container.account_service.signup("agent@example.com", "Agent", "pw")
    client = TestClient(create_app(container))

    response = client.post("/auth/login", json={"email": "agent@example.com", "password": "no"})

    assert response.status_code == 401
    assert response.json()["code"] == "WrongSecret"


def test_forgot_and_back(container, code_sender) -> None:
    client = TestClient(create_app(container))

    assert client.post("/auth/forgot").json()["step"] == "FORGOT_PASSWORD"
    reset = client.post("/auth/reset", json={"email": "ghost@example.com"}).json()
    assert reset["reset_sent"] is True
    assert code_sender.resets == []
    assert client.post("/auth/back").json()["step"] == "FORM"
    assert client.post("/auth/back").status_code == 409


def test_account_requires_session(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/account")

    assert response.status_code == 401
    assert response.json()["error"] == NotSignedIn.message


def test_studio_generate_undo_redo(container, code_sender, source_image) -> None:
    client = _signed_in_client(container, code_sender)

    assert client.post("/studio/source", json={"image": source_image}).status_code == 200
    first = client.post("/studio/generate", json={"style_id": "industrial"}).json()
    second = client.post("/studio/refine", json={"instruction": "Warm lighting"}).json()

    assert first["current"]["style_label"] == "Industrial"
    assert second["current"]["style_label"] == "Refined: Warm lighting"
    assert second["can_undo"] is True
    assert second["busy"] is False
    undone = client.post("/studio/undo").json()
    assert undone["current"]["id"] == first["current"]["id"]
    assert undone["can_redo"] is True
    assert client.post("/studio/redo").json()["current"]["id"] == second["current"]["id"]
    discarded = client.post("/studio/discard").json()
    assert discarded["current"] is None
    assert discarded["source_image"] == source_image
    assert client.get("/account").json()["credits"] == 1


def test_studio_history_and_reopen(container, code_sender, source_image) -> None:
    client = _signed_in_client(container, code_sender)
    client.post("/studio/source", json={"image": source_image})
    generated = client.post("/studio/generate", json={}).json()["current"]

    entries = client.get("/studio/history").json()["entries"]
    assert [entry["id"] for entry in entries] == [generated["id"]]

    client.post("/studio/discard")
    reopened = client.post(f"/studio/history/{generated['id']}/open").json()
    assert reopened["current"]["id"] == generated["id"]
    assert client.post("/studio/history/unknown/open").status_code == 404


def test_generation_without_credits_is_payment_required(
    container, code_sender, image_client, source_image
) -> None:
    client = _signed_in_client(container, code_sender)
    account_id = client.get("/account").json()["id"]
    container.credit_ledger.set_balance(account_id, container.session_manager.current.plan, 0)
    client.post("/studio/source", json={"image": source_image})

    response = client.post("/studio/generate", json={})

    assert response.status_code == 402
    assert response.json() == {"error": CreditExhausted.message, "code": "CreditExhausted"}
    assert image_client.requests == []


def test_upstream_failure_is_sanitized_for_users(
    container, code_sender, image_client, source_image
) -> None:
    client = _signed_in_client(container, code_sender)
    client.post("/studio/source", json={"image": source_image})
    image_client.error = RuntimeError("503 UNAVAILABLE: backend overloaded")

    response = client.post("/studio/generate", json={})

    assert response.status_code == 502
    assert response.json() == {"error": GENERIC_RETRY_MESSAGE, "code": "TransientFailure"}


def test_upstream_failure_shows_detail_to_admin(
    container, code_sender, image_client, source_image
) -> None:
    client = TestClient(create_app(container))
    client.post("/auth/login", json={"email": "admin@propertystage.hk", "password": "admin"})
    client.post("/auth/verify", json={"code": code_sender.last_code})
    client.post("/studio/source", json={"image": source_image})
    image_client.response = TransformResponse(text="Here is a description instead.")

    response = client.post("/studio/generate", json={})

    assert response.status_code == 502
    body = response.json()
    assert body["code"] == "NoImageReturned"
    assert "Here is a description instead." in body["error"]


def test_generate_while_busy_conflicts(container, code_sender, source_image) -> None:
    client = _signed_in_client(container, code_sender)
    client.post("/studio/source", json={"image": source_image})
    container.orchestrator._in_flight = True

    response = client.post("/studio/generate", json={})

    assert response.status_code == 409
    assert response.json()["code"] == GenerationInProgress.__name__


def test_invalid_options_are_unprocessable(container, code_sender, source_image) -> None:
    client = _signed_in_client(container, code_sender)
    client.post("/studio/source", json={"image": source_image})

    response = client.post("/studio/generate", json={"style_id": "baroque"})

    assert response.status_code == 422
    assert response.json() == {"error": "Unknown style: baroque", "code": "InvalidInput"}


def test_plan_change_uses_plan_grant(container, code_sender) -> None:
    client = _signed_in_client(container, code_sender)

    pro = client.post("/account/plan", json={"plan": "PRO"}).json()
    managed = client.post("/account/plan", json={"plan": "MANAGED"}).json()
    explicit = client.post("/account/plan", json={"plan": "POWER", "credits": 7}).json()

    assert (pro["plan"], pro["credits"]) == ("PRO", 50)
    assert managed["credits"] == -1
    assert (explicit["plan"], explicit["credits"]) == ("POWER", 7)


def test_profile_image_update(container, code_sender) -> None:
    client = _signed_in_client(container, code_sender)

    response = client.post("/account/profile-image", json={"image": "data:image/png;base64,cA=="})

    assert response.json()["profile_image"] == "data:image/png;base64,cA=="


def test_logout_clears_session_and_workspace(container, code_sender, source_image) -> None:
    client = _signed_in_client(container, code_sender)
    client.post("/studio/source", json={"image": source_image})

    state = client.post("/auth/logout").json()

    assert state["step"] == "FORM"
    assert state["account"] is None
    assert client.get("/studio").json()["source_image"] is None
    assert container.account_service.get_by_email("agent@example.com") is not None


def test_studio_options(container) -> None:
    client = TestClient(create_app(container))

    options = client.get("/studio/options").json()

    assert [style["id"] for style in options["styles"]] == [
        "modern",
        "scandi",
        "industrial",
        "luxury",
        "declutter",
    ]
    assert options["aspect_ratios"][0] == "Auto"
    assert options["resolutions"] == ["1K", "2K", "4K"]
    assert "Exterior" in options["room_types"]


def test_unexpected_value_error_is_sanitized_for_users(
    container, code_sender, monkeypatch
) -> None:
    _signed_in_client(container, code_sender)
    client = TestClient(create_app(container), raise_server_exceptions=False)

    def corrupted(account_id: str) -> list[object]:
        raise ValueError("stored row has credits=-5")

    monkeypatch.setattr(container.history_service, "list_entries", corrupted)

    response = client.get("/studio/history")

    assert response.status_code == 500
    assert response.json() == {"error": GENERIC_RETRY_MESSAGE, "code": "UnexpectedError"}

"""
API tests for the onboarding, events and users routes.
"""
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select

from app.core.config import settings
from app.models.onboarding_answer import OnboardingAnswer

API = settings.API_V1_STR


def pending_body(email="anna@example.com", address_preference="du"):
    return {
        "registration": {
            "firstNameOrNickname": "Anna",
            "lastName": "Berg",
            "email": email,
            "method": "google",
        },
        "entry": {"answerId": "entry_5", "path": "C"},
        "path": "C",
        "responses": {"C2": {"relationshipToPerson": "family"}},
        "neutralBlockVisited": False,
        "addressPreference": address_preference,
    }


class TestUsers:

    @pytest.mark.asyncio
    async def test_me_requires_token(self, client):
        response = await client.get(f"{API}/users/me")
        assert response.status_code == 401
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_non_bearer_authorization_is_rejected(self, client):
        response = await client.get(f"{API}/users/me", headers={"Authorization": "Basic YW5uYTpw"})
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_auth_scheme_has_no_login_flow(self, client):
        response = await client.get(f"{API}/openapi.json")
        schemes = response.json()["components"]["securitySchemes"]

        assert list(schemes.values()) == [{"type": "http", "scheme": "bearer"}]
        paths = response.json()["paths"]
        assert not any(path.endswith("/auth/login") for path in paths)

    @pytest.mark.asyncio
    async def test_me_never_exposes_private_payload(self, client, test_user, auth_headers):
        response = await client.post(
            f"{API}/onboarding/alt/complete",
            json={**pending_body(), "addressPreference": "sie"},
            headers=auth_headers,
        )
        assert response.status_code == 200

        response = await client.get(f"{API}/users/me", headers=auth_headers)
        body = response.json()
        assert response.status_code == 200
        assert body["data"]["onboarding_complete"] is True
        assert body["data"]["form_of_address"] == "sie"
        assert "alt_onboarding_private" not in response.text
        assert "relationshipToPerson" not in response.text


class TestDraftRoutes:

    @pytest.mark.asyncio
    async def test_read_path(self, client):
        response = await client.get(f"{API}/onboarding/alt/paths/B")
        data = response.json()["data"]
        assert [s["id"] for s in data["steps"]] == ["B1", "B2", "B3", "B4", "B5"]
        assert data["registrationAnchor"] == "B5"
        assert data["neutralReturn"] == "B4"
        book_call = data["steps"][0]["options"][2]
        assert book_call["ctaUrl"].startswith("https://")
        assert len(data["steps"][4]["fields"]) == 3

    @pytest.mark.asyncio
    async def test_unknown_path_is_invalid(self, client):
        response = await client.get(f"{API}/onboarding/alt/paths/D")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid payload"

    @pytest.mark.asyncio
    async def test_start_advance_back(self, client):
        response = await client.post(f"{API}/onboarding/alt/start", json={"entryAnswerId": "entry_5"})
        draft = response.json()["data"]
        assert (draft["stage"], draft["path"], draft["currentStepId"]) == ("path", "C", "C1")

        response = await client.post(f"{API}/onboarding/alt/advance", json={"draft": draft, "value": None})
        draft = response.json()["data"]
        assert draft["currentStepId"] == "C2"

        response = await client.post(f"{API}/onboarding/alt/advance", json={"draft": draft, "value": {}})
        assert response.status_code == 400
        assert response.json()["success"] is False

        response = await client.post(f"{API}/onboarding/alt/back", json={"draft": draft})
        assert response.json()["data"]["currentStepId"] == "C1"

    @pytest.mark.asyncio
    async def test_leave_neutral_requires_neutral_stage(self, client):
        draft = (await client.post(
            f"{API}/onboarding/alt/start", json={"entryAnswerId": "entry_1"})).json()["data"]
        response = await client.post(
            f"{API}/onboarding/alt/neutral", json={"draft": draft, "target": "registration"})
        assert response.status_code == 400


class TestPendingHandoff:

    @pytest.mark.asyncio
    async def test_invalid_body_is_rejected(self, client):
        body = pending_body()
        body["registration"]["email"] = "not-an-email"
        response = await client.post(f"{API}/onboarding/alt/pending", json=body)
        payload = response.json()
        assert response.status_code == 400
        assert payload["message"] == "Invalid payload"
        assert payload["error"]["issues"]

    @pytest.mark.asyncio
    async def test_pending_then_complete_once(self, client, test_user, auth_headers):
        response = await client.post(f"{API}/onboarding/alt/pending", json=pending_body())
        assert response.status_code == 201
        token = response.json()["data"]["token"]
        assert response.json()["data"]["expiresAt"]

        response = await client.post(
            f"{API}/onboarding/alt/complete", json={"pendingToken": token}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["userId"] == str(test_user.id)

        response = await client.post(
            f"{API}/onboarding/alt/complete", json={"pendingToken": token}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Onboarding link is invalid or already used"

    @pytest.mark.asyncio
    async def test_complete_with_foreign_token(self, client, test_user, auth_headers):
        response = await client.post(
            f"{API}/onboarding/alt/pending", json=pending_body(email="other@example.com"))
        token = response.json()["data"]["token"]

        response = await client.post(
            f"{API}/onboarding/alt/complete", json={"pendingToken": token}, headers=auth_headers)
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_direct_complete_needs_address_preference(self, client, test_user, auth_headers):
        body = pending_body()
        del body["addressPreference"]
        response = await client.post(f"{API}/onboarding/alt/complete", json=body, headers=auth_headers)
        assert response.status_code == 400


class TestAnswersAndExtraction:

    @pytest.mark.asyncio
    async def test_submit_answer_with_extraction(self, client, db_session, test_user, auth_headers):
        response = await client.post(
            f"{API}/onboarding/answers",
            json={"questionTopic": " Identity ", "answerText": "Gerne per du, ich heiße Max Mustermann",
                  "extract": True},
            headers=auth_headers,
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["answer"]["questionTopic"] == "identity"
        assert data["answer"]["answerJson"]["extracted"] is True
        assert data["conversion"]["usersUpdated"] is True

        me = (await client.get(f"{API}/users/me", headers=auth_headers)).json()["data"]
        assert me["full_name"] == "Max Mustermann"
        assert me["form_of_address"] == "du"

    @pytest.mark.asyncio
    async def test_submit_answer_without_extraction(self, client, test_user, auth_headers):
        response = await client.post(
            f"{API}/onboarding/answers",
            json={"questionTopic": "career", "answerText": "Lehrerin"},
            headers=auth_headers,
        )
        data = response.json()["data"]
        assert data["conversion"] is None
        assert data["answer"]["answerJson"] == {"extracted": False}

    @pytest.mark.asyncio
    async def test_extract_returns_flat_body(self, client, test_user, auth_headers):
        response = await client.post(
            f"{API}/events/extract",
            json={"content": "Sie, mein Name ist Anna Berg", "topic": "identity"},
            headers=auth_headers,
        )
        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["destination"] == "users"
        assert body["userData"]["full_name"] == "Anna Berg"
        assert body["userData"]["form_of_address"] == "sie"
        assert body["persisted"]["success"] is True

    @pytest.mark.asyncio
    async def test_extract_origins(self, client, test_user, auth_headers):
        response = await client.post(
            f"{API}/events/extract",
            json={"content": "Ich wurde am 15.03.1962 in Bogotá, Kolumbien geboren", "topic": "origins"},
            headers=auth_headers,
        )
        user_data = response.json()["userData"]
        assert user_data["birth_date"] == "1962-03-15"
        assert user_data["birth_place"] == "Bogotá, Kolumbien"

    @pytest.mark.asyncio
    async def test_extract_for_other_user_is_forbidden(self, client, test_user, auth_headers):
        response = await client.post(
            f"{API}/events/extract",
            json={"content": "Ich heiße Anna", "topic": "identity",
                  "userId": "00000000-0000-0000-0000-000000000000"},
            headers=auth_headers,
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_extract_other_source_is_skipped(self, client, test_user, auth_headers):
        response = await client.post(
            f"{API}/events/extract",
            json={"content": "Ich heiße Anna", "topic": "identity", "source": "chapter_chat"},
            headers=auth_headers,
        )
        assert response.json()["destination"] == "skip"

    @pytest.mark.asyncio
    async def test_convert_onboarding(self, client, db_session, test_user, auth_headers, add_answer):
        user_id = test_user.id
        await add_answer("identity", "Ich heiße Anna Berg, per Sie bitte")
        await add_answer("origins", "Geboren 1950 in Hamburg")
        await add_answer("hobbies", "Segeln und Lesen")

        response = await client.post(f"{API}/events/convert-onboarding", headers=auth_headers)
        data = response.json()["data"]
        assert data["usersUpdated"] is True
        assert data["skipped"] == 1
        assert data["errors"] == []

        response = await client.post(f"{API}/events/convert-onboarding", headers=auth_headers)
        assert response.json()["data"]["skipped"] == 3

        answers = (await db_session.execute(
            select(OnboardingAnswer).where(OnboardingAnswer.user_id == user_id)
        )).scalars().all()
        assert all(a.is_extracted for a in answers)

    @pytest.mark.asyncio
    async def test_deferred_conversion_is_queued(self, client, test_user, auth_headers):
        task = MagicMock()
        task.delay.return_value = MagicMock(id="task-1")
        with patch("app.api.v1.endpoints.events.convert_onboarding_answers_task", task):
            response = await client.post(
                f"{API}/events/convert-onboarding/deferred", headers=auth_headers)

        assert response.status_code == 202
        assert response.json()["data"]["taskId"] == "task-1"
        task.delay.assert_called_once()
        assert task.delay.call_args.args[0] == str(test_user.id)

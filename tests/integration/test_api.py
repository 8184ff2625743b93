"""
API endpoint tests.

Runs the FastAPI app in-process over httpx with the database and the
intervention gate's clock swapped for test doubles.
"""

from datetime import datetime
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from serenity.dependencies import get_intervention_gate, get_llm_caller, get_session_factory
from serenity.interventions.gating import InterventionGate
from serenity.server import create_app

EVENING = datetime(2026, 3, 10, 21, 0)


@pytest.fixture
def app(session_factory, fake_llm):
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_intervention_gate] = lambda: InterventionGate(clock=lambda: EVENING)
    app.dependency_overrides[get_llm_caller] = lambda: fake_llm("A quiet week.")
    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


# ============================================================================
# Personalization
# ============================================================================

async def test_profile_is_created_on_first_read(client, user):
    response = await client.get(f"/api/users/{user.id}/personalization")

    assert response.status_code == 200
    data = response.json()
    assert data["version"] == 1
    assert data["communication"]["style"] == "gentle"
    assert data["personalization_enabled"] is True


async def test_update_preferences(client, user):
    response = await client.patch(
        f"/api/users/{user.id}/personalization",
        json={"communication": {"style": "direct"}, "intent": {"primary_goals": ["sleep better"]}},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["communication"]["style"] == "direct"
    assert data["user_overrides"]["communication_style"] == "direct"
    assert data["intent"]["primary_goals"] == ["sleep better"]
    assert data["version"] == 2


async def test_reset(client, user):
    url = f"/api/users/{user.id}/personalization"

    response = await client.post(f"{url}/reset", json={"reset_type": "all"})
    assert response.status_code == 404

    await client.get(url)
    response = await client.post(f"{url}/reset", json={"reset_type": "everything"})
    assert response.status_code == 400

    response = await client.post(f"{url}/reset", json={"reset_type": "all"})
    assert response.status_code == 200
    assert response.json()["version"] == 2


async def test_explainability(client, user):
    url = f"/api/users/{user.id}/personalization"
    assert (await client.get(f"{url}/explainability")).status_code == 404

    await client.patch(url, json={"communication": {"verbosity": "concise"}})
    response = await client.get(f"{url}/explainability")

    assert response.status_code == 200
    assert response.json()["communication"]["verbosity"] == {"value": "concise", "source": "user_explicit"}


async def test_analysis_and_summaries(client, user):
    url = f"/api/users/{user.id}/personalization"

    response = await client.post(f"{url}/analyze")
    assert response.json() == {"success": True, "message": "Personalization analysis completed"}

    response = await client.get(f"{url}/summaries", params={"limit": 2})
    assert response.json() == {"summaries": [], "total": 0}


async def test_summaries_limit_is_validated(client, user):
    response = await client.get(f"/api/users/{user.id}/personalization/summaries", params={"limit": 0})
    assert response.status_code == 422


# ============================================================================
# Interventions
# ============================================================================

async def test_suggest_for_explicit_sleep_problem(client, user):
    response = await client.post(
        f"/api/users/{user.id}/interventions/suggest",
        json={"message": "I'm so tired and can't fall asleep at night"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["need"]["type"] == "sleep"
    assert data["gating"]["should_suggest"] is True
    assert data["gating"]["passed_criteria"] == 3
    assert [s["intervention_id"] for s in data["suggestions"]] == ["sleep-hygiene-basics", "progressive-relaxation"]
    assert all(len(s["next_steps"]) <= 3 for s in data["suggestions"])


async def test_suggest_without_need(client, user):
    response = await client.post(
        f"/api/users/{user.id}/interventions/suggest",
        json={"message": "What a lovely afternoon"},
    )

    data = response.json()
    assert data["need"]["type"] is None
    assert data["gating"] is None
    assert data["suggestions"] == []


async def test_intervention_lifecycle(client, user):
    base = f"/api/users/{user.id}/interventions"

    response = await client.post(base, json={"intervention_id": "box-breathing"})
    assert response.status_code == 201
    started = response.json()
    assert started["status"] == "active"
    assert started["attempts"] == 1

    response = await client.get(f"{base}/active")
    assert response.json()["total"] == 1

    response = await client.post(f"{base}/box-breathing/progress", json={"step_number": 1})
    assert response.json()["current_step"] == 2

    response = await client.post(f"{base}/box-breathing/complete", json={"effectiveness_rating": 11})
    assert response.status_code == 400

    response = await client.post(f"{base}/box-breathing/complete", json={"effectiveness_rating": 8})
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["average_effectiveness"] == 8.0

    response = await client.get(f"{base}/box-breathing/outcome")
    assert response.status_code == 200
    assert response.json()["mood_before"] is None

    assert (await client.get(f"{base}/active")).json()["total"] == 0


async def test_unknown_intervention(client, user):
    base = f"/api/users/{user.id}/interventions"

    assert (await client.post(base, json={"intervention_id": "not-a-thing"})).status_code == 404
    assert (await client.post(f"{base}/box-breathing/progress", json={"step_number": 1})).status_code == 404
    assert (await client.get(f"{base}/box-breathing/outcome")).status_code == 404


@pytest.mark.parametrize("rating", [0, 11])
async def test_out_of_range_rating_is_rejected(client, user, rating):
    response = await client.post(
        f"/api/users/{user.id}/interventions/box-breathing/rating", json={"rating": rating}
    )

    assert response.status_code == 422


async def test_rating_without_completed_run_is_reported_not_raised(client, user):
    response = await client.post(
        f"/api/users/{uuid4()}/interventions/box-breathing/rating", json={"rating": 7}
    )

    assert response.status_code == 200
    assert response.json() == {"success": False, "message": "Intervention not found or not completed"}

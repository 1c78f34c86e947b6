"""
Integration tests for the API endpoints.
"""

import io
import json

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from waitroom.admission import AdmissionEngine, get_admission_engine
from waitroom.errors import StoreUnavailableError
from waitroom.store import InMemoryQueueStore

QUEUE_URL = "/api/v1/queue"


class TestQueueAPI:
    """Integration tests for queue API endpoints."""

    async def test_register_user(self, client: AsyncClient):
        """Test registration returns the 1-based rank."""
        response = await client.post(QUEUE_URL, params={"user_id": 100})

        assert response.status_code == 200
        assert response.json() == {"rank": 1}

        response = await client.post(QUEUE_URL, params={"user_id": 101})
        assert response.json() == {"rank": 2}

    async def test_register_user_twice(self, client: AsyncClient):
        """Test a duplicate registration is rejected with 409."""
        await client.post(QUEUE_URL, params={"user_id": 100})

        response = await client.post(QUEUE_URL, params={"user_id": 100})

        assert response.status_code == 409
        data = response.json()
        assert data["error"] == "QUEUE_ALREADY_REGISTERED_USER"
        assert "100" in data["detail"]

    async def test_register_missing_user_id(self, client: AsyncClient):
        response = await client.post(QUEUE_URL)

        assert response.status_code == 422

    async def test_register_named_queue(self, client: AsyncClient, engine: AdmissionEngine):
        response = await client.post(QUEUE_URL, params={"queue": "concert", "user_id": 1})

        assert response.json() == {"rank": 1}
        assert await engine.wait_rank("concert", 1) == 1
        assert await engine.wait_rank("default", 1) == -1

    async def test_allow_user(self, client: AsyncClient):
        for user_id in range(5):
            await client.post(QUEUE_URL, params={"user_id": user_id})

        response = await client.post(f"{QUEUE_URL}/allow", params={"count": 3})

        assert response.status_code == 200
        assert response.json() == {"requested_count": 3, "allowed_count": 3}

        response = await client.post(f"{QUEUE_URL}/allow", params={"count": 3})
        assert response.json() == {"requested_count": 3, "allowed_count": 2}

    async def test_allow_negative_count(self, client: AsyncClient):
        response = await client.post(f"{QUEUE_URL}/allow", params={"count": -1})

        assert response.status_code == 422

    async def test_rank(self, client: AsyncClient):
        """Test rank while waiting and -1 once admitted."""
        await client.post(QUEUE_URL, params={"user_id": 1})
        await client.post(QUEUE_URL, params={"user_id": 2})

        response = await client.get(f"{QUEUE_URL}/rank", params={"user_id": 2})
        assert response.json() == {"rank": 2}

        await client.post(f"{QUEUE_URL}/allow", params={"count": 1})

        response = await client.get(f"{QUEUE_URL}/rank", params={"user_id": 2})
        assert response.json() == {"rank": 1}
        response = await client.get(f"{QUEUE_URL}/rank", params={"user_id": 1})
        assert response.json() == {"rank": -1}

    async def test_rank_unregistered(self, client: AsyncClient):
        response = await client.get(f"{QUEUE_URL}/rank", params={"user_id": 404})

        assert response.json() == {"rank": -1}

    async def test_touch_sets_token_cookie(self, client: AsyncClient, engine: AdmissionEngine):
        """Test the token is returned and delivered as a short-lived cookie."""
        response = await client.get(f"{QUEUE_URL}/touch", params={"user_id": 42})

        assert response.status_code == 200
        token = engine.issue_token("default", 42)
        assert response.text == token
        cookie = response.headers["set-cookie"]
        assert cookie.startswith(f"user-queue-default-token={token}")
        assert "Max-Age=300" in cookie
        assert "Path=/" in cookie

    async def test_allowed_flow(self, client: AsyncClient):
        """Test register, touch, allow, then check admission with the token."""
        await client.post(QUEUE_URL, params={"user_id": 42})
        token = (await client.get(f"{QUEUE_URL}/touch", params={"user_id": 42})).text

        response = await client.get(
            f"{QUEUE_URL}/allowed", params={"user_id": 42, "token": token}
        )
        assert response.json() == {"allowed": False}

        await client.post(f"{QUEUE_URL}/allow", params={"count": 1})

        response = await client.get(
            f"{QUEUE_URL}/allowed", params={"user_id": 42, "token": token}
        )
        assert response.status_code == 200
        assert response.json() == {"allowed": True}

    async def test_allowed_token_mismatch(self, client: AsyncClient):
        """Test a wrong token is a 403, not a plain 'not allowed'."""
        await client.post(QUEUE_URL, params={"user_id": 42})
        await client.post(f"{QUEUE_URL}/allow", params={"count": 1})

        response = await client.get(
            f"{QUEUE_URL}/allowed", params={"user_id": 42, "token": "not-a-token"}
        )

        assert response.status_code == 403
        assert response.json()["error"] == "QUEUE_TOKEN_MISMATCH"

    async def test_allowed_requires_token(self, client: AsyncClient):
        response = await client.get(f"{QUEUE_URL}/allowed", params={"user_id": 42})

        assert response.status_code == 422

    async def test_store_unavailable(self, app: FastAPI, client: AsyncClient, token_issuer, clock, metrics):
        """Test store failures surface as 503."""

        class DownStore(InMemoryQueueStore):
            async def rank(self, key, member):
                raise StoreUnavailableError("Redis zrank timed out after 2.0s")

        down_engine = AdmissionEngine(DownStore(), token_issuer, clock=clock, metrics=metrics)
        app.dependency_overrides[get_admission_engine] = lambda: down_engine

        response = await client.get(f"{QUEUE_URL}/rank", params={"user_id": 1})

        assert response.status_code == 503
        assert response.json()["error"] == "STORE_UNAVAILABLE"

    async def test_logs_carry_request_queue_and_user(
        self, app: FastAPI, client: AsyncClient, token_issuer, clock, metrics, json_log: io.StringIO
    ):
        """Test records logged while serving a request are tagged with its queue and user."""

        class DownStore(InMemoryQueueStore):
            async def rank(self, key, member):
                raise StoreUnavailableError("Redis zrank timed out after 2.0s")

        down_engine = AdmissionEngine(DownStore(), token_issuer, clock=clock, metrics=metrics)
        app.dependency_overrides[get_admission_engine] = lambda: down_engine

        await client.get(f"{QUEUE_URL}/rank", params={"queue": "concert", "user_id": 7})

        records = [json.loads(line) for line in json_log.getvalue().splitlines()]
        failure = next(r for r in records if r["event"].startswith("Request failed"))
        assert failure["queue"] == "concert"
        assert failure["user_id"] == "7"
        assert failure["error"] == "STORE_UNAVAILABLE"


class TestHealthAPI:
    """Integration tests for operational endpoints."""

    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["store"] == "healthy"

    @pytest.mark.parametrize("path,body", [("/ready", {"ready": True}), ("/live", {"alive": True})])
    async def test_probes(self, client: AsyncClient, path: str, body: dict):
        response = await client.get(path)

        assert response.json() == body

    async def test_metrics(self, client: AsyncClient):
        await client.get("/live")

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "api_requests_total" in response.text

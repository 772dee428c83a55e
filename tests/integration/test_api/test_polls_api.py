"""Integration tests for poll, vote, results, and hasvoted endpoints."""

import asyncio
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import text

from poll_api.core.database import Database


class TestListPolls:
    @pytest.mark.asyncio
    async def test_empty(self, client: AsyncClient) -> None:
        response = await client.get("/api/polls")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_includes_closed_polls(self, client: AsyncClient, make_poll) -> None:
        await make_poll("Open one")
        await make_poll("Closed one", active=False)
        response = await client.get("/api/polls")
        assert {p["title"]: p["active"] for p in response.json()} == {"Open one": True, "Closed one": False}

    @pytest.mark.asyncio
    async def test_get_single(self, client: AsyncClient, make_poll) -> None:
        poll_id = await make_poll()
        response = await client.get(f"/api/polls/{poll_id}")
        assert response.status_code == 200
        assert response.json()["id"] == poll_id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("poll_id", ["not-a-uuid", str(uuid.uuid4())])
    async def test_get_single_not_found(self, client: AsyncClient, poll_id: str) -> None:
        response = await client.get(f"/api/polls/{poll_id}")
        assert response.status_code == 404
        assert response.json()["code"] == "poll_not_found"


class TestVote:
    @pytest.mark.asyncio
    async def test_vote_accepted(self, client: AsyncClient, make_poll, make_voter) -> None:
        poll_id = await make_poll()
        headers = await make_voter("anna.schmidt@school.test")

        response = await client.post("/api/vote", json={"poll_id": poll_id, "choice": "yes"}, headers=headers)

        assert response.status_code == 201
        body = response.json()
        assert body["poll_id"] == poll_id
        assert body["choice"] == "yes"

    @pytest.mark.asyncio
    async def test_second_vote_conflicts(self, client: AsyncClient, make_poll, make_voter) -> None:
        poll_id = await make_poll()
        headers = await make_voter("anna.schmidt@school.test")
        await client.post("/api/vote", json={"poll_id": poll_id, "choice": "yes"}, headers=headers)

        response = await client.post("/api/vote", json={"poll_id": poll_id, "choice": "no"}, headers=headers)

        assert response.status_code == 409
        assert response.json()["code"] == "already_voted"
        results = (await client.get("/api/results", params={"poll_id": poll_id})).json()
        assert (results["yes"], results["no"]) == (1, 0)

    @pytest.mark.asyncio
    async def test_concurrent_votes_record_one_ballot(self, client: AsyncClient, make_poll, make_voter) -> None:
        poll_id = await make_poll()
        headers = await make_voter("anna.schmidt@school.test")

        responses = await asyncio.gather(
            *(
                client.post("/api/vote", json={"poll_id": poll_id, "choice": "yes"}, headers=headers)
                for _ in range(6)
            )
        )

        codes = sorted(r.status_code for r in responses)
        assert codes == [201, 409, 409, 409, 409, 409]
        results = (await client.get("/api/results", params={"poll_id": poll_id})).json()
        assert results["total"] == 1

    @pytest.mark.asyncio
    async def test_requires_token(self, client: AsyncClient, make_poll) -> None:
        poll_id = await make_poll()
        response = await client.post("/api/vote", json={"poll_id": poll_id, "choice": "yes"})
        assert response.status_code == 401
        assert response.json()["code"] == "unauthenticated"

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: AsyncClient, make_poll) -> None:
        poll_id = await make_poll()
        response = await client.post(
            "/api/vote",
            json={"poll_id": poll_id, "choice": "yes"},
            headers={"Authorization": "Bearer garbage"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_closed_poll(self, client: AsyncClient, make_poll, make_voter) -> None:
        poll_id = await make_poll(active=False)
        headers = await make_voter("anna.schmidt@school.test")
        response = await client.post("/api/vote", json={"poll_id": poll_id, "choice": "yes"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["code"] == "poll_closed"

    @pytest.mark.asyncio
    async def test_invalid_choice(self, client: AsyncClient, make_poll, make_voter) -> None:
        poll_id = await make_poll()
        headers = await make_voter("anna.schmidt@school.test")
        response = await client.post("/api/vote", json={"poll_id": poll_id, "choice": "maybe"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_choice"

    @pytest.mark.asyncio
    async def test_unknown_poll(self, client: AsyncClient, make_voter) -> None:
        headers = await make_voter("anna.schmidt@school.test")
        response = await client.post(
            "/api/vote", json={"poll_id": str(uuid.uuid4()), "choice": "yes"}, headers=headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"choice": "yes"}, {"poll_id": "x"}])
    async def test_missing_fields(self, client: AsyncClient, make_voter, body: dict) -> None:
        headers = await make_voter("anna.schmidt@school.test")
        response = await client.post("/api/vote", json=body, headers=headers)
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_input"


class TestResults:
    @pytest.mark.asyncio
    async def test_no_auth_needed(self, client: AsyncClient, make_poll) -> None:
        poll_id = await make_poll()
        response = await client.get("/api/results", params={"poll_id": poll_id})
        assert response.status_code == 200
        assert response.json() == {
            "poll_id": poll_id,
            "yes": 0,
            "no": 0,
            "total": 0,
            "yes_percent": 0,
            "no_percent": 0,
        }

    @pytest.mark.asyncio
    async def test_missing_poll_id(self, client: AsyncClient) -> None:
        response = await client.get("/api/results")
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_input"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("poll_id", ["garbage", str(uuid.uuid4())])
    async def test_unknown_poll(self, client: AsyncClient, poll_id: str) -> None:
        response = await client.get("/api/results", params={"poll_id": poll_id})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_storage_failure_returns_error_body(
        self, client: AsyncClient, database: Database, make_poll
    ) -> None:
        poll_id = await make_poll()
        async with database.engine.begin() as conn:
            await conn.execute(text("DROP TABLE ballots"))

        response = await client.get("/api/results", params={"poll_id": poll_id})

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "store_error"
        assert "ballots" not in body["detail"]


class TestHasVoted:
    @pytest.mark.asyncio
    async def test_before_and_after_voting(self, client: AsyncClient, make_poll, make_voter) -> None:
        poll_id = await make_poll()
        headers = await make_voter("anna.schmidt@school.test")

        before = await client.get("/api/hasvoted", params={"poll_id": poll_id}, headers=headers)
        assert before.json() == {"hasVoted": False}

        await client.post("/api/vote", json={"poll_id": poll_id, "choice": "no"}, headers=headers)
        after = await client.get("/api/hasvoted", params={"poll_id": poll_id}, headers=headers)
        assert after.json() == {"hasVoted": True}

    @pytest.mark.asyncio
    async def test_requires_token(self, client: AsyncClient, make_poll) -> None:
        poll_id = await make_poll()
        response = await client.get("/api/hasvoted", params={"poll_id": poll_id})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_malformed_poll_id_is_false(self, client: AsyncClient, make_voter) -> None:
        headers = await make_voter("anna.schmidt@school.test")
        response = await client.get("/api/hasvoted", params={"poll_id": "garbage"}, headers=headers)
        assert response.status_code == 200
        assert response.json() == {"hasVoted": False}

"""End-to-end voting flow through the HTTP surface."""

import pytest
from httpx import AsyncClient


async def _results(client: AsyncClient, poll_id: str) -> tuple[int, int, int, int, int]:
    body = (await client.get("/api/results", params={"poll_id": poll_id})).json()
    return body["yes"], body["no"], body["total"], body["yes_percent"], body["no_percent"]


@pytest.mark.asyncio
async def test_vote_reset_revote(client: AsyncClient, admin_headers: dict, make_voter) -> None:
    created = await client.post("/api/admin/polls", json={"title": "Four-day week?"}, headers=admin_headers)
    poll_id = created.json()["poll"]["id"]
    voter = await make_voter("anna.schmidt@school.test")

    first = await client.post("/api/vote", json={"poll_id": poll_id, "choice": "yes"}, headers=voter)
    assert first.status_code == 201
    assert await _results(client, poll_id) == (1, 0, 1, 100, 0)

    again = await client.post("/api/vote", json={"poll_id": poll_id, "choice": "yes"}, headers=voter)
    assert again.status_code == 409
    assert await _results(client, poll_id) == (1, 0, 1, 100, 0)

    await client.post(f"/api/admin/polls/{poll_id}/reset", headers=admin_headers)
    assert await _results(client, poll_id) == (0, 0, 0, 0, 0)

    revote = await client.post("/api/vote", json={"poll_id": poll_id, "choice": "no"}, headers=voter)
    assert revote.status_code == 201
    assert await _results(client, poll_id) == (0, 1, 1, 0, 100)


@pytest.mark.asyncio
async def test_closing_keeps_results(client: AsyncClient, admin_headers: dict, make_poll, make_voter) -> None:
    poll_id = await make_poll()
    for name, choice in [("ada.berg", "yes"), ("bea.berg", "yes"), ("cem.berg", "no")]:
        headers = await make_voter(f"{name}@school.test")
        await client.post("/api/vote", json={"poll_id": poll_id, "choice": choice}, headers=headers)

    await client.patch(f"/api/admin/polls/{poll_id}", json={"active": False}, headers=admin_headers)
    late = await make_voter("dan.berg@school.test")
    rejected = await client.post("/api/vote", json={"poll_id": poll_id, "choice": "no"}, headers=late)

    assert rejected.status_code == 400
    assert await _results(client, poll_id) == (2, 1, 3, 67, 33)

"""Membership API tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_add_and_list_members(client: AsyncClient, owner, headers_for, create_app, add_member):
    app = await create_app()
    await add_member(app["id"], "ed", "EDITOR")

    resp = await client.get(f"/api/applications/{app['id']}/members", headers=headers_for("ed"))
    assert resp.status_code == 200
    assert {(m["principal_id"], m["role"]) for m in resp.json()} == {("alice", "OWNER"), ("ed", "EDITOR")}

    resp = await client.get("/api/applications/", headers=headers_for("ed"))
    assert resp.json()["items"][0]["role"] == "EDITOR"


@pytest.mark.asyncio
async def test_duplicate_member_conflicts(client: AsyncClient, owner, create_app, add_member):
    app = await create_app()
    await add_member(app["id"], "ed", "EDITOR")
    resp = await client.post(
        f"/api/applications/{app['id']}/members",
        json={"principal_id": "ed", "role": "VIEWER"},
        headers=owner,
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_invalid_role_rejected(client: AsyncClient, owner, create_app):
    app = await create_app()
    resp = await client.post(
        f"/api/applications/{app['id']}/members",
        json={"principal_id": "ed", "role": "ADMIN"},
        headers=owner,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_only_owner_manages_members(client: AsyncClient, headers_for, create_app, add_member):
    app = await create_app()
    await add_member(app["id"], "ed", "EDITOR")

    resp = await client.post(
        f"/api/applications/{app['id']}/members",
        json={"principal_id": "eve", "role": "OWNER"},
        headers=headers_for("ed"),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_role_change_takes_effect(client: AsyncClient, owner, headers_for, create_app, add_member):
    app = await create_app()
    await add_member(app["id"], "ed", "EDITOR")

    resp = await client.patch(
        f"/api/applications/{app['id']}/members/ed", json={"role": "VIEWER"}, headers=owner
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "VIEWER"

    resp = await client.post(
        f"/api/applications/{app['id']}/environments", json={"name": "dev"}, headers=headers_for("ed")
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_last_owner_is_protected(client: AsyncClient, owner, create_app, add_member):
    app = await create_app()

    resp = await client.patch(
        f"/api/applications/{app['id']}/members/alice", json={"role": "EDITOR"}, headers=owner
    )
    assert resp.status_code == 409
    resp = await client.delete(f"/api/applications/{app['id']}/members/alice", headers=owner)
    assert resp.status_code == 409

    await add_member(app["id"], "bob", "OWNER")
    resp = await client.delete(f"/api/applications/{app['id']}/members/alice", headers=owner)
    assert resp.status_code == 200

    resp = await client.get(f"/api/applications/{app['id']}", headers=owner)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_remove_unknown_member(client: AsyncClient, owner, create_app):
    app = await create_app()
    resp = await client.delete(f"/api/applications/{app['id']}/members/nobody", headers=owner)
    assert resp.status_code == 404

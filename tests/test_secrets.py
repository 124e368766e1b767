"""Secret API + service tests."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from confvault.models import Secret
from confvault.services import links, secret_service


async def _create_secret(client, app_id, headers, **body):
    return await client.post(f"/api/applications/{app_id}/secrets", json=body, headers=headers)


@pytest.mark.asyncio
async def test_create_secret_returns_metadata_only(client: AsyncClient, owner, create_app, create_env):
    app = await create_app()
    env = await create_env(app["id"], "prod")

    resp = await _create_secret(
        client, app["id"], owner, key="DB_PASSWORD", value="hunter2", environment_ids=[env["id"]]
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["key"] == "DB_PASSWORD"
    assert data["environments"] == [{"id": env["id"], "name": "prod"}]
    assert "value" not in data
    assert "encrypted_value" not in data
    assert "hunter2" not in resp.text


@pytest.mark.asyncio
async def test_value_is_encrypted_at_rest(client: AsyncClient, db, owner, create_app):
    app = await create_app()
    created = (await _create_secret(client, app["id"], owner, key="TOKEN", value="plain")).json()

    stored = await db.scalar(select(Secret).where(Secret.id == created["id"]))
    assert stored.encrypted_value != "plain"
    assert ":" in stored.encrypted_value
    assert await secret_service.get_decrypted_value(db, created["id"]) == "plain"
    assert await secret_service.get_decrypted_value(db, "missing") is None


@pytest.mark.asyncio
async def test_no_read_path_returns_value(client: AsyncClient, owner, headers_for, create_app, add_member):
    app = await create_app()
    await add_member(app["id"], "ed", "EDITOR")
    await add_member(app["id"], "vic", "VIEWER")
    secret = (await _create_secret(client, app["id"], owner, key="K", value="shh")).json()

    for headers in (owner, headers_for("ed"), headers_for("vic")):
        listed = await client.get(f"/api/applications/{app['id']}/secrets", headers=headers)
        single = await client.get(f"/api/secrets/{secret['id']}", headers=headers)
        assert listed.status_code == single.status_code == 200
        assert all("value" not in s for s in listed.json())
        assert "value" not in single.json()
        assert "shh" not in listed.text + single.text


@pytest.mark.asyncio
async def test_missing_key_or_value_rejected(client: AsyncClient, owner, create_app):
    app = await create_app()
    for body in ({"value": "v"}, {"key": "K"}, {"key": "", "value": "v"}, {"key": "K", "value": ""}):
        resp = await _create_secret(client, app["id"], owner, **body)
        assert resp.status_code == 400, body
        assert resp.json()["kind"] == "validation_failed"


@pytest.mark.asyncio
async def test_validation_errors_do_not_echo_values(client: AsyncClient, owner, create_app):
    app = await create_app()
    resp = await _create_secret(client, app["id"], owner, key="K", value="top-secret", extra="x")
    assert resp.status_code == 400
    assert "top-secret" not in resp.text


@pytest.mark.asyncio
async def test_duplicate_key_conflicts_per_application(client: AsyncClient, owner, create_app):
    app = await create_app()
    other = await create_app("other")

    assert (await _create_secret(client, app["id"], owner, key="K", value="1")).status_code == 201
    resp = await _create_secret(client, app["id"], owner, key="K", value="2")
    assert resp.status_code == 409
    assert resp.json()["kind"] == "duplicate_key"
    assert (await _create_secret(client, other["id"], owner, key="K", value="3")).status_code == 201


@pytest.mark.asyncio
async def test_rename_to_existing_key_conflicts(client: AsyncClient, owner, create_app):
    app = await create_app()
    await _create_secret(client, app["id"], owner, key="A", value="1")
    b = (await _create_secret(client, app["id"], owner, key="B", value="2")).json()

    resp = await client.patch(f"/api/secrets/{b['id']}", json={"key": "A"}, headers=owner)
    assert resp.status_code == 409

    resp = await client.get(f"/api/secrets/{b['id']}", headers=owner)
    assert resp.json()["key"] == "B"


@pytest.mark.asyncio
async def test_update_replaces_environment_links(client: AsyncClient, owner, create_app, create_env):
    app = await create_app()
    e1, e2, e3 = [await create_env(app["id"], name) for name in ("dev", "staging", "prod")]
    secret = (
        await _create_secret(
            client, app["id"], owner, key="K", value="v", environment_ids=[e2["id"], e3["id"]]
        )
    ).json()

    resp = await client.put(
        f"/api/secrets/{secret['id']}", json={"environment_ids": [e1["id"], e2["id"]]}, headers=owner
    )
    assert resp.status_code == 200

    resp = await client.get(f"/api/secrets/{secret['id']}", headers=owner)
    assert {e["id"] for e in resp.json()["environments"]} == {e1["id"], e2["id"]}

    # Omitting environment_ids leaves links untouched
    await client.patch(f"/api/secrets/{secret['id']}", json={"value": "rotated"}, headers=owner)
    resp = await client.get(f"/api/secrets/{secret['id']}", headers=owner)
    assert {e["id"] for e in resp.json()["environments"]} == {e1["id"], e2["id"]}

    await client.patch(f"/api/secrets/{secret['id']}", json={"environment_ids": []}, headers=owner)
    resp = await client.get(f"/api/secrets/{secret['id']}", headers=owner)
    assert resp.json()["environments"] == []


@pytest.mark.asyncio
async def test_update_value_reencrypts(client: AsyncClient, db, owner, create_app):
    app = await create_app()
    secret = (await _create_secret(client, app["id"], owner, key="K", value="old")).json()
    before = await db.scalar(select(Secret.encrypted_value).where(Secret.id == secret["id"]))

    resp = await client.patch(f"/api/secrets/{secret['id']}", json={"value": "new"}, headers=owner)
    assert resp.status_code == 200
    assert "value" not in resp.json()

    db.expire_all()
    after = await db.scalar(select(Secret.encrypted_value).where(Secret.id == secret["id"]))
    assert after != before
    assert await secret_service.get_decrypted_value(db, secret["id"]) == "new"


@pytest.mark.asyncio
async def test_foreign_environment_ids_rejected(client: AsyncClient, owner, create_app, create_env):
    app = await create_app()
    other = await create_app("other")
    foreign = await create_env(other["id"], "prod")

    resp = await _create_secret(
        client, app["id"], owner, key="K", value="v", environment_ids=[foreign["id"]]
    )
    assert resp.status_code == 400
    assert (await client.get(f"/api/applications/{app['id']}/secrets", headers=owner)).json() == []


@pytest.mark.asyncio
async def test_delete_secret(client: AsyncClient, owner, create_app, create_env):
    app = await create_app()
    env = await create_env(app["id"], "prod")
    secret = (
        await _create_secret(client, app["id"], owner, key="K", value="v", environment_ids=[env["id"]])
    ).json()

    resp = await client.delete(f"/api/secrets/{secret['id']}", headers=owner)
    assert resp.status_code == 200
    resp = await client.get(f"/api/secrets/{secret['id']}", headers=owner)
    assert resp.status_code == 404

    env_detail = (await client.get(f"/api/environments/{env['id']}", headers=owner)).json()
    assert env_detail["counts"]["secrets"] == 0


@pytest.mark.asyncio
async def test_viewer_and_outsider_cannot_write(
    client: AsyncClient, owner, outsider, headers_for, create_app, add_member
):
    app = await create_app()
    await add_member(app["id"], "vic", "VIEWER")
    secret = (await _create_secret(client, app["id"], owner, key="K", value="v")).json()
    viewer = headers_for("vic")

    assert (await _create_secret(client, app["id"], viewer, key="X", value="v")).status_code == 403
    resp = await client.patch(f"/api/secrets/{secret['id']}", json={"value": "x"}, headers=viewer)
    assert resp.status_code == 403
    assert (await client.delete(f"/api/secrets/{secret['id']}", headers=viewer)).status_code == 403

    assert (await _create_secret(client, app["id"], outsider, key="X", value="v")).status_code == 404
    assert (await client.get(f"/api/secrets/{secret['id']}", headers=outsider)).status_code == 404
    resp = await client.patch(f"/api/secrets/{secret['id']}", json={"value": "x"}, headers=outsider)
    assert resp.status_code == 404
    assert (await client.delete(f"/api/secrets/{secret['id']}", headers=outsider)).status_code == 404


@pytest.mark.asyncio
async def test_storage_failure_rolls_back_secret_create(
    client: AsyncClient, db, owner, create_app, create_env, monkeypatch
):
    app = await create_app()
    env = await create_env(app["id"], "prod")

    async def _fail(*args, **kwargs):
        raise OperationalError("INSERT INTO secret_environments", {}, Exception("disk I/O error"))

    monkeypatch.setattr(links, "add_links", _fail)
    resp = await _create_secret(
        client, app["id"], owner, key="DB_PASSWORD", value="never-leak-me", environment_ids=[env["id"]]
    )
    assert resp.status_code == 500
    assert resp.json() == {"kind": "storage_failure", "detail": "Internal server error"}
    assert "never-leak-me" not in resp.text
    monkeypatch.undo()

    listed = await client.get(f"/api/applications/{app['id']}/secrets", headers=owner)
    assert listed.json() == []
    assert await db.scalar(select(Secret.id).where(Secret.key == "DB_PASSWORD")) is None

    env_detail = (await client.get(f"/api/environments/{env['id']}", headers=owner)).json()
    assert env_detail["counts"] == {"secrets": 0, "variables": 0}

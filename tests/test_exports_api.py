"""Export API tests — render to PNG, reuse, download."""

import pytest

from snapcode.services.renderer import PNG_SIGNATURE


async def _snippet(client, headers, snippet_payload) -> str:
    project = (await client.post("/api/v1/projects", json={"name": "P"}, headers=headers)).json()
    r = await client.post("/api/v1/snippets", json=snippet_payload(project["id"]), headers=headers)
    return r.json()["id"]


@pytest.mark.asyncio
async def test_export_html(client, make_user, fake_renderer):
    _, headers = await make_user()
    r = await client.post("/api/v1/exports/png", json={"html": "<pre>hi</pre>"}, headers=headers)
    assert r.status_code == 201
    body = r.json()
    assert body["url"] == f"/api/v1/exports/png/{body['id']}"
    assert fake_renderer.calls == 1

    png = await client.get(body["url"], headers=headers)
    assert png.status_code == 200
    assert png.headers["content-type"] == "image/png"
    assert png.content.startswith(PNG_SIGNATURE)


@pytest.mark.asyncio
async def test_export_requires_html(client, make_user):
    _, headers = await make_user()
    r = await client.post("/api/v1/exports/png", json={}, headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "HTML content is required"


@pytest.mark.asyncio
async def test_reexport_snippet_reuses_latest(client, make_user, fake_renderer, snippet_payload):
    _, headers = await make_user()
    snippet_id = await _snippet(client, headers, snippet_payload)
    body = {"html": "<pre>x</pre>", "snippetId": snippet_id}

    first = await client.post("/api/v1/exports/png", json=body, headers=headers)
    second = await client.post("/api/v1/exports/png", json=body, headers=headers)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert fake_renderer.calls == 1


@pytest.mark.asyncio
async def test_export_missing_snippet(client, make_user):
    _, headers = await make_user()
    r = await client.post(
        "/api/v1/exports/png",
        json={"html": "<pre>x</pre>", "snippetId": "00000000-0000-0000-0000-000000000000"},
        headers=headers,
    )
    assert r.status_code == 404
    assert r.json()["detail"] == "Snippet not found"


@pytest.mark.asyncio
async def test_render_failure_is_503(client, make_user, fake_renderer):
    _, headers = await make_user()
    fake_renderer.fail = True
    r = await client.post("/api/v1/exports/png", json={"html": "<pre>x</pre>"}, headers=headers)
    assert r.status_code == 503
    assert (await client.get("/api/v1/exports", headers=headers)).json() == []


@pytest.mark.asyncio
async def test_list_exports(client, make_user, snippet_payload):
    _, headers = await make_user()
    snippet_id = await _snippet(client, headers, snippet_payload)
    await client.post(
        "/api/v1/exports/png",
        json={"html": "<pre>x</pre>", "snippetId": snippet_id},
        headers=headers,
    )
    await client.post("/api/v1/exports/png", json={"html": "<p>loose</p>"}, headers=headers)

    r = await client.get("/api/v1/exports", headers=headers)
    assert r.status_code == 200
    exports = r.json()
    assert len(exports) == 2
    assert {e["snippetId"] for e in exports} == {snippet_id, None}
    assert all(e["format"] == "png" for e in exports)


@pytest.mark.asyncio
async def test_unknown_export(client, make_user):
    _, headers = await make_user()
    r = await client.get("/api/v1/exports/png/not-a-uuid", headers=headers)
    assert r.status_code == 404
    assert r.json()["detail"] == "Export not found"

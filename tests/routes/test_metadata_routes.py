import json

import pytest
from aiohttp import FormData, web
from aiohttp.test_utils import TestClient, TestServer, make_mocked_request

from naigal_backend.routes import create_app
from naigal_backend.routes.core import uploads as uploads_mod
from naigal_backend.routes.handlers import metadata as metadata_mod

from tests.builders import png_with_comment, stealth_png


def _form(*files: tuple) -> FormData:
    data = FormData()
    for name, payload in files:
        data.add_field("image", payload, filename=name, content_type="application/octet-stream")
    return data


@pytest.mark.asyncio
async def test_metadata_route_returns_record_envelope() -> None:
    client = TestClient(TestServer(create_app()))
    await client.start_server()
    try:
        resp = await client.post(
            "/naigal/metadata",
            data=_form(("cat.png", png_with_comment({"prompt": "cat, hat", "seed": 5}))),
        )
        assert resp.status == 200
        payload = await resp.json()
        assert payload["ok"] is True, payload
        assert payload["code"] == "OK"
        assert payload["data"]["fileName"] == "cat.png"
        assert payload["data"]["tags"] == ["cat", "hat"]
        assert payload["meta"]["source"] == "text_chunk"
        assert resp.headers.get("X-Request-ID")
        assert resp.headers.get("X-Content-Type-Options") == "nosniff"
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_metadata_route_accepts_raw_body_with_name() -> None:
    client = TestClient(TestServer(create_app()))
    await client.start_server()
    try:
        resp = await client.post(
            "/naigal/metadata?name=hidden.png",
            data=stealth_png("stealth_pnginfo", {"prompt": "sky"}),
            headers={"Content-Type": "application/octet-stream", "X-Request-ID": "req-1"},
        )
        payload = await resp.json()
        assert payload["ok"] is True, payload
        assert payload["data"]["prompt"] == "sky"
        assert payload["data"]["fileName"] == "hidden.png"
        assert payload["data"]["metadataSource"] == "stealth"
        assert resp.headers.get("X-Request-ID") == "req-1"
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_unsupported_format_is_business_error() -> None:
    client = TestClient(TestServer(create_app()))
    await client.start_server()
    try:
        resp = await client.post("/naigal/metadata", data=_form(("photo.jpg", b"\xff\xd8\xff\xe0")))
        assert resp.status == 200
        payload = await resp.json()
        assert payload["ok"] is False
        assert payload["code"] == "UNSUPPORTED_FORMAT"
        assert payload["data"] is None
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_missing_image_field_is_invalid_input() -> None:
    client = TestClient(TestServer(create_app()))
    await client.start_server()
    try:
        data = FormData()
        data.add_field("other", b"abc", filename="a.bin")
        resp = await client.post("/naigal/metadata", data=data)
        payload = await resp.json()
        assert payload["code"] == "INVALID_INPUT"
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_upload_size_cap(monkeypatch) -> None:
    monkeypatch.setattr(uploads_mod, "MAX_UPLOAD_BYTES", 1024)
    client = TestClient(TestServer(create_app()))
    await client.start_server()
    try:
        resp = await client.post("/naigal/metadata", data=_form(("big.png", b"\x89PNG\r\n\x1a\n" + b"\x00" * 4096)))
        payload = await resp.json()
        assert payload["ok"] is False
        assert payload["code"] == "INVALID_INPUT"
        assert "exceeds" in payload["error"]
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_raw_route_returns_unnormalized_metadata() -> None:
    client = TestClient(TestServer(create_app()))
    await client.start_server()
    try:
        resp = await client.post(
            "/naigal/metadata/raw",
            data=_form(("a.png", png_with_comment({"prompt": "p", "steps": "12"}, Title="t"))),
        )
        payload = await resp.json()
        assert payload["ok"] is True, payload
        assert payload["data"]["Comment"] == {"prompt": "p", "steps": "12"}
        assert payload["data"]["Title"] == "t"
        assert payload["meta"]["file_name"] == "a.png"
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_batch_route_reports_records_and_failures() -> None:
    client = TestClient(TestServer(create_app()))
    await client.start_server()
    try:
        resp = await client.post(
            "/naigal/metadata/batch",
            data=_form(
                ("one.png", png_with_comment({"prompt": "one"})),
                ("bad.gif", b"GIF89a"),
                ("two.png", png_with_comment({"prompt": "two"})),
            ),
        )
        payload = await resp.json()
        assert payload["ok"] is True, payload
        assert [r["prompt"] for r in payload["data"]["records"]] == ["one", "two"]
        assert payload["data"]["failures"] == [
            {"fileName": "bad.gif", "code": "UNSUPPORTED_FORMAT", "error": payload["data"]["failures"][0]["error"]}
        ]
        assert payload["meta"] == {"records": 2, "failures": 1}
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_handler_crash_is_reported_without_leaking_details(monkeypatch) -> None:
    class _BrokenService:
        async def extract(self, data, file_name=""):
            raise RuntimeError("/secret/path exploded")

    app = web.Application()
    app[metadata_mod.METADATA_SERVICE_KEY] = _BrokenService()
    routes = web.RouteTableDef()
    metadata_mod.register_metadata_routes(routes)
    app.add_routes(routes)

    client = TestClient(TestServer(app))
    await client.start_server()
    try:
        resp = await client.post("/naigal/metadata", data=_form(("x.png", b"\x89PNG\r\n\x1a\n")))
        payload = await resp.json()
        assert payload["code"] == "METADATA_FAILED"
        assert "/secret/path" not in json.dumps(payload)
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_routes_resolve_on_registered_app() -> None:
    app = create_app()
    for path in ("/naigal/metadata", "/naigal/metadata/raw", "/naigal/metadata/batch"):
        req = make_mocked_request("POST", path, app=app)
        match = await app.router.resolve(req)
        assert match.http_exception is None, path

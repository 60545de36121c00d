"""
Tests for the Flask HTTP surface.
"""

import io
from unittest.mock import MagicMock

import pytest

from gasmeter.main import create_app
from gasmeter.media.pipeline import GasMeterReader

from conftest import FakeGateway, FakeStager


def _client(gateway=None, stager=None):
    reader = GasMeterReader(gateway=gateway or FakeGateway(), stager=stager or FakeStager())
    app = create_app(reader=reader)
    app.config["TESTING"] = True
    return app.test_client(), reader


class TestReadingsEndpoint:
    def test_healthcheck(self):
        client, _ = _client()

        resp = client.get("/")

        assert resp.status_code == 200

    def test_raw_body(self, jpeg_bytes):
        client, reader = _client()

        resp = client.post("/readings", data=jpeg_bytes, content_type="image/jpeg")

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["read"] == "100.2"
        assert body["date"] == "2024-01-01"
        assert "read_at" in body
        assert "it_takes" in body
        assert reader.last_reading == "100.2"

    def test_multipart_upload(self, jpeg_bytes):
        stager = FakeStager()
        client, _ = _client(stager=stager)

        resp = client.post(
            "/readings",
            data={"image": (io.BytesIO(jpeg_bytes), "meter.jpg")},
            content_type="multipart/form-data",
        )

        assert resp.status_code == 200
        assert stager.uploads[0]["data"] == jpeg_bytes

    def test_empty_body(self):
        client, _ = _client()

        resp = client.post("/readings", data=b"", content_type="image/jpeg")

        assert resp.status_code == 400

    def test_last_reading(self, jpeg_bytes):
        gateway = FakeGateway(structured={"read": "12?.5", "date": ""}, texts=["128.5"])
        client, _ = _client(gateway=gateway)

        client.post("/readings", data=jpeg_bytes, content_type="image/jpeg")
        resp = client.get("/readings/last")

        assert resp.get_json() == {"read": "128.5"}

    @pytest.mark.parametrize(
        "gateway, stager, status, stage",
        [
            (FakeGateway(fail_structured=True), FakeStager(), 502, "extracting"),
            (FakeGateway(), FakeStager(fail_upload=True), 502, "staging"),
            (FakeGateway(structured={"read": "1?a", "date": ""}), FakeStager(), 422, "resolving"),
        ],
    )
    def test_errors_name_the_stage(self, jpeg_bytes, gateway, stager, status, stage):
        client, _ = _client(gateway=gateway, stager=stager)

        resp = client.post("/readings", data=jpeg_bytes, content_type="image/jpeg")

        assert resp.status_code == status
        body = resp.get_json()
        assert body["ok"] is False
        assert body["stage"] == stage

    def test_unexpected_gateway_error_is_bad_gateway(self, jpeg_bytes):
        gateway = MagicMock()
        gateway.generate_structured.side_effect = ConnectionError("socket closed")
        client, _ = _client(gateway=gateway)

        resp = client.post("/readings", data=jpeg_bytes, content_type="image/jpeg")

        assert resp.status_code == 502
        assert resp.get_json()["stage"] == "extracting"

import base64

from fastapi import BackgroundTasks
from fastapi.testclient import TestClient

from conftest import CountingExtractor, png_b64, png_bytes
from main import create_app
from prominent_colors.api.v1.endpoints.prominent_colors import render_response
from prominent_colors.utils.color_extraction import PyletteColorExtractor


def post(client, payload):
    return client.post("/", json=payload)


def test_base64_image_returns_colors(client, extractor):
    response = post(client, {"type": "base64", "value": png_b64(), "num_prominent_colors": 3})
    assert response.status_code == 200
    assert response.json() == {"prominent_colors": ["#ff0000", "#00ff00", "#0000ff"], "error": None}
    assert response.headers["access-control-allow-origin"] == "*"
    assert extractor.requested == [3]


def test_url_image_returns_colors(client, fetcher):
    fetcher.add("http://example/red.png", png_bytes())
    response = post(client, {"type": "url", "value": "http://example/red.png", "num_prominent_colors": 2})
    assert response.status_code == 200
    assert response.json()["prominent_colors"] == ["#ff0000", "#00ff00"]
    assert fetcher.calls == ["http://example/red.png"]


def test_count_within_range_is_respected(client, extractor):
    for count in range(1, 6):
        response = post(client, {"type": "base64", "value": png_b64((count, 0, 0)), "num_prominent_colors": count})
        assert response.status_code == 200
        assert len(response.json()["prominent_colors"]) <= count
    assert extractor.requested == [1, 2, 3, 4, 5]


def test_out_of_range_count_uses_maximum(client, extractor):
    for count, color in [(0, (1, 1, 1)), (6, (2, 2, 2)), (100, (3, 3, 3)), (-2, (4, 4, 4))]:
        response = post(client, {"type": "base64", "value": png_b64(color), "num_prominent_colors": count})
        assert response.status_code == 200
        assert len(response.json()["prominent_colors"]) == 5
    assert extractor.requested == [5, 5, 5, 5]


def test_missing_count_uses_maximum(client, extractor):
    response = post(client, {"type": "base64", "value": png_b64()})
    assert response.status_code == 200
    assert extractor.requested == [5]


def test_repeated_request_is_served_from_cache(client, extractor):
    payload = {"type": "base64", "value": png_b64(), "num_prominent_colors": 4}
    first = post(client, payload)
    second = post(client, payload)
    assert first.status_code == second.status_code == 200
    assert first.json()["prominent_colors"] == second.json()["prominent_colors"]
    assert extractor.calls == 1


def test_normalized_counts_share_cache_entry(client, extractor):
    value = png_b64()
    post(client, {"type": "base64", "value": value, "num_prominent_colors": 0})
    post(client, {"type": "base64", "value": value, "num_prominent_colors": 50})
    post(client, {"type": "base64", "value": value, "num_prominent_colors": 5})
    assert extractor.calls == 1


def test_different_counts_are_cached_separately(client, extractor):
    value = png_b64()
    post(client, {"type": "base64", "value": value, "num_prominent_colors": 2})
    post(client, {"type": "base64", "value": value, "num_prominent_colors": 3})
    assert extractor.calls == 2


def test_failures_are_not_cached(client, fetcher):
    payload = {"type": "url", "value": "http://example/missing.png"}
    first = post(client, payload)
    second = post(client, payload)
    assert first.status_code == second.status_code == 500
    assert first.json()["error"]["type"] == "other_error"
    assert fetcher.calls == ["http://example/missing.png", "http://example/missing.png"]


def test_empty_result_is_not_cached(test_settings, fetcher, result_cache):
    extractor = CountingExtractor(colors=[])
    client = TestClient(create_app(test_settings, extractor=extractor, fetcher=fetcher, cache=result_cache))
    payload = {"type": "base64", "value": png_b64()}
    response = post(client, payload)
    assert response.status_code == 200
    assert response.json() == {"prominent_colors": [], "error": None}
    post(client, payload)
    assert extractor.calls == 2
    assert len(result_cache) == 0


def test_oversized_url_image_is_rejected(client, fetcher, extractor):
    fetcher.add("http://example/huge.png", png_bytes() + b"\x00" * (1 << 20))
    response = post(client, {"type": "url", "value": "http://example/huge.png"})
    assert response.status_code == 500
    body = response.json()
    assert body["prominent_colors"] is None
    assert body["error"]["type"] == "size_too_large_error"
    assert "1mb" in body["error"]["msg"]
    assert extractor.calls == 0


def test_oversized_request_body_is_rejected(client, extractor):
    oversized = base64.b64encode(png_bytes() + b"\x00" * (1 << 20)).decode("ascii")
    response = post(client, {"type": "base64", "value": oversized})
    assert response.status_code == 500
    assert response.json()["error"]["type"] == "size_too_large_error"
    assert extractor.calls == 0


def test_text_payload_is_unknown_data_format(client):
    value = base64.b64encode(b"just some notes, definitely not pixels\n").decode("ascii")
    response = post(client, {"type": "base64", "value": value})
    assert response.status_code == 500
    error = response.json()["error"]
    assert error["type"] == "unknown_data_format_error"
    assert error["msg"] == "text/plain; charset=utf-8 may not be image"


def test_url_to_text_file_is_unknown_data_format(client, fetcher):
    fetcher.add("http://example/not-an-image.txt", b"hello, this is a text file\n")
    response = post(client, {"type": "url", "value": "http://example/not-an-image.txt"})
    assert response.status_code == 500
    assert response.json()["error"]["type"] == "unknown_data_format_error"


def test_truncated_json_is_serialization_error(client, extractor):
    response = client.post(
        "/",
        content=b'{"type": "base64", "value": "iVBOR',
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 500
    body = response.json()
    assert body["prominent_colors"] is None
    assert body["error"]["type"] == "serialization_error"
    assert body["error"]["msg"].startswith("could not decode request body, failed with")
    assert extractor.calls == 0


def test_type_mismatch_is_serialization_error(client):
    for payload in [
        {"type": "base64", "value": 42},
        {"type": "base64", "value": "abc", "num_prominent_colors": "3"},
        {"type": "base64", "value": "abc", "num_prominent_colors": True},
        ["base64", "abc"],
    ]:
        response = post(client, payload)
        assert response.status_code == 500
        assert response.json()["error"]["type"] == "serialization_error"


def test_decode_failure_logs_raw_body(client, caplog):
    raw = b'{"type": "url", "value": '
    client.post("/", content=raw, headers={"Content-Type": "application/json"})
    assert "could not decode request body" in caplog.text
    assert '{"type": "url", "value": ' in caplog.text


def test_unknown_type_is_other_error(client, fetcher):
    response = post(client, {"type": "ftp", "value": "ftp://example/x.png"})
    assert response.status_code == 500
    error = response.json()["error"]
    assert error["type"] == "other_error"
    assert "ftp" in error["msg"]
    assert fetcher.calls == []


def test_file_upload_is_not_served_over_http(client, tmp_path):
    path = tmp_path / "red.png"
    path.write_bytes(png_bytes())
    response = post(client, {"type": "file-upload", "value": str(path)})
    assert response.status_code == 500
    assert response.json()["error"] == {
        "msg": "requested type file-upload is not implemented for http requests",
        "type": "other_error",
    }


def test_malformed_base64_is_other_error(client):
    response = post(client, {"type": "base64", "value": "not*base64!"})
    assert response.status_code == 500
    assert response.json()["error"]["type"] == "other_error"


def test_non_json_content_type_is_rejected(client, extractor):
    response = client.post("/", content=b"type=base64", headers={"Content-Type": "text/plain"})
    assert response.status_code == 415
    assert extractor.calls == 0


def test_json_content_type_with_charset_is_accepted(client):
    response = client.post(
        "/",
        content=b'{"type": "base64", "value": "%s"}' % png_b64().encode("ascii"),
        headers={"Content-Type": "application/json; charset=utf-8"},
    )
    assert response.status_code == 200


def test_unserializable_response_falls_back_to_plaintext():
    class Broken:
        error = None

        def model_dump_json(self):
            raise ValueError("cannot encode")

    response = render_response(Broken(), BackgroundTasks())
    assert response.status_code == 500
    assert response.body == b"error: cannot encode"


def test_red_png_with_real_extractor(test_settings, fetcher, result_cache):
    app = create_app(test_settings, extractor=PyletteColorExtractor(), fetcher=fetcher, cache=result_cache)
    client = TestClient(app)
    response = post(client, {"type": "base64", "value": png_b64(), "num_prominent_colors": 3})
    assert response.status_code == 200
    assert response.json() == {"prominent_colors": ["#ff0000"], "error": None}

import pytest

from relay.config import CorsPolicy
from relay.cors import apply_cors_headers, cors_precheck, is_preflight
from relay.headers import HeaderMultiMap

PREFLIGHT_HEADERS = [
    ("Origin", "https://app.example"),
    ("Access-Control-Request-Method", "PUT"),
]


class TestCorsPrecheck:
    def test_no_origin_passes_through(self, make_request):
        request = make_request("/https://example.com/", method="OPTIONS")

        assert cors_precheck(request, CorsPolicy()) is None

    def test_simple_request_passes_through(self, make_request):
        request = make_request(
            "/https://example.com/", headers=[("Origin", "https://app.example")]
        )

        assert cors_precheck(request, CorsPolicy()) is None

    def test_preflight_with_credentials_echoes_origin(self, make_request):
        request = make_request(
            "/https://example.com/",
            method="OPTIONS",
            headers=PREFLIGHT_HEADERS + [("Access-Control-Request-Headers", "x-a, x-b")],
        )

        response = cors_precheck(request, CorsPolicy(max_age=600))
        headers = HeaderMultiMap.from_raw(response.raw_headers)

        assert response.status_code == 204
        assert headers.get("access-control-allow-origin") == "https://app.example"
        assert headers.get("access-control-allow-credentials") == "true"
        assert headers.get("access-control-allow-headers") == "x-a, x-b"
        assert headers.get("access-control-max-age") == "600"
        assert headers.get("vary") == "Origin, Access-Control-Request-Headers"
        assert "PUT" in headers.get("access-control-allow-methods")

    def test_preflight_without_credentials_uses_wildcard(self, make_request):
        request = make_request("/x", method="OPTIONS", headers=PREFLIGHT_HEADERS)

        response = cors_precheck(request, CorsPolicy(allow_credentials=False))
        headers = HeaderMultiMap.from_raw(response.raw_headers)

        assert headers.get("access-control-allow-origin") == "*"
        assert "access-control-allow-credentials" not in headers

    def test_disallowed_origin_is_rejected(self, make_request):
        request = make_request(
            "/https://example.com/", headers=[("Origin", "https://evil.example")]
        )

        response = cors_precheck(
            request, CorsPolicy(allow_origins=("https://app.example",))
        )

        assert response.status_code == 403

    def test_is_preflight_requires_request_method(self, make_request):
        request = make_request(
            "/x", method="OPTIONS", headers=[("Origin", "https://app.example")]
        )

        assert not is_preflight(request)


class TestApplyCorsHeaders:
    def test_adds_missing_headers(self, make_request):
        request = make_request("/x", headers=[("Origin", "https://app.example")])

        headers = apply_cors_headers(HeaderMultiMap(), request, CorsPolicy())

        assert headers.get("access-control-allow-origin") == "https://app.example"
        assert headers.get("vary") == "Origin"

    def test_keeps_upstream_values(self, make_request):
        request = make_request("/x", headers=[("Origin", "https://app.example")])
        upstream = HeaderMultiMap([("Access-Control-Allow-Origin", "https://only.example")])

        headers = apply_cors_headers(upstream, request, CorsPolicy())

        assert headers.get_all("access-control-allow-origin") == ["https://only.example"]

    def test_origin_folded_into_upstream_vary(self, make_request):
        request = make_request("/x", headers=[("Origin", "https://app.example")])
        upstream = HeaderMultiMap([("Vary", "Accept-Encoding")])

        headers = apply_cors_headers(upstream, request, CorsPolicy())

        assert headers.get_all("vary") == ["Accept-Encoding, Origin"]

    @pytest.mark.parametrize("vary", ["origin", "Accept, Origin", "*"])
    def test_vary_not_duplicated(self, make_request, vary):
        request = make_request("/x", headers=[("Origin", "https://app.example")])
        upstream = HeaderMultiMap([("Vary", vary)])

        headers = apply_cors_headers(upstream, request, CorsPolicy())

        assert headers.get_all("vary") == [vary]

    def test_without_origin_nothing_changes(self, make_request):
        headers = apply_cors_headers(HeaderMultiMap(), make_request("/x"), CorsPolicy())

        assert len(headers) == 0

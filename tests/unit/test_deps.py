"""Unit tests for request dependencies."""

from starlette.requests import Request

from src.api.deps import get_client_ip, get_request_context


def make_request(headers: dict[str, str], path: str = "/api/v1/orders/cs_1") -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": "https",
        "server": ("shop.example.com", 443),
        "path": path,
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


class TestGetClientIp:
    """Tests for get_client_ip."""

    def test_first_forwarded_hop(self) -> None:
        """Test that only the first X-Forwarded-For entry is used."""
        request = make_request({"X-Forwarded-For": "203.0.113.9, 10.0.0.1", "X-Real-IP": "10.0.0.2"})
        assert get_client_ip(request) == "203.0.113.9"

    def test_falls_back_to_real_ip(self) -> None:
        """Test header precedence."""
        request = make_request({"X-Real-IP": "198.51.100.7", "CF-Connecting-IP": "192.0.2.1"})
        assert get_client_ip(request) == "198.51.100.7"

    def test_no_headers(self) -> None:
        """Test that no proxy header yields None."""
        assert get_client_ip(make_request({})) is None


class TestGetRequestContext:
    """Tests for get_request_context."""

    def test_reads_referer_user_agent_and_cookies(self) -> None:
        """Test the browser context extracted from the request."""
        request = make_request(
            {
                "Referer": "https://shop.example.com/checkout/success",
                "User-Agent": "Mozilla/5.0",
                "Cookie": "_fbc=fb.1.1.abc; _fbp=fb.1.2.def",
            }
        )

        context = get_request_context(request)

        assert context.source_url == "https://shop.example.com/checkout/success"
        assert context.user_agent == "Mozilla/5.0"
        assert context.fbc == "fb.1.1.abc"
        assert context.fbp == "fb.1.2.def"

    def test_source_url_defaults_to_request_url(self) -> None:
        """Test the fallback when there is no referer."""
        context = get_request_context(make_request({}))

        assert context.source_url == "https://shop.example.com/api/v1/orders/cs_1"
        assert context.fbc is None

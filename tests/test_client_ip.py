"""
Tests for client identity resolution.
"""

from starlette.datastructures import Headers

from upload_gateway.gates.client_ip import client_ip_for, peer_host, resolve_client_ip

from conftest import make_request


class TestResolveClientIP:
    """Header priority and peer fallback."""

    def test_cf_connecting_ip_wins_over_forwarded_for(self):
        headers = Headers({"CF-Connecting-IP": "1.1.1.1", "X-Forwarded-For": "2.2.2.2"})
        assert resolve_client_ip(headers, ("9.9.9.9", 1234)) == "1.1.1.1"

    def test_real_ip_before_forwarded_for(self):
        headers = Headers({"X-Real-IP": "3.3.3.3", "X-Forwarded-For": "2.2.2.2"})
        assert resolve_client_ip(headers) == "3.3.3.3"

    def test_forwarded_for_takes_first_entry_trimmed(self):
        headers = Headers({"X-Forwarded-For": "  4.4.4.4 , 10.0.0.1, 10.0.0.2"})
        assert resolve_client_ip(headers) == "4.4.4.4"

    def test_empty_headers_are_skipped(self):
        headers = Headers({"CF-Connecting-IP": "", "X-Real-IP": "", "X-Forwarded-For": ""})
        assert resolve_client_ip(headers, ("5.5.5.5", 80)) == "5.5.5.5"

    def test_peer_tuple(self):
        assert resolve_client_ip(Headers({}), ("203.0.113.9", 4444)) == "203.0.113.9"

    def test_no_peer(self):
        assert resolve_client_ip(Headers({})) == ""

    def test_unvalidated_header_value_is_returned(self):
        """Validation belongs to the allowlist gate, not the resolver."""
        headers = Headers({"X-Real-IP": "not-an-ip"})
        assert resolve_client_ip(headers) == "not-an-ip"


class TestPeerHost:
    """Port stripping on string peers."""

    def test_ipv4_with_port(self):
        assert peer_host("192.0.2.1:8080") == "192.0.2.1"

    def test_bracketed_ipv6_with_port(self):
        assert peer_host("[2001:db8::1]:443") == "2001:db8::1"

    def test_missing_port_returns_raw(self):
        assert peer_host("192.0.2.1") == "192.0.2.1"

    def test_bare_ipv6_returns_raw(self):
        assert peer_host("2001:db8::1") == "2001:db8::1"

    def test_none(self):
        assert peer_host(None) == ""


def test_client_ip_for_request_uses_scope_client():
    request = make_request(client=("198.51.100.7", 5555))
    assert client_ip_for(request) == "198.51.100.7"


def test_client_ip_for_request_prefers_headers():
    request = make_request(headers={"CF-Connecting-IP": "1.1.1.1"}, client=("198.51.100.7", 5555))
    assert client_ip_for(request) == "1.1.1.1"

import socket
import logging
import pytest
import responses
from responses import matchers

from ddns_cache import resolver as resolver_mod
from ddns_cache.resolver import SystemResolver, DohResolver, make_resolver


DOH_URL = "https://dns.example.test/dns-query"


# ========
# FIXTURES
# ========
@pytest.fixture
def fake_getaddrinfo(monkeypatch):
    """Replace getaddrinfo with a recorder returning a canned answer"""
    calls = []

    def install(result=None, error=None):
        def fake(host, port, family=0, type=0, proto=0, flags=0):
            calls.append({"host": host, "family": family, "type": type})
            if error is not None:
                raise error
            return result

        monkeypatch.setattr(resolver_mod.socket, "getaddrinfo", fake)
        return calls

    return install

def addrinfo(ip):
    return [(socket.AF_INET, socket.SOCK_DGRAM, 17, "", (ip, 0))]


# ==================================
# TEST GROUP: System Resolver Lookup
# ==================================
def test_system_resolve_success(fake_getaddrinfo):
    """First IPv4/datagram answer is returned in numeric form"""
    calls = fake_getaddrinfo(result=addrinfo("203.0.113.7") + addrinfo("203.0.113.8"))

    result = SystemResolver().resolve("home.example.com")

    assert result.success is True
    assert result.ip == "203.0.113.7"
    assert result.error is None
    assert calls == [{"host": "home.example.com", "family": socket.AF_INET, "type": socket.SOCK_DGRAM}]

def test_system_resolve_lookup_error(fake_getaddrinfo, caplog):
    """Resolver errors become a failed result, logged as a warning"""
    fake_getaddrinfo(error=socket.gaierror(socket.EAI_NONAME, "Name or service not known"))

    with caplog.at_level(logging.WARNING):
        result = SystemResolver().resolve("nowhere.example.com")

    assert result.success is False
    assert result.ip is None
    assert result.error == "Name or service not known"
    assert any("Failed resolving hostname nowhere.example.com" in r.getMessage() for r in caplog.records)

def test_system_resolve_no_results(fake_getaddrinfo):
    fake_getaddrinfo(result=[])

    result = SystemResolver().resolve("empty.example.com")

    assert result.success is False
    assert "no address" in result.error

def test_system_resolve_conversion_error(fake_getaddrinfo, monkeypatch):
    fake_getaddrinfo(result=addrinfo("203.0.113.7"))

    def broken_getnameinfo(sockaddr, flags):
        raise socket.gaierror(socket.EAI_FAIL, "Non-recoverable failure in name resolution")

    monkeypatch.setattr(resolver_mod.socket, "getnameinfo", broken_getnameinfo)

    result = SystemResolver().resolve("home.example.com")

    assert result.success is False
    assert "Non-recoverable" in result.error


# =================================
# TEST GROUP: Resolver Cache Reset
# =================================
@pytest.mark.parametrize(
    "res_init, expected",
    [
        # ✅ res_init() available and succeeds
        (lambda: 0, True),

        # ❌ res_init() available but fails
        (lambda: -1, False),

        # ⚠️ Platform without res_init()
        (None, False),
    ],
)
def test_system_reset_cache(monkeypatch, res_init, expected):
    monkeypatch.setattr(resolver_mod, "_load_res_init", lambda: res_init)

    assert SystemResolver().reset_cache() is expected

def test_doh_reset_cache_is_noop():
    assert DohResolver(url=DOH_URL).reset_cache() is True


# ================================
# TEST GROUP: DNS-over-HTTPS Lookup
# ================================
@responses.activate
def test_doh_resolve_success():
    responses.add(
        responses.GET,
        DOH_URL,
        json={"Status": 0, "Answer": [{"name": "home.example.com", "type": 1, "data": "203.0.113.7"}]},
        status=200,
        match=[matchers.query_param_matcher({"name": "home.example.com", "type": "A"})],
    )

    result = DohResolver(url=DOH_URL, timeout=2).resolve("home.example.com")

    assert result.success is True
    assert result.ip == "203.0.113.7"
    assert responses.calls[0].request.headers["Accept"] == "application/dns-json"

@responses.activate
def test_doh_resolve_follows_cname_answer():
    """CNAME records come first in the answer; the A record is used"""
    responses.add(
        responses.GET,
        DOH_URL,
        json={"Answer": [
            {"name": "www.example.com", "type": 5, "data": "home.example.com."},
            {"name": "home.example.com", "type": 1, "data": "203.0.113.7"},
        ]},
        status=200,
    )

    assert DohResolver(url=DOH_URL).resolve("www.example.com").ip == "203.0.113.7"

@pytest.mark.parametrize(
    "status, body",
    [
        # ❌ HTTP failure
        (503, {"Status": 2}),

        # ❌ NXDOMAIN, no answers
        (200, {"Status": 3}),

        # ❌ Garbage in the A record
        (200, {"Answer": [{"type": 1, "data": "not-an-ip"}]}),
    ],
)
@responses.activate
def test_doh_resolve_failures(status, body):
    responses.add(responses.GET, DOH_URL, json=body, status=status)

    result = DohResolver(url=DOH_URL).resolve("home.example.com")

    assert result.success is False
    assert result.ip is None
    assert result.error

@responses.activate
def test_doh_resolve_invalid_json():
    responses.add(responses.GET, DOH_URL, body="<html>", status=200)

    result = DohResolver(url=DOH_URL).resolve("home.example.com")

    assert result.success is False
    assert "JSON" in result.error


# ===========================
# TEST GROUP: Resolver Factory
# ===========================
@pytest.mark.parametrize(
    "kind, expected_cls",
    [
        ("system", SystemResolver),
        ("DoH", DohResolver),
    ],
)
def test_make_resolver(kind, expected_cls):
    assert isinstance(make_resolver(kind), expected_cls)

def test_make_resolver_unknown():
    with pytest.raises(ValueError):
        make_resolver("carrier-pigeon")

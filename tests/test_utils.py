import time
import pytest

from ddns_cache.utils import is_valid_ip, elapsed_ms


# ===================================
# TEST GROUP: IP Address Verification
# ===================================
# Function: is_valid_ip()
# -----------------------
@pytest.mark.parametrize(
    "ip, expected_result",
    [
        # ✅ Valid IPv4
        ("8.8.8.8", True),

        # ❌ Invalid: incomplete octets
        ("7.7.7", False),

        # ❌ Invalid: empty input
        ("", False),

        # ❌ Invalid: IPv6 is not an A record
        ("2001:db8::1", False),

        # ❌ Invalid: not a string
        (None, False),
    ],
)
def test_is_valid_ip(ip, expected_result):
    """Verify is_valid_ip() correctly classifies valid/invalid inputs"""
    assert is_valid_ip(ip) is expected_result


# ==========================
# TEST GROUP: Timing Helpers
# ==========================
def test_elapsed_ms_is_positive():
    start = time.monotonic() - 0.05

    assert elapsed_ms(start) >= 50

# --- Standard library imports ---
import time
import socket


def is_valid_ip(ip: str) -> bool:
    """
    Validate an IPv4 address using socket.

    Args:
        ip: IPv4 address string to validate.

    Returns:
        True if the IPv4 address is valid, False otherwise.
    """
    try:
        socket.inet_pton(socket.AF_INET, ip)
        return True
    except (OSError, TypeError):
        return False

def elapsed_ms(start: float) -> float:
    """Milliseconds since a time.monotonic() reading."""
    return (time.monotonic() - start) * 1000

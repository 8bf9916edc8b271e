"""
Connection health check.
"""

from .handle import ConnectionHandle


def health_check(handle: ConnectionHandle) -> tuple[bool, str]:
    """
    Open and close the handle's connection. Returns (ok, reason); reason is
    the failure text, empty on success.
    """
    try:
        with handle.opened():
            return True, ""
    except Exception as e:
        return False, repr(e)

"""
Dependency injection for API routes.
"""
from ..state import GuidanceSession

# Session shared by every route
_session: GuidanceSession = None


def get_session() -> GuidanceSession:
    """Get the guidance session, creating one on first use."""
    global _session
    if _session is None:
        _session = GuidanceSession()
    return _session


def set_session(session: GuidanceSession):
    """Set the guidance session (called when the app is created)."""
    global _session
    _session = session

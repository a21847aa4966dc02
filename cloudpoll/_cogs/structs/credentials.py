"""
Connection credentials of the control plane.

The credentials are given by the callers explicitly. There is no discovery
of them from the environment, and no re-authentication: the control plane
accepts a long-lived API key via the HTTP basic auth (with an empty username).
"""
import dataclasses
from typing import Optional


@dataclasses.dataclass(frozen=True)
class ConnectionInfo:
    """
    A single endpoint with specific credentials and connection flags to use.
    """
    server: str  # e.g. "https://api.example.com"
    api_key: Optional[str] = None
    user_agent: Optional[str] = None
    ca_path: Optional[str] = None
    insecure: Optional[bool] = None

    def __repr__(self) -> str:
        # Never leak the key into the logs and tracebacks.
        masked = '***' if self.api_key else None
        return (f"{self.__class__.__name__}(server={self.server!r}, api_key={masked!r}, "
                f"user_agent={self.user_agent!r}, ca_path={self.ca_path!r}, "
                f"insecure={self.insecure!r})")

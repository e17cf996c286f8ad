"""
GitBoss AI error types.

Transport failures never escape the connection manager as exceptions; the
chat-side classes are also returned from ``ChatConnection.send`` so callers
can inspect what went wrong without a try block.
"""

from typing import Any, Optional


class GitBossError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details


class AuthenticationRequired(GitBossError):
    def __init__(self, message: str = "Authentication required"):
        super().__init__("authentication_required", message)


class AuthError(GitBossError):
    def __init__(self, message: str, code: str = "auth_error"):
        super().__init__(code, message)


class NotConnected(GitBossError):
    def __init__(self, message: str = "Not connected to server"):
        super().__init__("not_connected", message)


class ConnectionLost(GitBossError):
    def __init__(self, message: str, attempt: int, delay_ms: int):
        super().__init__("connection_lost", message, {"attempt": attempt, "delay_ms": delay_ms})


class ConnectionFailed(GitBossError):
    def __init__(self, message: str):
        super().__init__("connection_failed", message)


class ServerReportedError(GitBossError):
    def __init__(self, message: str):
        super().__init__("server_error", message)


class MalformedFrame(GitBossError):
    def __init__(self, message: str, raw: Any = None):
        super().__init__("malformed_frame", message, {"raw": raw} if raw is not None else None)


class APIError(GitBossError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("http_error", message, {"status_code": status_code} if status_code else None)
        self.status_code = status_code

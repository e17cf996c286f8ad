"""
gitboss-ai: GitBoss AI client for Python.

WebSocket chat + REST analytics client for the GitBoss AI backend.
"""

from gitboss_ai.client import GitBossAI, AsyncGitBossAI
from gitboss_ai.auth import AuthAPI, TokenStore
from gitboss_ai.connection import ChatConnection, ConnectionState, ConnectionStatus
from gitboss_ai.session import ChatSession
from gitboss_ai.repositories import RepositoryAPI
from gitboss_ai.config import Settings, load_settings
from gitboss_ai.models.message import ChatMessage
from gitboss_ai.errors import (
    GitBossError,
    AuthError,
    AuthenticationRequired,
    NotConnected,
    ConnectionLost,
    ConnectionFailed,
    ServerReportedError,
    APIError,
)

__version__ = "0.1.0"
__all__ = [
    "GitBossAI",
    "AsyncGitBossAI",
    "AuthAPI",
    "TokenStore",
    "ChatConnection",
    "ConnectionState",
    "ConnectionStatus",
    "ChatSession",
    "RepositoryAPI",
    "Settings",
    "load_settings",
    "ChatMessage",
    "GitBossError",
    "AuthError",
    "AuthenticationRequired",
    "NotConnected",
    "ConnectionLost",
    "ConnectionFailed",
    "ServerReportedError",
    "APIError",
]

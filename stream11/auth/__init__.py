"""
Authentication: signed session tokens, the Twitch OAuth client and the
login flow that combines them.
"""

from stream11.auth.service import AuthService, LoginResult, RequestContext
from stream11.auth.tokens import SessionIdentity, SessionTokens
from stream11.auth.twitch import TwitchOAuthClient

__all__ = [
    "AuthService",
    "LoginResult",
    "RequestContext",
    "SessionIdentity",
    "SessionTokens",
    "TwitchOAuthClient",
]

"""Utility functions for Google Photos Albums."""

from .auth import SCOPES, OAuthClient
from .callback_server import CallbackServer
from .oauth_flow import AuthConfig, AuthStatus, OAuthFlow

__all__ = ["SCOPES", "OAuthClient", "CallbackServer", "AuthConfig", "AuthStatus", "OAuthFlow"]

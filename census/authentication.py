"""
Token authentication for the census API.

Kept apart from the auth views so that REST framework can import the
authentication class during start-up without pulling in view modules.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword in ``Authorization``."""

    keyword = 'Token'

"""FastAPI dependencies for the development time authority.

Configuration and the authority clock live on ``app.state`` so tests can
build an app with a frozen or scripted clock.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request

from time_guard.config.time_guard_config import TimeAuthorityServerConfig


def get_server_config(request: Request) -> TimeAuthorityServerConfig:
    """Get the authority configuration of the running app."""
    return request.app.state.time_authority_config


def get_now_ms(request: Request) -> Callable[[], float]:
    """Get the authority clock of the running app."""
    return request.app.state.now_ms

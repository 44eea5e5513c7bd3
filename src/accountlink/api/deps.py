# src/accountlink/api/deps.py
from __future__ import annotations

from fastapi import Request

from accountlink.services.login import LoginService


def get_login_service(request: Request) -> LoginService:
    return request.app.state.login_service

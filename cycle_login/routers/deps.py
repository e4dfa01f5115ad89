"""Shared dependencies: the app's record store, settings and the admin gate."""
from typing import Annotated

from fastapi import Depends, Header, Request

from cycle_login.core.config import Settings
from cycle_login.core.errors import AdminRequired
from cycle_login.core.security import AdminClaim, bearer_token, verify_dev_token
from cycle_login.stores.base import RecordStore


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_admin_claim(
    settings: Annotated[Settings, Depends(get_app_settings)],
    authorization: Annotated[str | None, Header()] = None,
    x_dev_token: Annotated[str | None, Header()] = None,
) -> AdminClaim:
    """Accept the dev token as 'Authorization: Bearer ...' or 'X-Dev-Token: ...'."""
    token = bearer_token(authorization or x_dev_token)
    claim = verify_dev_token(token, settings)
    if claim is None:
        raise AdminRequired("Dev auth required")
    return claim


StoreDep = Annotated[RecordStore, Depends(get_store)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
AdminDep = Annotated[AdminClaim, Depends(get_admin_claim)]

"""FastAPI dependencies for the adapter API."""

from typing import Annotated

from fastapi import Depends, Request

from crateadapter.adapter import CrateAdapter
from crateadapter.config import Settings
from crateadapter.translation.observer import TranslationObserver


def get_adapter(request: Request) -> CrateAdapter:
    """Return the adapter created during application startup."""
    return request.app.state.adapter


def get_observer(request: Request) -> TranslationObserver:
    """Return the application's observer."""
    return request.app.state.observer


def get_app_settings(request: Request) -> Settings:
    """Return the settings the application was created with."""
    return request.app.state.settings


Adapter = Annotated[CrateAdapter, Depends(get_adapter)]
Observer = Annotated[TranslationObserver, Depends(get_observer)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]

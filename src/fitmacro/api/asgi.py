"""ASGI entrypoint for the fitmacro API."""

from fitmacro.api.app import create_app
from fitmacro.containers import build_container

app = create_app(build_container())

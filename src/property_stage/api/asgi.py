"""ASGI entrypoint for the property staging API."""

from property_stage.api.app import create_app
from property_stage.containers import build_container

app = create_app(build_container())

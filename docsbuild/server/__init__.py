"""Ephemeral web server used to feed generated HTML to wkhtmltopdf."""

from docsbuild.server.controller import ServerController, ServerState, port_in_use

__all__ = [
    "ServerController",
    "ServerState",
    "port_in_use",
]

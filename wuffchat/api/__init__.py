"""FastAPI host application for the chat widget.

Serves the NiceGUI chat page and a health endpoint for container probes.
The conversational backend itself is a separate remote service.

Endpoints:
    - GET /health: Service health status
    - GET /: Chat page (NiceGUI, mounted in wuffchat.main)
"""

from wuffchat.api.app import app, create_app

__all__ = ["app", "create_app"]

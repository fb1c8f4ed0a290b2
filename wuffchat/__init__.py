"""Wuffchat - browser chat widget for a remote conversational backend.

Combines NiceGUI for the chat page, httpx for the backend API,
FastAPI/uvicorn for hosting, and Pydantic for configuration and wire models.

Components:
    - session: Tab-scoped session store with lazy expiry
    - client: Transport client for both backend protocol variants
    - chat: Conversation state machine and reply pacing
    - models: Messages, states and wire schemas
    - ui: Chat page (presentation only)
    - api: Host application
"""

__version__ = "0.1.0"

"""Unit tests for individual components in isolation.

Coverage:
    - models/: Pydantic validation and response normalisation
    - client/config: Environment-driven configuration
    - session/: Expiry, refresh and storage failures
    - chat/: Reply pacing and the conversation state machine
    - ui/: Rendering helpers

Timing runs on a fake clock and the controller talks to a scripted client,
so tests run without sleeping or network.
"""

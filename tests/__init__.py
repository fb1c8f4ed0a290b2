"""Test package for Wuffchat.

Unit tests cover isolated logic; integration tests drive the transport client
and the controller against an in-process fake backend.

Structure:
    - unit/: Individual function and class tests
    - integration/: Client and conversation workflows over HTTP
    - fake_backend.py: FastAPI stand-in for the conversation backend
    - fakes.py: Fake clock and scripted client for unit tests

No network access is needed. Leverages pytest with pytest-check for soft
assertions.
"""

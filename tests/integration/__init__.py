"""Integration tests for components working together as a system.

No mocks for request building or response handling - the real httpx client
talks to the fake backend through ASGITransport.

Coverage:
    - Transport client against both protocol variants
    - Full conversations from greeting through expiry and reset
    - Host application endpoints
"""

"""HTTP transport for the remote conversation backend.

Responsibilities:
    - Request construction for both protocol variants (v2 legacy, v3 current)
    - Response normalization into one canonical reply type
    - Single-flight protection for conversation start
    - Session store updates on start, refresh and expiry

Never raises past its public methods; every outcome is an ApiResult.
"""

from wuffchat.client.api_client import ApiClient, ApiClientError
from wuffchat.client.config import ClientConfig, get_client_config

__all__ = ["ApiClient", "ApiClientError", "ClientConfig", "get_client_config"]

"""CMS outbound webhook dispatcher.

Notifies external HTTP endpoints of content-management events with
HMAC-SHA256 signed payloads, per-webhook delivery logs and capped retries.
"""

__version__ = "0.1.0"

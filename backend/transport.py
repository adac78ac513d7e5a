# backend/transport.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import requests

from backend.errors import TransportError

logger = logging.getLogger(__name__)


def build_request(action: str, payload: Any = None) -> Dict[str, Any]:
    request = {"action": action}
    if payload is not None:
        request["payload"] = payload
    return request


# =====================================================
# In-process: the shim runs next to the app
# =====================================================
class LocalTransport:
    """
    Hands requests to a Shim in the same process.
    The request still goes through JSON so the wire contract is the same
    one the remote endpoint sees.
    """

    def __init__(self, shim):
        self.shim = shim

    def send(self, action: str, payload: Any = None) -> Dict[str, Any]:
        body = json.dumps(build_request(action, payload))
        envelope = self.shim.handle(body)
        return json.loads(json.dumps(envelope))


# =====================================================
# Remote: one endpoint, one POST body per action
# =====================================================
class HttpTransport:

    def __init__(self, url: Optional[str], timeout: float = 30.0, session=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests

    def send(self, action: str, payload: Any = None) -> Dict[str, Any]:
        if not self.url:
            raise TransportError(
                "Backend URL not configured. Set APPS_SCRIPT_URL in secrets or environment."
            )

        try:
            response = self.session.post(
                self.url,
                data=json.dumps(build_request(action, payload)),
                # Apps Script rejects a JSON content type on CORS-free posts
                headers={"Content-Type": "text/plain;charset=utf-8"},
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            logger.error("Request %s failed: %s", action, e)
            raise TransportError(f"Backend unreachable: {e}") from e

        if not response.ok:
            raise TransportError(
                f"API Error: {response.status_code} {response.reason} - {response.text[:200]}"
            )

        try:
            envelope = response.json()
        except ValueError as e:
            raise TransportError("Backend returned a non-JSON response") from e

        if not isinstance(envelope, dict) or "status" not in envelope:
            raise TransportError("Backend returned a malformed envelope")

        return envelope

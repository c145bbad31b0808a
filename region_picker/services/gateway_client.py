from __future__ import annotations
import logging
import os
from typing import Sequence

import httpx
from dotenv import load_dotenv

from ..exceptions import TransportError
from ..models.shape_row import SaveResult, ShapeRow

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_SAVE_ENDPOINT = "http://127.0.0.1:5000/api/save-shape"


class GatewayClient:
    """
    HTTP client for the save endpoint.
    No timeout: a slow save only surfaces through its own completion.
    """

    def __init__(self, endpoint_url: str | None = None, transport: httpx.BaseTransport | None = None):
        self.endpoint_url = endpoint_url or os.getenv("SAVE_ENDPOINT_URL", DEFAULT_SAVE_ENDPOINT)
        self._transport = transport

    def save_rows(self, rows: Sequence[ShapeRow]) -> SaveResult:
        """
        POST {"rows": [...]} and decode the JSON answer.

        Raises:
            TransportError: network failure or a response that is not JSON.
        """
        payload = {"rows": [row.as_record() for row in rows]}
        try:
            with httpx.Client(timeout=None, transport=self._transport) as client:
                response = client.post(self.endpoint_url, json=payload)
            body = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Save request to {self.endpoint_url} failed: {e}")
            raise TransportError(str(e) or e.__class__.__name__) from e
        except ValueError as e:
            logger.error(f"Save endpoint answered with non-JSON (HTTP {response.status_code})")
            raise TransportError(f"Invalid response (HTTP {response.status_code})") from e

        if not isinstance(body, dict):
            raise TransportError(f"Invalid response (HTTP {response.status_code})")
        return SaveResult.from_payload(body)

import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from .errors import SendError

logger = logging.getLogger(__name__)


def enabled_params(query_params: List[Dict[str, Any]]) -> List[tuple]:
    return [(p["key"], p.get("value", "")) for p in query_params or [] if p.get("enabled", True)]


class Sender:
    """Forwards a composed request and relays the raw response.

    HTTP error statuses are returned like any other response; only transport
    failures raise ``SendError``.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        max_redirects: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            max_redirects=self.max_redirects,
            transport=self.transport,
        )

    async def send(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        query_params: Optional[List[Dict[str, Any]]] = None,
        auth: Optional[Dict[str, Any]] = None,
        body: Any = None,
    ) -> Dict[str, Any]:
        method = (method or "GET").upper()
        headers = dict(headers or {})
        auth = auth or {"type": "none"}

        basic = None
        if auth["type"] == "bearer":
            if not any(k.lower() == "authorization" for k in headers):
                headers["Authorization"] = f"Bearer {auth['token']}"
        elif auth["type"] == "basic":
            basic = httpx.BasicAuth(auth["username"], auth.get("password", ""))

        kwargs: Dict[str, Any] = {}
        if isinstance(body, str):
            kwargs["content"] = body
        elif body is not None:
            kwargs["json"] = body

        logger.info(f"Sending {method} request to {url}")
        start = time.time()
        try:
            async with self._client() as client:
                r = await client.request(
                    method=method,
                    url=url,
                    headers=headers,
                    params=enabled_params(query_params),
                    auth=basic,
                    **kwargs,
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Request to {url} failed: {type(e).__name__}: {e}")
            raise SendError(f"Request failed: {type(e).__name__}: {e}") from e

        duration_ms = int((time.time() - start) * 1000)

        content_type = (r.headers.get("content-type", "") or "").lower()
        data = None
        text = None

        if "application/json" in content_type:
            try:
                data = r.json()
            except ValueError:
                text = r.text
        else:
            text = r.text

        logger.info(f"Received {r.status_code} from {url} in {duration_ms}ms")
        return {
            "status_code": r.status_code,
            "duration_ms": duration_ms,
            "headers": dict(r.headers),
            "json": data,
            "text": text,
        }

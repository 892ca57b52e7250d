import base64
import json as jsonlib
import logging
import os
from typing import Any, Iterator, Mapping, Optional
from urllib.parse import urljoin

import requests
from dotenv import load_dotenv

from ..errors import UpstreamUnavailable
from .events import BlockEvent
from .utils import open_session

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class ChainClient:
    """Thin client for the parts of the LND REST API the lottery needs."""

    def __init__(
        self,
        rest_host: Optional[str] = None,
        macaroon_path: Optional[str] = None,
        tls_cert_path: Optional[str] = None,
        timeout: int = 45,
    ):
        load_dotenv()
        host = rest_host or os.getenv("LND_REST_HOST")
        if not host:
            raise ValueError("Environment variable 'LND_REST_HOST' is not set")

        self.base_url = f"https://{host}".rstrip("/")
        self.session = open_session(macaroon_path, tls_cert_path)
        self.timeout = timeout

    # -------- headers --------
    @property
    def headers(self) -> Mapping[str, str]:
        return {"Accept": "application/json"}

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
        stream: bool = False,
        timeout: Any = _UNSET,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        try:
            r = self.session.request(
                method=method.upper(),
                url=url,
                headers=self.headers,
                params=params,
                json=json,
                timeout=self.timeout if timeout is _UNSET else timeout,
                stream=stream,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"{method.upper()} {path} failed: {e}") from e
        if stream:
            return r
        return r.json() if r.content else None

    # -------- API callers --------
    @property
    def info(self) -> dict:
        return self._request("GET", "/v1/getinfo")

    def get_current_height(self) -> int:
        """Return the height of the node's best block."""
        info = self.info or {}
        if "block_height" not in info:
            raise UpstreamUnavailable("getinfo response did not include block_height")
        return int(info["block_height"])

    def remote_balance(self) -> int:
        """Return the satoshis on the remote side of our channels."""
        data = self._request("GET", "/v1/balance/channels") or {}
        remote = data.get("remote_balance") or {}
        return int(remote.get("sat", 0))

    def subscribe_blocks(self) -> Iterator[BlockEvent]:
        """Yield every block the node connects, in order.

        Hashes are yielded as sent by LND (reversed byte order). The stream
        has no read timeout; it ends when the node closes it.
        """
        response = self._request(
            "POST",
            "/v2/chainnotifier/register/blocks",
            json={},
            stream=True,
            timeout=(self.timeout, None),
        )
        try:
            for line in response.iter_lines():
                if not line:
                    continue
                yield _parse_block_event(line)
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"block subscription interrupted: {e}") from e
        finally:
            response.close()


def _parse_block_event(line: bytes) -> BlockEvent:
    try:
        payload = jsonlib.loads(line)
    except ValueError as e:
        raise UpstreamUnavailable(f"malformed block notification: {e}") from e

    if "error" in payload:
        raise UpstreamUnavailable(f"block subscription error: {payload['error']}")
    result = payload.get("result", payload)
    try:
        return BlockEvent(
            height=int(result["height"]),
            hash=base64.b64decode(result["hash"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise UpstreamUnavailable(f"malformed block notification: {e}") from e

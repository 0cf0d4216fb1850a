"""Ergo node management API client."""

from dataclasses import dataclass
from typing import Any

import requests

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9053
DEFAULT_SCHEME = "http"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class ConnectionTarget:
    """Host/port pair of the node's management API."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    scheme: str = DEFAULT_SCHEME

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"


class NodeClient:
    """Client for the Ergo node REST API.

    Usage::

        client = NodeClient(ConnectionTarget(), api_key="...")
        print(client.shutdown())
    """

    def __init__(
        self,
        target: ConnectionTarget,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
    ) -> None:
        self.base_url = target.base_url
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({
            "accept": "application/json",
            "api_key": api_key,
        })
        self._session.verify = verify_ssl

    def shutdown(self) -> Any:
        """Ask the node to shut down.

        Sends ``POST /node/shutdown`` with an empty body.

        Returns:
            The decoded JSON response, or the raw response text when the
            node does not answer with JSON.

        Raises:
            requests.HTTPError: On a non-2xx status (403 for a bad key).
            requests.ConnectionError: When the node cannot be reached.
        """
        r = self._session.post(
            f"{self.base_url}/node/shutdown",
            data="",
            timeout=self.timeout,
        )
        r.raise_for_status()
        try:
            return r.json()
        except ValueError:
            return r.text

    def __repr__(self) -> str:
        return f"NodeClient(base_url={self.base_url!r})"

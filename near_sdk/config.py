"""Connection configuration.

A :class:`NearConfig` is built once at startup and passed to
:class:`~near_sdk.near.Near`; it is frozen, so nothing can change it while
the connection is in use.
"""

from __future__ import annotations

import os
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_NODE_URL = "http://localhost:3030"
DEFAULT_NETWORK_ID = "default"
DEFAULT_WAIT_TIMEOUT = 20.0


class NearConfig(BaseModel):
    """Settings shared by every component of a connection.

    Attributes:
        node_url: Base URL of the node's JSON-RPC endpoint.
        network_id: Network name; namespaces file-system key stores.
        request_timeout: Per-request HTTP timeout in seconds.
        wait_timeout: Default time to poll for a transaction result.
        poll_interval: First delay between two status queries.
        max_poll_interval: Upper bound for the backoff delay.
        poll_backoff: Factor applied to the delay after each pending poll.
        key_store_path: Root directory of the file-system key store, if any.
    """

    model_config = ConfigDict(frozen=True)

    node_url: str = DEFAULT_NODE_URL
    network_id: str = DEFAULT_NETWORK_ID
    request_timeout: Annotated[float, Field(gt=0)] = 15.0
    wait_timeout: Annotated[float, Field(ge=0)] = DEFAULT_WAIT_TIMEOUT
    poll_interval: Annotated[float, Field(gt=0)] = 0.5
    max_poll_interval: Annotated[float, Field(gt=0)] = 2.0
    poll_backoff: Annotated[float, Field(ge=1.0)] = 1.5
    key_store_path: str | None = None


def create_default_config() -> NearConfig:
    """Build a config from ``NEAR_*`` environment variables and defaults.

    Recognised variables: ``NEAR_NODE_URL``, ``NEAR_NETWORK_ID``,
    ``NEAR_WAIT_TIMEOUT`` and ``NEAR_KEY_STORE_PATH``.
    """
    return NearConfig(
        node_url=os.environ.get("NEAR_NODE_URL", DEFAULT_NODE_URL),
        network_id=os.environ.get("NEAR_NETWORK_ID", DEFAULT_NETWORK_ID),
        wait_timeout=float(os.environ.get("NEAR_WAIT_TIMEOUT", DEFAULT_WAIT_TIMEOUT)),
        key_store_path=os.environ.get("NEAR_KEY_STORE_PATH"),
    )

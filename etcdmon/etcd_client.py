#!/usr/bin/env python3
# Copyright (C) 2026 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Minimal client for the etcd v3 JSON gateway

Only the maintenance status call is needed: it reports, among other things,
the size of the member's backend database. Integer fields of the gateway
responses are JSON encoded as strings ("db_size": "20480"). Fields carry their
protobuf names; the lowerCamelCase JSON names are accepted as well.
"""

import logging
import ssl
from collections.abc import Sequence
from types import TracebackType
from typing import Final, Self
from urllib.parse import urlsplit

import requests
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from requests.adapters import HTTPAdapter

from etcdmon.utils.exceptions import MKConnectError, MKStatusError
from etcdmon.utils.log import VERBOSE
from etcdmon.utils.tls import create_ssl_context, TLSConfig

__all__ = [
    "EtcdClient",
    "StatusResult",
    "normalize_endpoint",
]

STATUS_PATH: Final = "/v3/maintenance/status"

LOGGER = logging.getLogger("etcdmon.client")


class StatusResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    db_size: int = Field(validation_alias=AliasChoices("db_size", "dbSize"))
    db_size_in_use: int | None = Field(
        default=None, validation_alias=AliasChoices("db_size_in_use", "dbSizeInUse")
    )
    version: str = ""
    leader: int | None = None
    raft_index: int | None = Field(
        default=None, validation_alias=AliasChoices("raft_index", "raftIndex")
    )
    raft_term: int | None = Field(
        default=None, validation_alias=AliasChoices("raft_term", "raftTerm")
    )


class SSLContextAdapter(HTTPAdapter):
    """Use a prepared SSL context (with the client certificate loaded) for all connections"""

    def __init__(self, ssl_context: ssl.SSLContext) -> None:
        # must be set before the base class creates the pool manager
        self._ssl_context = ssl_context
        super().__init__()

    def init_poolmanager(self, *args, **kwargs):
        kwargs["ssl_context"] = self._ssl_context
        return super().init_poolmanager(*args, **kwargs)


def normalize_endpoint(endpoint: str, *, tls: bool) -> str:
    """
    >>> normalize_endpoint("127.0.0.1:2379", tls=False)
    'http://127.0.0.1:2379'
    >>> normalize_endpoint("etcd-1:2379", tls=True)
    'https://etcd-1:2379'
    >>> normalize_endpoint("https://etcd-1:2379/", tls=False)
    'https://etcd-1:2379'
    """
    if "://" not in endpoint:
        endpoint = "{}://{}".format("https" if tls else "http", endpoint)
    if (scheme := urlsplit(endpoint).scheme) not in ("http", "https"):
        raise MKConnectError(f"unsupported scheme {scheme!r} in endpoint {endpoint}")
    return endpoint.rstrip("/")


class EtcdClient:
    def __init__(
        self,
        endpoints: Sequence[str],
        *,
        timeout: float,
        tls_config: TLSConfig | None = None,
    ) -> None:
        if not endpoints:
            raise MKConnectError("no endpoints given")

        tls = tls_config is not None
        self._tls: Final = tls
        # only the first endpoint is ever queried
        self.endpoint: Final = normalize_endpoint(endpoints[0], tls=tls)
        self.timeout: Final = timeout

        # no session exists yet if loading the credentials fails
        adapter = None
        verify: bool | str = True
        if tls_config is not None:
            LOGGER.log(VERBOSE, "Using client certificate %s", tls_config.cert_file)
            adapter = SSLContextAdapter(create_ssl_context(tls_config))
            verify = str(tls_config.trusted_ca_file)

        self._session = requests.Session()
        self._session.verify = verify
        if adapter is not None:
            self._session.mount("https://", adapter)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        LOGGER.debug("Closing session")
        self._session.close()

    def status(self, endpoint: str) -> StatusResult:
        url = normalize_endpoint(endpoint, tls=self._tls) + STATUS_PATH
        LOGGER.log(VERBOSE, "Requesting status from %s", url)

        try:
            response = self._session.post(url, json={}, timeout=self.timeout)
        except requests.exceptions.ConnectionError as e:
            LOGGER.error("Connection failed: %s", e)
            raise MKConnectError(str(e)) from e
        except requests.exceptions.RequestException as e:
            LOGGER.error("Request failed: %s", e)
            raise MKStatusError(str(e)) from e

        try:
            response.raise_for_status()
            result = StatusResult.model_validate(response.json())
        except requests.exceptions.HTTPError as e:
            LOGGER.error("HTTP error: %s", e)
            raise MKStatusError(str(e)) from e
        except ValidationError as e:
            LOGGER.error("Invalid status response: %s", e)
            problems = "; ".join(
                "{}: {}".format(".".join(map(str, err["loc"])), err["msg"]) for err in e.errors()
            )
            raise MKStatusError(f"invalid response from {url}: {problems}") from e
        except ValueError as e:
            LOGGER.error("Response is not JSON: %s", e)
            raise MKStatusError("invalid response from %s: %s" % (url, e)) from e

        LOGGER.debug("Status: %r", result)
        return result

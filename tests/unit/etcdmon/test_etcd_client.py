#!/usr/bin/env python3
# Copyright (C) 2026 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import json
import socket
from collections.abc import Iterator
from pathlib import Path

import pytest
import requests

from tests.testlib.etcd_gateway import create_certificates, EtcdGateway, status_body

from etcdmon.etcd_client import EtcdClient, normalize_endpoint, StatusResult
from etcdmon.utils.exceptions import MKConnectError, MKStatusError
from etcdmon.utils.tls import TLSConfig


@pytest.fixture(name="gateway")
def fixture_gateway(tmp_path: Path) -> Iterator[EtcdGateway]:
    with EtcdGateway(tmp_path) as gateway:
        yield gateway


@pytest.fixture(name="tls_gateway")
def fixture_tls_gateway(tmp_path: Path) -> Iterator[EtcdGateway]:
    with EtcdGateway(tmp_path, https=True) as gateway:
        yield gateway


def _unused_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_status_result_from_gateway_json() -> None:
    result = StatusResult.model_validate(json.loads(status_body(20480)))
    assert result.db_size == 20480
    assert result.db_size_in_use == 10240
    assert result.version == "3.5.9"
    assert result.raft_index == 48


def test_status_result_minimal() -> None:
    assert StatusResult.model_validate({"db_size": "7"}) == StatusResult(db_size=7)


def test_status_result_camel_case() -> None:
    result = StatusResult.model_validate({"dbSize": "7", "raftIndex": "4", "dbSizeInUse": "3"})
    assert result == StatusResult(db_size=7, raft_index=4, db_size_in_use=3)


@pytest.mark.parametrize(
    "endpoint, tls, expected",
    [
        ("http://127.0.0.1:2379", False, "http://127.0.0.1:2379"),
        ("http://127.0.0.1:2379", True, "http://127.0.0.1:2379"),
        ("127.0.0.1:2379", False, "http://127.0.0.1:2379"),
        ("127.0.0.1:2379", True, "https://127.0.0.1:2379"),
        ("https://etcd.example.com:2379/", False, "https://etcd.example.com:2379"),
    ],
)
def test_normalize_endpoint(endpoint: str, tls: bool, expected: str) -> None:
    assert normalize_endpoint(endpoint, tls=tls) == expected


def test_normalize_endpoint_unsupported_scheme() -> None:
    with pytest.raises(MKConnectError, match="unsupported scheme 'unix'"):
        normalize_endpoint("unix://localhost:2379", tls=False)


def test_no_endpoints() -> None:
    with pytest.raises(MKConnectError, match="no endpoints given"):
        EtcdClient([], timeout=1)


def test_only_first_endpoint_is_validated() -> None:
    with EtcdClient(["127.0.0.1:2379", "unix:///run/etcd.sock"], timeout=1) as client:
        assert client.endpoint == "http://127.0.0.1:2379"


def test_first_endpoint_unsupported_scheme() -> None:
    with pytest.raises(MKConnectError, match="unsupported scheme 'unix'"):
        EtcdClient(["unix:///run/etcd.sock", "127.0.0.1:2379"], timeout=1)


def test_status(gateway: EtcdGateway) -> None:
    gateway.respond(200, status_body(1_234_567))

    with EtcdClient([gateway.url], timeout=5) as client:
        assert client.status(gateway.url).db_size == 1_234_567

    assert gateway.requests == [("/v3/maintenance/status", b"{}")]


def test_status_over_tls(tls_gateway: EtcdGateway) -> None:
    assert tls_gateway.certificates is not None
    tls_gateway.respond(200, status_body(4096))
    tls_config = TLSConfig(
        cert_file=tls_gateway.certificates.cert_file,
        key_file=tls_gateway.certificates.key_file,
        trusted_ca_file=tls_gateway.certificates.ca_file,
    )
    endpoint = tls_gateway.url.removeprefix("https://")

    with EtcdClient([endpoint], timeout=5, tls_config=tls_config) as client:
        assert client.endpoint == tls_gateway.url
        assert client.status(endpoint).db_size == 4096


def test_status_untrusted_server(tls_gateway: EtcdGateway, tmp_path: Path) -> None:
    foreign = create_certificates(tmp_path / "foreign")
    tls_config = TLSConfig(
        cert_file=foreign.cert_file,
        key_file=foreign.key_file,
        trusted_ca_file=foreign.ca_file,
    )

    with EtcdClient([tls_gateway.url], timeout=5, tls_config=tls_config) as client:
        with pytest.raises(MKConnectError, match="^could not connect: "):
            client.status(tls_gateway.url)


def test_status_connection_refused() -> None:
    url = f"http://127.0.0.1:{_unused_port()}"

    with EtcdClient([url], timeout=5) as client:
        with pytest.raises(MKConnectError, match="^could not connect: "):
            client.status(url)


@pytest.mark.parametrize(
    "status, body, message",
    [
        (500, b'{"error": "etcdserver: request timed out"}', "500 Server Error"),
        (200, b"this is no JSON", "invalid response from"),
        (200, b'{"version": "3.5.9"}', "db_size: Field required"),
        (200, b'{"db_size": "lots"}', "db_size: Input should be a valid integer"),
    ],
)
def test_status_bad_response(gateway: EtcdGateway, status: int, body: bytes, message: str) -> None:
    gateway.respond(status, body)

    with EtcdClient([gateway.url], timeout=5) as client:
        with pytest.raises(MKStatusError) as excinfo:
            client.status(gateway.url)

    assert str(excinfo.value).startswith("failed to get status: ")
    assert message in str(excinfo.value)


def test_status_read_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    def _post(*_args: object, **_kwargs: object) -> requests.Response:
        raise requests.exceptions.ReadTimeout("Read timed out. (read timeout=5)")

    monkeypatch.setattr(requests.Session, "post", _post)

    with EtcdClient(["http://127.0.0.1:2379"], timeout=5) as client:
        with pytest.raises(MKStatusError, match="Read timed out"):
            client.status("http://127.0.0.1:2379")


def test_status_uses_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, object] = {}

    def _post(_self: requests.Session, url: str, **kwargs: object) -> requests.Response:
        seen.update(kwargs, url=url)
        response = requests.Response()
        response.status_code = 200
        response._content = status_body(1)  # pylint: disable=protected-access
        return response

    monkeypatch.setattr(requests.Session, "post", _post)

    with EtcdClient(["127.0.0.1:2379"], timeout=3.5) as client:
        client.status("127.0.0.1:2379")

    assert seen == {
        "url": "http://127.0.0.1:2379/v3/maintenance/status",
        "json": {},
        "timeout": 3.5,
    }


def test_session_closed_on_exit(monkeypatch: pytest.MonkeyPatch) -> None:
    closed: list[bool] = []
    monkeypatch.setattr(requests.Session, "close", lambda _self: closed.append(True))

    with pytest.raises(MKConnectError):
        with EtcdClient(["http://127.0.0.1:1"], timeout=0.1):
            raise MKConnectError("boom")

    assert closed == [True]

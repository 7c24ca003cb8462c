#!/usr/bin/env python3
# Copyright (C) 2026 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Shared implementation of the etcd database size checks

The check asks the first configured etcd endpoint for its status and compares
the reported database size against a threshold. Every kind of failure is
reported as CRITICAL, there is no WARNING state.
"""

import argparse
import contextlib
import enum
import logging
import math
import socket
import sys
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field

from etcdmon.etcd_client import EtcdClient, StatusResult
from etcdmon.utils.exceptions import EtcdMonException
from etcdmon.utils.log import setup_logging
from etcdmon.utils.render import fmt_bytes, parse_bytes
from etcdmon.utils.tls import TLSConfig, tls_config_from_paths, verify_credential_files

DEFAULT_URL = "http://127.0.0.1:2379"
DEFAULT_TIMEOUT = 5
METRIC_NAME = "etcd_mvcc_db_total_size_in_bytes"

LOGGER = logging.getLogger("etcdmon.active_checks.etcd_dbsize")


class State(enum.IntEnum):
    OK = 0
    CRIT = 2


@dataclass(frozen=True, kw_only=True)
class VariantProfile:
    name: str
    default_size: int
    tls: bool = False
    metrics: bool = False


@dataclass(frozen=True)
class CheckResult:
    state: State
    summary: str
    perfdata: Sequence[tuple[str, int, int | None, int | None]] = ()


class Args(BaseModel):
    url: Sequence[str] = Field(min_length=1)
    size: int = Field(gt=0)
    cert_file: Path | None = None
    key_file: Path | None = None
    trusted_ca_file: Path | None = None
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    scheme: str | None = None
    debug: bool = False
    verbose: int = 0


class StatusClientProto(Protocol):
    def status(self, endpoint: str) -> StatusResult: ...

    def close(self) -> None: ...


ClientFactory = Callable[[Sequence[str], float, TLSConfig | None], StatusClientProto]


def _make_etcd_client(
    endpoints: Sequence[str], timeout: float, tls_config: TLSConfig | None
) -> EtcdClient:
    return EtcdClient(endpoints, timeout=timeout, tls_config=tls_config)


def _positive_size(text: str) -> int:
    try:
        size = parse_bytes(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e
    if size <= 0:
        raise argparse.ArgumentTypeError("size must be positive: %r" % text)
    return size


def _positive_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError("not a number: %r" % text) from e
    if not math.isfinite(value) or value <= 0:
        raise argparse.ArgumentTypeError("must be a positive number: %r" % text)
    return value


def parse_arguments(argv: Sequence[str], profile: VariantProfile) -> Args:
    parser = argparse.ArgumentParser(
        prog=profile.name,
        description="Check the database size of an etcd cluster member",
    )
    parser.add_argument(
        "--url",
        action="append",
        metavar="URL",
        help=f"URL of etcd instance(s), can be given multiple times (default: {DEFAULT_URL})",
    )
    parser.add_argument(
        "--size",
        type=_positive_size,
        default=profile.default_size,
        metavar="BYTES",
        help="Maximum database size in bytes, suffixes K, M, G and T are accepted "
        f"(default: {profile.default_size}, {fmt_bytes(profile.default_size)})",
    )
    if profile.tls:
        parser.add_argument("--cert-file", type=Path, help="Path to the cert")
        parser.add_argument("--key-file", type=Path, help="Path to the key")
        parser.add_argument("--trusted-ca-file", type=Path, help="Path to the CA file")
    parser.add_argument(
        "--timeout",
        type=_positive_float,
        default=DEFAULT_TIMEOUT,
        help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT})",
    )
    if profile.metrics:
        parser.add_argument(
            "-s",
            "--scheme",
            help="Label of the emitted metric (default: the local host name)",
        )
    parser.add_argument("--debug", action="store_true", help="Raise python exceptions.")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log to stderr (for even more output use -vvv)",
    )

    namespace = parser.parse_args(argv)
    if not namespace.url:
        namespace.url = [DEFAULT_URL]
    return Args.model_validate(vars(namespace))


def _output_check_result(result: CheckResult) -> None:
    s = result.summary
    if result.perfdata:
        s += " | %s" % " ".join(
            "{}={}".format(name, ";".join("" if v is None else str(v) for v in values))
            for name, *values in result.perfdata
        )
    sys.stdout.write("%s\n" % s)


def metric_label(scheme: str | None) -> str:
    if scheme:
        return scheme
    try:
        return socket.gethostname()
    except OSError as e:
        LOGGER.warning("Could not determine host name for the metric label: %s", e)
        return ""


def format_metric(name: str, label: str, value: int, timestamp: int) -> str:
    """Render one line of the Prometheus text exposition format

    >>> format_metric("etcd_mvcc_db_total_size_in_bytes", "etcd-1", 20480, 1700000000)
    'etcd_mvcc_db_total_size_in_bytes{scheme="etcd-1"} 20480 1700000000'
    """
    escaped = label.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'{name}{{scheme="{escaped}"}} {value} {timestamp}'


def _write_metric(scheme: str | None, db_size: int) -> None:
    sys.stdout.write(
        "%s\n" % format_metric(METRIC_NAME, metric_label(scheme), db_size, int(time.time()))
    )


def evaluate_size(db_size: int, threshold: int) -> CheckResult:
    perfdata = [("db_size", db_size, None, threshold)]
    if db_size > threshold:
        return CheckResult(
            State.CRIT, f"Database exceeding set limit ({threshold}): {db_size}", perfdata
        )
    return CheckResult(
        State.OK, f"Database size is within limit ({threshold}): {db_size}", perfdata
    )


def check_db_size(
    args: Args,
    profile: VariantProfile,
    client_factory: ClientFactory = _make_etcd_client,
) -> CheckResult:
    """Run the check, raising EtcdMonException on any operational failure"""
    tls_config = tls_config_from_paths(
        cert_file=args.cert_file,
        key_file=args.key_file,
        trusted_ca_file=args.trusted_ca_file,
    )
    if tls_config is not None:
        verify_credential_files(tls_config)
    LOGGER.info("TLS is %s", "enabled" if tls_config else "disabled")

    with contextlib.closing(client_factory(args.url, args.timeout, tls_config)) as client:
        status = client.status(args.url[0])

    LOGGER.info("Database size of %s: %s", args.url[0], fmt_bytes(status.db_size))

    if profile.metrics:
        _write_metric(args.scheme, status.db_size)

    return evaluate_size(status.db_size, args.size)


def _run(
    argv: Sequence[str],
    profile: VariantProfile,
    client_factory: ClientFactory,
) -> CheckResult:
    args = parse_arguments(argv, profile)
    setup_logging(args.verbose)

    try:
        return check_db_size(args, profile, client_factory)
    except EtcdMonException as e:
        if args.debug:
            raise
        return CheckResult(State.CRIT, str(e))


def main(
    profile: VariantProfile,
    argv: Iterable[str] | None = None,
    client_factory: ClientFactory | None = None,
) -> int:
    result = _run(
        list(sys.argv[1:] if argv is None else argv),
        profile,
        client_factory or _make_etcd_client,
    )
    _output_check_result(result)
    return int(result.state)

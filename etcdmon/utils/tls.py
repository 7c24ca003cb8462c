#!/usr/bin/env python3
# Copyright (C) 2026 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Mutual TLS credentials for the connection to etcd"""

import ssl
from dataclasses import dataclass
from pathlib import Path

from etcdmon.utils.exceptions import MKConnectError, MKCredentialError

__all__ = [
    "TLSConfig",
    "create_ssl_context",
    "tls_config_from_paths",
    "verify_credential_files",
]


@dataclass(frozen=True, kw_only=True)
class TLSConfig:
    cert_file: Path
    key_file: Path
    trusted_ca_file: Path


def tls_config_from_paths(
    *,
    cert_file: Path | None,
    key_file: Path | None,
    trusted_ca_file: Path | None,
) -> TLSConfig | None:
    """TLS is configured as soon as one of the credential files is given.
    It then needs all of them."""
    given = {
        "--cert-file": cert_file,
        "--key-file": key_file,
        "--trusted-ca-file": trusted_ca_file,
    }
    if not any(given.values()):
        return None

    if missing := [option for option, path in given.items() if not path]:
        raise MKCredentialError("incomplete TLS configuration, missing %s" % ", ".join(missing))

    assert cert_file and key_file and trusted_ca_file
    return TLSConfig(cert_file=cert_file, key_file=key_file, trusted_ca_file=trusted_ca_file)


def verify_credential_files(tls_config: TLSConfig) -> None:
    for what, path in (
        ("certificate", tls_config.cert_file),
        ("certificate key", tls_config.key_file),
        ("CA", tls_config.trusted_ca_file),
    ):
        try:
            path.stat()
        except OSError as e:
            raise MKCredentialError(f"could not load {what}({path}): {e.strerror}") from e


def _no_passphrase() -> bytes:
    return b""


def create_ssl_context(tls_config: TLSConfig) -> ssl.SSLContext:
    try:
        ctx = ssl.create_default_context(cafile=str(tls_config.trusted_ca_file))
        # an encrypted key fails instead of prompting on the terminal
        ctx.load_cert_chain(
            certfile=str(tls_config.cert_file),
            keyfile=str(tls_config.key_file),
            password=_no_passphrase,
        )
    except (ssl.SSLError, OSError) as e:
        raise MKConnectError("error loading TLS credentials: %s" % e) from e
    return ctx

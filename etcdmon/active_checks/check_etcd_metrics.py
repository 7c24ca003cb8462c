#!/usr/bin/env python3
# Copyright (C) 2026 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""check_etcd_metrics - Monitor the database size of etcd and report it as a metric

Before the check result a line in the Prometheus text exposition format is
written, labeled with --scheme or the local host name.
"""

import sys
from collections.abc import Iterable

from etcdmon.active_checks import etcd_dbsize

PROFILE = etcd_dbsize.VariantProfile(
    name="check_etcd_metrics",
    default_size=3_000_000_000,
    tls=True,
    metrics=True,
)


def main(argv: Iterable[str] | None = None) -> int:
    return etcd_dbsize.main(PROFILE, argv)


if __name__ == "__main__":
    sys.exit(main())

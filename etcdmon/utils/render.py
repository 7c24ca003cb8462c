#!/usr/bin/env python3
# Copyright (C) 2026 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""This module contains functions that transform byte counts into text
representations for human beings and back."""

import re
from collections.abc import Sequence
from typing import Final

_SI_BASE: Final = 1000
_SI_PREFIXES: Final[Sequence[str]] = ("", "k", "M", "G", "T", "P", "E", "Z", "Y")

_SIZE_PATTERN: Final = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kKMGT]?)B?\s*$")


def scale_factor_and_prefix(v: float) -> tuple[float, str]:
    """
    >>> scale_factor_and_prefix(1)
    (1.0, '')
    >>> scale_factor_and_prefix(1001.123)
    (1000.0, 'k')
    >>> scale_factor_and_prefix(5_000_000_000)
    (1000000000.0, 'G')
    """
    prefix = _SI_PREFIXES[-1]
    factor = _SI_BASE
    for unit_prefix in _SI_PREFIXES[:-1]:
        if abs(v) < factor:
            prefix = unit_prefix
            break
        factor *= _SI_BASE
    return factor / _SI_BASE, prefix


def drop_dotzero(v: float, digits: int = 2) -> str:
    """Renders a number as a floating point number and drops useless
    zeroes at the end of the fraction

    >>> drop_dotzero(45.1)
    '45.1'
    >>> drop_dotzero(45.0)
    '45'
    >>> drop_dotzero(45.111, 1)
    '45.1'
    """
    t = "%.*f" % (digits, v)
    if "." in t:
        return t.rstrip("0").rstrip(".")
    return t


def fmt_bytes(b: int, *, precision: int = 2) -> str:
    """Formats byte values to be used in texts for humans.

    etcd sizes its quota in decimal units, so SI prefixes are used.

    >>> fmt_bytes(1_500_000_000)
    '1.5 GB'
    >>> fmt_bytes(512)
    '512 B'
    """
    factor, prefix = scale_factor_and_prefix(b)
    return "%s %sB" % (drop_dotzero(float(b) / factor, precision), prefix)


def parse_bytes(text: str) -> int:
    """Parse a byte count with an optional decimal unit suffix

    >>> parse_bytes("1500000000")
    1500000000
    >>> parse_bytes("1.5G")
    1500000000
    >>> parse_bytes("512k")
    512000
    """
    if (match := _SIZE_PATTERN.match(text)) is None:
        raise ValueError("Invalid size: %r" % text)
    number, prefix = match.groups()
    exponent = _SI_PREFIXES.index(prefix.replace("K", "k"))
    return int(round(float(number) * _SI_BASE**exponent))

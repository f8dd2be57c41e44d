"""Processor tick counter and conversions between ticks and seconds."""

from __future__ import annotations

import math
import re
import time
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path

_CPUINFO = Path("/proc/cpuinfo")
_DEFAULT_SECONDS_PER_TICK = 1e-9

_FLOAT = r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
_LEADING_FLOAT = re.compile(r"\s*(" + _FLOAT + ")")
_CPU_MHZ_LINE = re.compile(r"cpu\s*MHz\s*:\s*(" + _FLOAT + ")")


def _leading_float(text: str) -> float | None:
    match = _LEADING_FLOAT.match(text)
    return float(match.group(1)) if match else None


def _scaled(scale: float, value: float) -> float:
    return scale / value if value else math.inf


def parse_cpuinfo(lines: Iterable[str]) -> float:
    """Return seconds per tick from the lines of a cpuinfo listing.

    The frequency after the "@" of a "model name" line is preferred; a
    "cpu MHz" line is used otherwise.  Without either, ticks are taken
    to be nanoseconds.
    """
    for line in lines:
        if "model name" in line:
            at_sign = line.find("@")
            if at_sign < 0:
                continue
            after_at = line[at_sign + 1:]
            ghz_pos = after_at.find("GHz")
            mhz_pos = after_at.find("MHz")
            if ghz_pos >= 0:
                ghz = _leading_float(after_at[:ghz_pos])
                if ghz is not None:
                    return _scaled(1e-9, ghz)
            elif mhz_pos >= 0:
                mhz = _leading_float(after_at[:mhz_pos])
                if mhz is not None:
                    return _scaled(1e-6, mhz)
        else:
            match = _CPU_MHZ_LINE.match(line)
            if match:
                return _scaled(1e-6, float(match.group(1)))
    return _DEFAULT_SECONDS_PER_TICK


@lru_cache(maxsize=None)
def seconds_per_tick() -> float:
    """Return the length of one tick in seconds, read once and cached."""
    try:
        with _CPUINFO.open(encoding="utf-8", errors="replace") as handle:
            return parse_cpuinfo(handle)
    except OSError:
        return _DEFAULT_SECONDS_PER_TICK


def current_ticks() -> int:
    """Return the current time in ticks from an arbitrary origin."""
    return int(round(time.perf_counter_ns() * 1e-9 / seconds_per_tick()))


def current_seconds() -> float:
    """Return the current time in seconds from an arbitrary origin."""
    return current_ticks() * seconds_per_tick()


def ticks_per_second() -> float:
    """Return how many ticks make one second."""
    return 1.0 / seconds_per_tick()


def ms_per_tick() -> float:
    """Return the length of one tick in milliseconds."""
    return seconds_per_tick() * 1000.0


def tick_units() -> str:
    """Return the unit a tick is counted in."""
    return "ns" if seconds_per_tick() == _DEFAULT_SECONDS_PER_TICK else "cycles"
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from conntrack_flow_mcp.core.errors import MalformedLineError

# Line layouts, as exported by /proc/net/ip_conntrack and `conntrack -L`:
#
# tcp      6 367755 ESTABLISHED src=10.0.0.1 dst=10.0.0.2 sport=3306 dport=38205 packets=1 bytes=52 [UNREPLIED] src=10.0.0.2 dst=10.0.0.1 sport=38205 dport=3306 packets=0 bytes=0 mark=0 secmark=0 use=1
# tcp      6 5 CLOSE src=10.0.0.10 dst=10.0.0.11 sport=41143 dport=443 packets=3 bytes=164 src=10.0.0.11 dst=10.0.0.10 sport=443 dport=41143 packets=1 bytes=60 [ASSURED] mark=0 secmark=0 use=1
#
# Counters only appear when nf_conntrack_acct is enabled.

UNREPLIED_MARKER = "[UNREPLIED]"
ASSURED_MARKER = "[ASSURED]"
EMPTY_LINE = "empty line"

_ADDR_KEYS = ("src", "dst", "sport", "dport")
_COUNTER_KEYS = ("packets", "bytes")


class RecordShape(Enum):
    UNREPLIED = "unreplied"
    ASSURED = "assured"


@dataclass
class ConnTuple:
    """
    One direction of a tracked connection. Ports are kept as tokens.
    """

    src: str
    dst: str
    sport: str
    dport: str
    packets: int = 0
    bytes: int = 0


@dataclass
class RawRecord:
    """
    One decoded table line.

      original
        The request direction as first seen by the kernel.

      reply
        The reverse direction the kernel expects or has seen.
    """

    shape: RecordShape
    original: ConnTuple
    reply: ConnTuple


def _record_shape(line: str) -> Optional[RecordShape]:
    if UNREPLIED_MARKER in line:
        return RecordShape.UNREPLIED
    if ASSURED_MARKER in line:
        return RecordShape.ASSURED
    return None


def _split_tuples(fields: List[str]) -> List[Dict[str, str]]:
    """
    Group key=value tokens into direction tuples. Every src= opens a tuple.
    Unknown keys and bare tokens are ignored.
    """
    tuples: List[Dict[str, str]] = []
    for token in fields:
        key, sep, value = token.partition("=")
        if not sep:
            continue
        if key == "src":
            tuples.append({})
        if not tuples or key not in _ADDR_KEYS + _COUNTER_KEYS:
            continue
        # duplicate keys keep the first value
        tuples[-1].setdefault(key, value)
    return tuples


def _counter(line: str, values: Dict[str, str], key: str) -> int:
    raw = values.get(key)
    if raw is None:
        return 0
    if not (raw.isascii() and raw.isdigit()):
        raise MalformedLineError(line, f"bad {key} counter {raw!r}")
    return int(raw)


def _build_tuple(line: str, v: Dict[str, str], which: str) -> ConnTuple:
    missing = [k for k in _ADDR_KEYS if not v.get(k)]
    if missing:
        raise MalformedLineError(line, f"{which} tuple missing {', '.join(missing)}")
    return ConnTuple(
        src=v["src"],
        dst=v["dst"],
        sport=v["sport"],
        dport=v["dport"],
        packets=_counter(line, v, "packets"),
        bytes=_counter(line, v, "bytes"),
    )


def decode_line(line: str) -> Optional[RawRecord]:
    """
    Decode one connection tracking line into a RawRecord.

    Returns None for lines that are not TCP or carry neither the UNREPLIED
    nor the ASSURED marker. Those are skipped silently.

    Raises MalformedLineError for an empty line or a TCP line whose tuples
    cannot be recovered.
    """
    fields = line.split()
    if not fields:
        raise MalformedLineError(line, EMPTY_LINE)
    if fields[0] != "tcp":
        return None

    shape = _record_shape(line)
    if shape is None:
        return None

    tuples = _split_tuples(fields)
    if len(tuples) < 2:
        raise MalformedLineError(line, f"expected 2 tuples, found {len(tuples)}")

    return RawRecord(
        shape=shape,
        original=_build_tuple(line, tuples[0], "original"),
        reply=_build_tuple(line, tuples[1], "reply"),
    )

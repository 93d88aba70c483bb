from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from conntrack_flow_mcp.core.config import FilterPorts
from conntrack_flow_mcp.core.models import (
    ORIGINAL,
    FlowDirection,
    HostFlow,
    HostFlowStat,
    counter_sources,
)
from .decoder import ConnTuple, RawRecord


@dataclass(frozen=True)
class Classification:
    """
    Result of classifying a RawRecord against the local addresses.

    remote_port is set for ACTIVE flows, local_port for PASSIVE flows.
    """

    direction: FlowDirection
    remote_addr: str = ""
    remote_port: str = ""
    local_port: str = ""


UNKNOWN = Classification(FlowDirection.UNKNOWN)


def _active_port_ok(fports: FilterPorts, port: str) -> bool:
    # an empty active list accepts every port
    return not fports.active or port in fports.active


def classify(record: RawRecord, local_addrs: Iterable[str], fports: FilterPorts) -> Classification:
    """
    Decide whether the local host opened or accepted the connection.

    Rules are tried per local address, in the order local_addrs yields them,
    and the first match wins:
      1. original src is local, original dport allowed      -> ACTIVE to original dst:dport
      2. reply dst is local, reply sport allowed            -> ACTIVE to reply src:sport
      3. original dst is local, original dport is passive   -> PASSIVE on original dport from original src
      4. reply src is local, reply sport is passive         -> PASSIVE on reply sport from reply dst

    If two local addresses could match the same record the order decides,
    so pass a sorted sequence when the result has to be reproducible.
    """
    o, r = record.original, record.reply
    for addr in local_addrs:
        if o.src == addr and _active_port_ok(fports, o.dport):
            return Classification(FlowDirection.ACTIVE, remote_addr=o.dst, remote_port=o.dport)
        if r.dst == addr and _active_port_ok(fports, r.sport):
            return Classification(FlowDirection.ACTIVE, remote_addr=r.src, remote_port=r.sport)
        if o.dst == addr and o.dport in fports.passive:
            return Classification(FlowDirection.PASSIVE, remote_addr=o.src, local_port=o.dport)
        if r.src == addr and r.sport in fports.passive:
            return Classification(FlowDirection.PASSIVE, remote_addr=r.dst, local_port=r.sport)
    return UNKNOWN


def _pick(record: RawRecord, source: str) -> ConnTuple:
    return record.original if source == ORIGINAL else record.reply


def to_host_flow(record: RawRecord, cls: Classification) -> Optional[HostFlow]:
    """
    Build the HostFlow for a classified record. None for UNKNOWN.
    """
    if cls.direction is FlowDirection.UNKNOWN:
        return None

    inbound_src, outbound_src = counter_sources(cls.direction)
    inbound, outbound = _pick(record, inbound_src), _pick(record, outbound_src)
    stat = HostFlowStat(
        total_inbound_packets=inbound.packets,
        total_inbound_bytes=inbound.bytes,
        total_outbound_packets=outbound.packets,
        total_outbound_bytes=outbound.bytes,
    )

    if cls.direction is FlowDirection.ACTIVE:
        return HostFlow.active(cls.remote_addr, cls.remote_port, stat)
    return HostFlow.passive(cls.local_port, cls.remote_addr, stat)

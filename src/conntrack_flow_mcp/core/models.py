from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Set, Tuple

LOCALHOST = "localhost"
MANY = "many"

ORIGINAL = "original"
REPLY = "reply"


class FlowDirection(Enum):
    """
    Who opened the connection.

      ACTIVE
        The local host initiated it (original source is local).

      PASSIVE
        The local host accepted it on a listening port.

      UNKNOWN
        Neither rule matched. Such records are discarded, never aggregated.
    """

    UNKNOWN = "unknown"
    ACTIVE = "active"
    PASSIVE = "passive"


def counter_sources(direction: FlowDirection) -> Tuple[str, str]:
    """
    Return (inbound_source, outbound_source) for a direction.

    Sources name a conntrack tuple, ORIGINAL or REPLY.

    Active flows: the original tuple is what the local host sent, so it is
    outbound and the reply tuple is inbound.
    Passive flows: the peer opened the connection, so the original tuple is
    inbound and the reply tuple is outbound.
    """
    if direction is FlowDirection.ACTIVE:
        return REPLY, ORIGINAL
    if direction is FlowDirection.PASSIVE:
        return ORIGINAL, REPLY
    raise ValueError(f"no counter mapping for direction {direction.value}")


def select_directions(active: bool, passive: bool) -> Set[FlowDirection]:
    """
    Directions to report. Asking for neither means both.
    """
    if not active and not passive:
        return {FlowDirection.ACTIVE, FlowDirection.PASSIVE}
    out = set()
    if active:
        out.add(FlowDirection.ACTIVE)
    if passive:
        out.add(FlowDirection.PASSIVE)
    return out


@dataclass
class AddrPort:
    addr: str
    port: str

    def __str__(self) -> str:
        if ":" in self.addr:
            return f"[{self.addr}]:{self.port}"
        return f"{self.addr}:{self.port}"

    def to_dict(self) -> Dict[str, str]:
        return {"addr": self.addr, "port": self.port}


@dataclass
class HostFlowStat:
    """
    Accumulated counters of a host flow.
    Counters only ever grow during a parse pass.
    """

    total_inbound_packets: int = 0
    total_inbound_bytes: int = 0
    total_outbound_packets: int = 0
    total_outbound_bytes: int = 0

    def add(self, other: "HostFlowStat") -> None:
        self.total_inbound_packets += other.total_inbound_packets
        self.total_inbound_bytes += other.total_inbound_bytes
        self.total_outbound_packets += other.total_outbound_packets
        self.total_outbound_bytes += other.total_outbound_bytes

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_inbound_packets": self.total_inbound_packets,
            "total_inbound_bytes": self.total_inbound_bytes,
            "total_outbound_packets": self.total_outbound_packets,
            "total_outbound_bytes": self.total_outbound_bytes,
        }


@dataclass
class HostFlow:
    """
    Aggregated traffic between the local host and one remote endpoint.

    Fields:
      direction
        ACTIVE or PASSIVE.

      local
        Always addr "localhost". Port is "many" for active flows, since the
        local ephemeral port changes per connection, and the listening port
        for passive flows.

      peer
        Remote address. Port is the remote service port for active flows and
        "many" for passive flows, since clients connect from ephemeral ports.

      stat
        Summed packet and byte counters.
    """

    direction: FlowDirection
    local: AddrPort
    peer: AddrPort
    stat: HostFlowStat = field(default_factory=HostFlowStat)

    @classmethod
    def active(cls, remote_addr: str, remote_port: str, stat: HostFlowStat) -> "HostFlow":
        return cls(
            direction=FlowDirection.ACTIVE,
            local=AddrPort(LOCALHOST, MANY),
            peer=AddrPort(remote_addr, remote_port),
            stat=stat,
        )

    @classmethod
    def passive(cls, local_port: str, remote_addr: str, stat: HostFlowStat) -> "HostFlow":
        return cls(
            direction=FlowDirection.PASSIVE,
            local=AddrPort(LOCALHOST, local_port),
            peer=AddrPort(remote_addr, MANY),
            stat=stat,
        )

    def key(self) -> Tuple[FlowDirection, str, str]:
        """
        Identity used for aggregation.

        Active:  (ACTIVE, remote addr, remote port)
        Passive: (PASSIVE, local port, remote addr)
        """
        if self.direction is FlowDirection.ACTIVE:
            return (self.direction, self.peer.addr, self.peer.port)
        if self.direction is FlowDirection.PASSIVE:
            return (self.direction, self.local.port, self.peer.addr)
        raise ValueError("unknown flows have no identity")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction.value,
            "local": self.local.to_dict(),
            "peer": self.peer.to_dict(),
            "stat": self.stat.to_dict(),
        }

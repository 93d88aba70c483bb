from __future__ import annotations
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple
from .models import AddrPort, FlowDirection, HostFlow, HostFlowStat

FlowKey = Tuple[FlowDirection, str, str]


class FlowStore:
    """
    In memory map from flow identity to aggregated HostFlow.

    One store lives for one parse pass. There is no eviction and no TTL,
    the size is bounded by the number of distinct keys in the source.

    Merging is a field wise sum, so the final totals do not depend on the
    order in which lines or partial stores are fed in. Partial stores built
    from separate chunks of a table can be combined with merge().
    """

    def __init__(self):
        self._flows: Dict[FlowKey, HostFlow] = {}

    def insert(self, flow: HostFlow) -> None:
        """
        Add a flow. A new key stores the flow, a known key adds its counters.
        """
        key = flow.key()
        existing = self.get(key)
        if existing is None:
            self._flows[key] = flow
            return
        existing.stat.add(flow.stat)

    def merge(self, other: "FlowStore") -> None:
        """
        Fold another store into this one with the same rule as insert().
        The other store is left untouched.
        """
        for f in other:
            self.insert(
                HostFlow(
                    direction=f.direction,
                    local=AddrPort(f.local.addr, f.local.port),
                    peer=AddrPort(f.peer.addr, f.peer.port),
                    stat=HostFlowStat(**f.stat.to_dict()),
                )
            )

    def get(self, key: FlowKey) -> Optional[HostFlow]:
        return self._flows.get(key)

    def flows(self, directions: Optional[Set[FlowDirection]] = None) -> List[HostFlow]:
        """
        Return flows, optionally only those with a direction in directions.
        """
        if directions is None:
            return list(self._flows.values())
        return [f for f in self._flows.values() if f.direction in directions]

    def to_list(self, directions: Optional[Set[FlowDirection]] = None) -> List[Dict[str, Any]]:
        return [f.to_dict() for f in self.flows(directions)]

    def __len__(self) -> int:
        return len(self._flows)

    def __iter__(self) -> Iterator[HostFlow]:
        return iter(list(self._flows.values()))

    def __contains__(self, key: object) -> bool:
        return key in self._flows

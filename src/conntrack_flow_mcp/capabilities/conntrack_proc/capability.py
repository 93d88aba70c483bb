from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from conntrack_flow_mcp.core.capability_base import Capability, CapabilityContext
from conntrack_flow_mcp.core.config import ConntrackConfig, FilterPorts
from conntrack_flow_mcp.core.errors import ConntrackError, ReadError
from conntrack_flow_mcp.core.models import FlowDirection, select_directions
from conntrack_flow_mcp.core.netutil import local_ipv4_addrs, local_listening_ports, resolve_addr
from conntrack_flow_mcp.core.store import FlowStore
from .entries import ParseStats, find_proc_path, read_entries, resolve_filter_ports

logger = logging.getLogger(__name__)


class ConntrackProcCapability:
    """
    Snapshot capability over the kernel connection tracking table.

    Every tool call is one parse pass: find the table, read it once, and
    return aggregated host flows. Nothing is kept between calls except the
    counters reported by status().

    The address, listening port and resolver functions are injectable so
    the capability can run against a fixture table.
    """

    name = "conntrack_proc"

    def __init__(
        self,
        local_addrs: Callable[[], List[str]] = local_ipv4_addrs,
        listening_ports: Callable[[], List[str]] = local_listening_ports,
        resolver: Callable[[str], str] = resolve_addr,
    ):
        self._ctx: Optional[CapabilityContext] = None
        self._local_addrs = local_addrs
        self._listening_ports = listening_ports
        self._resolver = resolver

        self._passes = 0
        self._failures = 0
        self._last_path: Optional[str] = None
        self._last_stats: Optional[ParseStats] = None
        self._last_error: Optional[str] = None

    @property
    def config(self) -> ConntrackConfig:
        return self._ctx.config if self._ctx else ConntrackConfig()

    def register_tools(self, mcp: Any, ctx: CapabilityContext) -> None:
        self._ctx = ctx

        @mcp.tool()
        def list_host_flows(
            active: bool = True,
            passive: bool = True,
            active_ports: Optional[List[str]] = None,
            passive_ports: Optional[List[str]] = None,
            resolve: Optional[bool] = None,
        ) -> List[Dict[str, Any]]:
            """
            Aggregated connections between localhost and other hosts.
            Active flows are opened by this host, passive flows are accepted
            on a listening port.
            """
            return self.snapshot(
                active=active,
                passive=passive,
                active_ports=active_ports,
                passive_ports=passive_ports,
                resolve=resolve,
            )

        @mcp.tool()
        def conntrack_source() -> str:
            """
            Path of the connection tracking table in use, empty if none exists.
            """
            return find_proc_path(self.config.proc_paths) or ""

    def filter_ports(
        self,
        passive_wanted: bool,
        active_ports: Optional[List[str]] = None,
        passive_ports: Optional[List[str]] = None,
    ) -> FilterPorts:
        return resolve_filter_ports(
            passive_wanted,
            active_ports,
            passive_ports,
            self._listening_ports,
            defaults=self.config.filter_ports,
        )

    def _record_failure(self, e: ConntrackError) -> None:
        self._failures += 1
        self._last_error = str(e)

    def parse(self, fports: FilterPorts) -> FlowStore:
        stats = ParseStats()
        try:
            path = find_proc_path(self.config.proc_paths)
            if path is None:
                raise ReadError("not found conntrack entries path: Please load conntrack module")
            self._last_path = path
            store = read_entries(path, self._local_addrs(), fports, stats=stats)
        except ConntrackError as e:
            self._record_failure(e)
            raise
        self._passes += 1
        self._last_stats = stats
        self._last_error = None
        return store

    def snapshot(
        self,
        active: bool = True,
        passive: bool = True,
        active_ports: Optional[List[str]] = None,
        passive_ports: Optional[List[str]] = None,
        resolve: Optional[bool] = None,
    ) -> List[Dict[str, Any]]:
        directions = select_directions(active, passive)
        try:
            fports = self.filter_ports(FlowDirection.PASSIVE in directions, active_ports, passive_ports)
        except ConntrackError as e:
            self._record_failure(e)
            raise
        store = self.parse(fports)

        flows = store.to_list(directions)
        do_resolve = self.config.resolve_names if resolve is None else resolve
        if do_resolve:
            for f in flows:
                f["peer"]["addr"] = self._resolver(f["peer"]["addr"])

        if self._ctx:
            self._ctx.log(f"{self.name}: {len(flows)} host flows from {self._last_path}")
        else:
            logger.info("%s: %d host flows from %s", self.name, len(flows), self._last_path)
        return flows

    def status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "source": find_proc_path(self.config.proc_paths),
            "passes": self._passes,
            "failures": self._failures,
            "last_path": self._last_path,
            "last_stats": self._last_stats.to_dict() if self._last_stats else None,
            "last_error": self._last_error,
        }


def build_capability() -> Capability:
    return ConntrackProcCapability()

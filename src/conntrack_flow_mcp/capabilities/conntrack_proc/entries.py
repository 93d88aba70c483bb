from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from conntrack_flow_mcp.core.config import DEFAULT_PROC_PATHS, FilterPorts, normalize_ports
from conntrack_flow_mcp.core.errors import MalformedLineError, ReadError
from conntrack_flow_mcp.core.store import FlowStore
from .classifier import classify, to_host_flow
from .decoder import EMPTY_LINE, decode_line

log = logging.getLogger(__name__)


@dataclass
class ParseStats:
    """
    Counters for one parse pass.

      lines        every line read
      decoded      TCP lines turned into a RawRecord
      skipped      non TCP lines or lines without a known marker
      malformed    lines that looked like records but failed to decode
      unclassified records that matched no direction rule
      inserted     HostFlow objects handed to the store
    """

    lines: int = 0
    decoded: int = 0
    skipped: int = 0
    malformed: int = 0
    unclassified: int = 0
    inserted: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def find_proc_path(paths: Sequence[str] = DEFAULT_PROC_PATHS) -> Optional[str]:
    """
    Return the first existing connection tracking path, or None.
    """
    for path in paths:
        if os.path.exists(path):
            return path
    return None


def resolve_filter_ports(
    passive_wanted: bool,
    active_ports: Optional[Iterable[object]],
    passive_ports: Optional[Iterable[object]],
    listening_ports: Callable[[], List[str]],
    defaults: FilterPorts = FilterPorts(),
) -> FilterPorts:
    """
    Port allow lists for a pass: explicit ports, then defaults, then the
    locally listening ports for passive flows. listening_ports is only
    called when passive flows are wanted and no passive port is known.
    """
    active = normalize_ports(active_ports) if active_ports else defaults.active
    passive = normalize_ports(passive_ports) if passive_ports else defaults.passive
    if passive_wanted and not passive:
        passive = normalize_ports(listening_ports())
    return FilterPorts(active=active, passive=passive)


def parse_entries(
    lines: Iterable[str],
    local_addrs: Iterable[str],
    fports: FilterPorts,
    stats: Optional[ParseStats] = None,
) -> FlowStore:
    """
    Run one parse pass over connection tracking lines.

    Each line is decoded, classified and merged into a fresh FlowStore.
    Malformed lines are logged and skipped. An OSError or UnicodeDecodeError
    raised by the line source is re-raised as ReadError.
    """
    addrs = sorted(set(local_addrs))
    stats = stats if stats is not None else ParseStats()
    store = FlowStore()

    it = iter(lines)
    while True:
        try:
            line = next(it)
        except StopIteration:
            break
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(f"failed to read conntrack entries: {e}") from e

        stats.lines += 1
        try:
            record = decode_line(line)
        except MalformedLineError as e:
            stats.malformed += 1
            if e.reason == EMPTY_LINE:
                log.debug("skipping blank line %d", stats.lines)
            else:
                log.warning("skipping malformed line %d: %s", stats.lines, e)
            continue

        if record is None:
            stats.skipped += 1
            continue
        stats.decoded += 1

        flow = to_host_flow(record, classify(record, addrs, fports))
        if flow is None:
            stats.unclassified += 1
            continue

        store.insert(flow)
        stats.inserted += 1

    log.debug("parse pass done: %s, %d flows", stats.to_dict(), len(store))
    return store


def read_entries(
    path: str,
    local_addrs: Iterable[str],
    fports: FilterPorts,
    stats: Optional[ParseStats] = None,
) -> FlowStore:
    """
    Open a connection tracking table file and parse it.
    """
    try:
        f = open(path, "r", encoding="utf-8", errors="replace")
    except OSError as e:
        raise ReadError(f"failed to open {path}: {e}") from e

    with f:
        return parse_entries(f, local_addrs, fports, stats=stats)

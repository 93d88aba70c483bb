from __future__ import annotations
import json
import os
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Tuple

IP_CONNTRACK_PATH = "/proc/net/ip_conntrack"  # old kernel
NF_CONNTRACK_PATH = "/proc/net/nf_conntrack"  # new kernel

DEFAULT_PROC_PATHS: Tuple[str, ...] = (IP_CONNTRACK_PATH, NF_CONNTRACK_PATH)

DEFAULT_CAPABILITIES: Tuple[str, ...] = (
    "conntrack_flow_mcp.capabilities.conntrack_proc.capability:build_capability",
)


def normalize_ports(ports: Optional[Iterable[object]]) -> frozenset:
    """
    Validate ports as decimal tokens and return them as a frozenset of strings.

    Ports stay strings because they are only compared against the tokens in
    conntrack lines.
    """
    if ports is None:
        return frozenset()
    out = set()
    for p in ports:
        s = str(p).strip()
        if not (s.isascii() and s.isdigit()):
            raise ValueError(f"{p} is not number")
        out.add(str(int(s)))
    return frozenset(out)


@dataclass(frozen=True)
class FilterPorts:
    """
    Port allow lists used by the classifier.

      active
        Remote ports accepted for active flows. Empty means any port.

      passive
        Local listening ports accepted for passive flows. Empty means no
        passive flow is accepted at all.
    """

    active: frozenset = frozenset()
    passive: frozenset = frozenset()

    @classmethod
    def of(cls, active: Optional[Iterable[object]] = None, passive: Optional[Iterable[object]] = None) -> "FilterPorts":
        return cls(active=normalize_ports(active), passive=normalize_ports(passive))


@dataclass
class ConntrackConfig:
    """
    Runtime configuration passed explicitly into the server and parse calls.

      capabilities
        Import strings "module.path:factory" loaded by the registry.

      proc_paths
        Candidate table paths, tried in order.

      filter_ports
        Default port allow lists. Tools and CLI flags override them.

      resolve_names
        Replace peer addresses with reverse DNS names in tool output.

      log_level
        Name of the logging level used by setup_logging.
    """

    capabilities: List[str] = field(default_factory=lambda: list(DEFAULT_CAPABILITIES))
    proc_paths: Tuple[str, ...] = DEFAULT_PROC_PATHS
    filter_ports: FilterPorts = field(default_factory=FilterPorts)
    resolve_names: bool = False
    log_level: str = "INFO"


def _parse_list(raw: str) -> List[str]:
    raw = raw.strip()
    if not raw:
        return []
    if raw.startswith("["):
        value = json.loads(raw)
        if not isinstance(value, list):
            raise ValueError(f"expected a JSON list, got {raw}")
        return [str(v) for v in value]
    return [part.strip() for part in raw.split(",") if part.strip()]


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_config(environ: Optional[Mapping[str, str]] = None) -> ConntrackConfig:
    """
    Build a ConntrackConfig from environment variables.

    Example:
      export CONNTRACK_CAPABILITIES='[
        "conntrack_flow_mcp.capabilities.conntrack_proc.capability:build_capability"
      ]'
      export CONNTRACK_PROC_PATHS='["/proc/net/nf_conntrack"]'
      export CONNTRACK_ACTIVE_PORTS=3306,6379
      export CONNTRACK_PASSIVE_PORTS='["80", "443"]'
      export CONNTRACK_RESOLVE=1
      export CONNTRACK_LOG_LEVEL=DEBUG
    """
    env = os.environ if environ is None else environ
    cfg = ConntrackConfig()

    raw = env.get("CONNTRACK_CAPABILITIES")
    if raw is not None:
        cfg.capabilities = _parse_list(raw)

    raw = env.get("CONNTRACK_PROC_PATHS")
    if raw is not None:
        cfg.proc_paths = tuple(_parse_list(raw))

    cfg.filter_ports = FilterPorts.of(
        active=_parse_list(env.get("CONNTRACK_ACTIVE_PORTS", "")),
        passive=_parse_list(env.get("CONNTRACK_PASSIVE_PORTS", "")),
    )

    cfg.resolve_names = _parse_bool(env.get("CONNTRACK_RESOLVE", ""))
    cfg.log_level = env.get("CONNTRACK_LOG_LEVEL", cfg.log_level)
    return cfg

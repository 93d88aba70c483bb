from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Protocol

from .config import ConntrackConfig


@dataclass
class CapabilityContext:
    """
    Shared runtime objects provided by the core server to each capability.

    config
      ConntrackConfig the server was started with. Capabilities read their
      defaults from it instead of from module level variables.

    log
      Logging function bound to the server logger.
    """

    config: ConntrackConfig
    log: Callable[[str], None]


class Capability(Protocol):
    """
    Required interface for a capability plugin.

    A capability is responsible for
    1. Registering MCP tools
    2. Reading a connection tracking source
    3. Turning it into HostFlow objects in a fresh FlowStore per call

    The core server never imports specific capabilities directly.
    It loads them via registry using import paths.
    """

    name: str

    def register_tools(self, mcp: Any, ctx: CapabilityContext) -> None:
        """
        Called once at server startup. Capabilities should register tools here.
        """
        ...

    def status(self) -> Dict[str, Any]:
        """
        Return quick health and counters. Must be fast and side effect free.
        """
        ...

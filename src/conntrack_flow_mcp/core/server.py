from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from .capability_base import CapabilityContext
from .config import ConntrackConfig
from .registry import CapabilityRegistry

log = logging.getLogger(__name__)


class ConntrackMCPServer:
    """
    MCP server around connection tracking capabilities.

    Responsibilities:
      Load configured capabilities
      Register capability tools
      Expose core introspection tools
      Hand the shared configuration to every capability
    """

    def __init__(self, config: Optional[ConntrackConfig] = None, mcp: Any = None):
        self.config = config or ConntrackConfig()
        self.registry = CapabilityRegistry()
        self.mcp = mcp if mcp is not None else FastMCP("conntrack_flow_mcp")

        self._load_capabilities(self.config.capabilities)
        self._register_core_tools()

    def _log(self, msg: str) -> None:
        log.info(msg)

    def _load_capabilities(self, imports: List[str]) -> None:
        self.registry.load_from_import_paths(imports)
        ctx = CapabilityContext(config=self.config, log=self._log)

        for name in self.registry.list():
            cap = self.registry.get(name)
            cap.register_tools(self.mcp, ctx)
            log.info("loaded capability %s", name)

    def _register_core_tools(self) -> None:
        @self.mcp.tool()
        def list_capabilities() -> List[str]:
            return self.registry.list()

        @self.mcp.tool()
        def capability_status(name: str) -> Dict[str, Any]:
            cap = self.registry.get(name)
            return cap.status()

    def run(self) -> None:
        self.mcp.run()

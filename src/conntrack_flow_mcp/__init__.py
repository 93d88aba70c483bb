"""
conntrack_flow_mcp

Host level traffic statistics from the kernel connection tracking table,
served over MCP and from a small command line tool.

Core ideas
1. Capabilities read a connection tracking source
2. Decoders turn table lines into raw records and classify them
3. Core store aggregates HostFlow objects without knowing the source format
"""

__version__ = "0.3.0"

__all__ = ["core", "capabilities", "cli", "__version__"]

from __future__ import annotations
from conntrack_flow_mcp.core.config import load_config
from conntrack_flow_mcp.core.logging_config import setup_logging
from conntrack_flow_mcp.core.server import ConntrackMCPServer


def main() -> None:
    """
    Load configuration from CONNTRACK_* env vars and serve MCP over stdio.

    Example:
      export CONNTRACK_CAPABILITIES='[
        "conntrack_flow_mcp.capabilities.conntrack_proc.capability:build_capability"
      ]'
      export CONNTRACK_PASSIVE_PORTS=80,443
      python -m conntrack_flow_mcp.cli.run_server
    """
    config = load_config()
    setup_logging(config.log_level)

    server = ConntrackMCPServer(config=config)
    server.run()


if __name__ == "__main__":
    main()

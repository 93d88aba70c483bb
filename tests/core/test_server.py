from conntrack_flow_mcp.core.config import DEFAULT_CAPABILITIES, ConntrackConfig
from conntrack_flow_mcp.core.server import ConntrackMCPServer


def test_server_registers_core_and_capability_tools(fake_mcp, config):
    config.capabilities = list(DEFAULT_CAPABILITIES)
    server = ConntrackMCPServer(config=config, mcp=fake_mcp)

    assert {"list_capabilities", "capability_status", "list_host_flows", "conntrack_source"} <= set(fake_mcp.tools)
    assert fake_mcp.tools["list_capabilities"]() == ["conntrack_proc"]

    status = fake_mcp.tools["capability_status"]("conntrack_proc")
    assert status["name"] == "conntrack_proc"
    assert status["passes"] == 0
    assert status["source"] == config.proc_paths[0]
    assert server.registry.list() == ["conntrack_proc"]


def test_server_without_capabilities(fake_mcp):
    ConntrackMCPServer(config=ConntrackConfig(capabilities=[]), mcp=fake_mcp)
    assert fake_mcp.tools["list_capabilities"]() == []

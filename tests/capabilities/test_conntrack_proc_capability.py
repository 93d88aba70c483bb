import pytest

from conntrack_flow_mcp.capabilities.conntrack_proc.capability import ConntrackProcCapability
from conntrack_flow_mcp.core.config import FilterPorts
from conntrack_flow_mcp.core.errors import LocalAddressLookupError, ReadError


def build(listening=("80",)):
    return ConntrackProcCapability(
        local_addrs=lambda: ["10.0.0.1"],
        listening_ports=lambda: list(listening),
        resolver=lambda addr: f"host-{addr}",
    )


def test_list_host_flows_tool(fake_mcp, ctx):
    cap = build()
    cap.register_tools(fake_mcp, ctx)

    flows = fake_mcp.tools["list_host_flows"]()
    by_direction = {f["direction"]: f for f in flows}
    assert set(by_direction) == {"active", "passive"}

    passive = by_direction["passive"]
    assert passive["local"] == {"addr": "localhost", "port": "80"}
    assert passive["peer"] == {"addr": "10.0.0.9", "port": "many"}
    assert passive["stat"]["total_inbound_packets"] == 10
    assert passive["stat"]["total_outbound_bytes"] == 6000

    status = cap.status()
    assert status["passes"] == 1
    assert status["last_stats"]["inserted"] == 3
    assert status["last_stats"]["skipped"] == 1


def test_active_only_skips_listening_port_lookup(fake_mcp, ctx):
    def no_lookup():
        raise AssertionError("listening ports should not be needed")

    cap = ConntrackProcCapability(local_addrs=lambda: ["10.0.0.1"], listening_ports=no_lookup)
    cap.register_tools(fake_mcp, ctx)

    flows = fake_mcp.tools["list_host_flows"](active=True, passive=False)
    assert [f["direction"] for f in flows] == ["active"]
    assert flows[0]["peer"] == {"addr": "10.0.0.2", "port": "38205"}


def test_explicit_ports_override_listening_ports(ctx):
    cap = build(listening=("22",))
    cap._ctx = ctx
    assert cap.filter_ports(True, passive_ports=["80"]) == FilterPorts.of(passive=["80"])
    assert cap.filter_ports(True) == FilterPorts.of(passive=["22"])
    assert cap.filter_ports(False) == FilterPorts()


def test_resolve_replaces_peer_addr(fake_mcp, ctx):
    cap = build()
    cap.register_tools(fake_mcp, ctx)
    flows = fake_mcp.tools["list_host_flows"](active=True, passive=False, resolve=True)
    assert flows[0]["peer"]["addr"] == "host-10.0.0.2"


def test_conntrack_source_tool(fake_mcp, ctx, table_file):
    cap = build()
    cap.register_tools(fake_mcp, ctx)
    assert fake_mcp.tools["conntrack_source"]() == str(table_file)


def test_missing_table_is_read_error(fake_mcp, ctx, tmp_path):
    ctx.config.proc_paths = (str(tmp_path / "missing"),)
    cap = build()
    cap.register_tools(fake_mcp, ctx)
    assert fake_mcp.tools["conntrack_source"]() == ""
    with pytest.raises(ReadError):
        fake_mcp.tools["list_host_flows"]()


def test_failed_passes_are_counted(fake_mcp, ctx, tmp_path):
    def no_addrs():
        raise LocalAddressLookupError("interfaces unavailable")

    def no_ports():
        raise LocalAddressLookupError("sockets unavailable")

    cap = ConntrackProcCapability(local_addrs=no_addrs, listening_ports=no_ports)
    cap.register_tools(fake_mcp, ctx)

    with pytest.raises(LocalAddressLookupError):
        fake_mcp.tools["list_host_flows"](active=True, passive=False)
    assert cap.status()["failures"] == 1
    assert cap.status()["last_error"] == "interfaces unavailable"

    with pytest.raises(LocalAddressLookupError):
        fake_mcp.tools["list_host_flows"]()
    assert cap.status()["failures"] == 2

    ctx.config.proc_paths = (str(tmp_path / "missing"),)
    with pytest.raises(ReadError):
        fake_mcp.tools["list_host_flows"](active=True, passive=False)
    status = cap.status()
    assert status["failures"] == 3
    assert status["passes"] == 0
    assert "Please load conntrack module" in status["last_error"]

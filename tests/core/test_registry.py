import pytest

from conntrack_flow_mcp.core.registry import CapabilityRegistry


def test_registry_loads_capability_import():
    reg = CapabilityRegistry()
    reg.load_from_import_paths(
        ["conntrack_flow_mcp.capabilities.conntrack_proc.capability:build_capability"]
    )
    assert "conntrack_proc" in reg.list()


def test_registry_rejects_duplicates_and_bad_paths():
    reg = CapabilityRegistry()
    path = "conntrack_flow_mcp.capabilities.conntrack_proc.capability:build_capability"
    reg.load_from_import_paths([path])
    with pytest.raises(ValueError):
        reg.load_from_import_paths([path])
    with pytest.raises(ValueError):
        reg.load_from_import_paths(["conntrack_flow_mcp.capabilities.conntrack_proc.capability"])
    with pytest.raises(KeyError):
        reg.get("missing")

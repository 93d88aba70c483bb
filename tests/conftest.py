import pytest

from conntrack_flow_mcp.core.capability_base import CapabilityContext
from conntrack_flow_mcp.core.config import ConntrackConfig
from tests.conntrack_lines import UDP_LINE, UNREPLIED_LINE, FakeMCP, passive_line


@pytest.fixture
def fake_mcp():
    return FakeMCP()


@pytest.fixture
def table_file(tmp_path):
    path = tmp_path / "ip_conntrack"
    lines = [UNREPLIED_LINE, passive_line(50001), passive_line(50002), UDP_LINE, ""]
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def config(table_file):
    return ConntrackConfig(capabilities=[], proc_paths=(str(table_file),))


@pytest.fixture
def ctx(config):
    def log(msg: str) -> None:
        pass
    return CapabilityContext(config=config, log=log)

from conntrack_flow_mcp.capabilities.conntrack_proc.classifier import classify, to_host_flow
from conntrack_flow_mcp.capabilities.conntrack_proc.decoder import decode_line
from conntrack_flow_mcp.core.config import FilterPorts
from conntrack_flow_mcp.core.models import FlowDirection
from tests.conntrack_lines import ASSURED_LINE, UNREPLIED_LINE, passive_line


def test_active_from_original_source():
    rec = decode_line(UNREPLIED_LINE)
    cls = classify(rec, ["10.0.0.1"], FilterPorts())
    assert cls.direction is FlowDirection.ACTIVE
    assert (cls.remote_addr, cls.remote_port) == ("10.0.0.2", "38205")

    flow = to_host_flow(rec, cls)
    assert flow.key() == (FlowDirection.ACTIVE, "10.0.0.2", "38205")
    assert (flow.stat.total_inbound_packets, flow.stat.total_inbound_bytes) == (0, 0)
    assert (flow.stat.total_outbound_packets, flow.stat.total_outbound_bytes) == (1, 52)
    assert str(flow.local) == "localhost:many"


def test_active_port_filter_rejects_other_ports():
    rec = decode_line(UNREPLIED_LINE)
    cls = classify(rec, ["10.0.0.1"], FilterPorts.of(active=["3306"]))
    assert cls.direction is FlowDirection.UNKNOWN
    assert to_host_flow(rec, cls) is None


def test_active_from_reply_destination():
    # NATed connection: original source is not local, the reply comes back to us
    line = (
        "tcp      6 86399 ESTABLISHED src=192.168.1.5 dst=10.0.0.30 sport=40001 dport=443 packets=4 bytes=400 "
        "src=10.0.0.30 dst=10.0.0.1 sport=443 dport=40001 packets=3 bytes=2000 [ASSURED] mark=0 use=1"
    )
    rec = decode_line(line)
    cls = classify(rec, ["10.0.0.1"], FilterPorts.of(active=["443"]))
    assert cls.direction is FlowDirection.ACTIVE
    assert (cls.remote_addr, cls.remote_port) == ("10.0.0.30", "443")


def test_passive_uses_local_destination_port():
    rec = decode_line(passive_line(50001))
    cls = classify(rec, ["10.0.0.1"], FilterPorts.of(passive=["80"]))
    assert cls.direction is FlowDirection.PASSIVE
    assert cls.remote_addr == "10.0.0.9"
    assert cls.local_port == "80"

    flow = to_host_flow(rec, cls)
    assert flow.key() == (FlowDirection.PASSIVE, "80", "10.0.0.9")
    assert flow.peer.port == "many"
    # original tuple is what the client sent us
    assert (flow.stat.total_inbound_packets, flow.stat.total_inbound_bytes) == (5, 400)
    assert (flow.stat.total_outbound_packets, flow.stat.total_outbound_bytes) == (4, 3000)


def test_passive_from_reply_source():
    # DNATed to us: only the reply tuple names the local address
    line = (
        "tcp      6 431999 ESTABLISHED src=10.0.0.9 dst=203.0.113.7 sport=50001 dport=8080 packets=2 bytes=100 "
        "src=10.0.0.1 dst=10.0.0.9 sport=80 dport=50001 packets=2 bytes=900 [ASSURED] mark=0 use=1"
    )
    rec = decode_line(line)
    cls = classify(rec, ["10.0.0.1"], FilterPorts.of(active=["22"], passive=["80"]))
    assert cls.direction is FlowDirection.PASSIVE
    assert (cls.remote_addr, cls.local_port) == ("10.0.0.9", "80")


def test_empty_passive_filter_accepts_no_passive_flow():
    rec = decode_line(passive_line(50001))
    cls = classify(rec, ["10.0.0.1"], FilterPorts())
    assert cls.direction is FlowDirection.UNKNOWN


def test_foreign_record_is_unknown():
    rec = decode_line(ASSURED_LINE)
    cls = classify(rec, ["10.0.0.1"], FilterPorts.of(passive=["443"]))
    assert cls.direction is FlowDirection.UNKNOWN


def test_first_local_address_wins():
    # both ends are local; the order of addresses decides the direction
    rec = decode_line(ASSURED_LINE)
    fports = FilterPorts.of(passive=["443"])

    first = classify(rec, ["10.0.0.10", "10.0.0.11"], fports)
    assert first.direction is FlowDirection.ACTIVE
    assert (first.remote_addr, first.remote_port) == ("10.0.0.11", "443")

    second = classify(rec, ["10.0.0.11", "10.0.0.10"], fports)
    assert second.direction is FlowDirection.PASSIVE
    assert (second.remote_addr, second.local_port) == ("10.0.0.10", "443")

from __future__ import annotations
import argparse
import json
import sys
from typing import Callable, List, Optional, TextIO

from conntrack_flow_mcp import __version__
from conntrack_flow_mcp.capabilities.conntrack_proc.entries import (
    find_proc_path,
    parse_entries,
    read_entries,
    resolve_filter_ports,
)
from conntrack_flow_mcp.core.config import DEFAULT_PROC_PATHS, FilterPorts
from conntrack_flow_mcp.core.errors import ConntrackError
from conntrack_flow_mcp.core.logging_config import setup_logging
from conntrack_flow_mcp.core.models import FlowDirection, HostFlow, select_directions
from conntrack_flow_mcp.core.netutil import local_ipv4_addrs, local_listening_ports, resolve_addr
from conntrack_flow_mcp.core.store import FlowStore

EXIT_OK = 0
EXIT_FLAG_PARSE_ERROR = 11
EXIT_PARSE_CONNTRACK_ERROR = 13
EXIT_PRINT_ERROR = 14

HEADER = (
    "Local Address:Port", "<-->", "Peer Address:Port", "FQDN",
    "Inpkts", "Inbytes", "Outpkts", "Outbytes",
)
COLUMN_GAP = "  "

DESCRIPTION = "Print aggregated connections between localhost and other hosts"


class _FlagError(Exception):
    pass


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise _FlagError(message)


def _port(value: str) -> str:
    if not (value.isascii() and value.isdigit()):
        raise argparse.ArgumentTypeError(f"{value} is not number")
    return value


def build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(prog="lsconntrack", description=DESCRIPTION)
    p.add_argument("-a", "--active", action="store_true",
                   help="print aggregated connections localhost to destination")
    p.add_argument("-p", "--passive", action="store_true",
                   help="print aggregated connections source to localhost (adopt listening ports as default)")
    p.add_argument("--aport", "--active-port", dest="active_ports", action="append", type=_port, default=[],
                   metavar="PORT", help="only active connections to PORT (repeatable)")
    p.add_argument("--pport", "--passive-port", dest="passive_ports", action="append", type=_port, default=[],
                   metavar="PORT", help="only passive connections on PORT (repeatable)")
    p.add_argument("-n", "--numeric", action="store_true",
                   help="show numerical addresses instead of trying to determine symbolic host names")
    p.add_argument("--stdin", action="store_true", help="input conntrack entries via stdin")
    p.add_argument("--json", action="store_true", help="print results as json format")
    p.add_argument("-v", "--version", action="store_true", help="print version")
    p.add_argument("--log-level", default="WARNING", help="logging level for diagnostics on stderr")
    return p


class CLI:
    """
    lsconntrack command. run() returns the process exit code.

    Streams and host lookups are injectable so the command can be driven
    from tests with a fixture table.
    """

    def __init__(
        self,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
        stdin: Optional[TextIO] = None,
        proc_paths=DEFAULT_PROC_PATHS,
        local_addrs: Callable[[], List[str]] = local_ipv4_addrs,
        listening_ports: Callable[[], List[str]] = local_listening_ports,
        resolver: Callable[[str], str] = resolve_addr,
    ):
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self.stdin = stdin or sys.stdin
        self.proc_paths = proc_paths
        self.local_addrs = local_addrs
        self.listening_ports = listening_ports
        self.resolver = resolver

    def run(self, argv: List[str]) -> int:
        parser = build_parser()
        try:
            args = parser.parse_args(argv)
        except _FlagError as e:
            parser.print_usage(self.err)
            print(f"lsconntrack: error: {e}", file=self.err)
            return EXIT_FLAG_PARSE_ERROR
        except SystemExit as e:
            # --help
            return EXIT_OK if not e.code else EXIT_FLAG_PARSE_ERROR

        setup_logging(args.log_level, stream=self.err)

        if args.version:
            print(f"lsconntrack version {__version__}", file=self.err)
            return EXIT_OK

        directions = select_directions(args.active, args.passive)

        try:
            fports = resolve_filter_ports(
                FlowDirection.PASSIVE in directions,
                args.active_ports,
                args.passive_ports,
                self.listening_ports,
            )
            store = self._parse(args.stdin, fports)
        except ConntrackError as e:
            print(f"lsconntrack: {e}", file=self.err)
            return EXIT_PARSE_CONNTRACK_ERROR

        try:
            if args.json:
                self.print_json(store, directions)
            else:
                self.print_table(store, directions, numeric=args.numeric)
        except (OSError, ValueError) as e:
            print(f"lsconntrack: {e}", file=self.err)
            return EXIT_PRINT_ERROR

        return EXIT_OK

    def _parse(self, use_stdin: bool, fports: FilterPorts) -> FlowStore:
        local_addrs = self.local_addrs()
        if use_stdin:
            return parse_entries(self.stdin, local_addrs, fports)

        path = find_proc_path(self.proc_paths)
        if path is None:
            raise ConntrackError("not found conntrack entries path: Please load conntrack module")
        return read_entries(path, local_addrs, fports)

    def _row(self, flow: HostFlow, numeric: bool) -> List[str]:
        hostname = "" if numeric else self.resolver(flow.peer.addr)
        if hostname == flow.peer.addr:
            hostname = ""
        s = flow.stat
        return [
            str(flow.local), "-->", str(flow.peer), hostname,
            str(s.total_inbound_packets), str(s.total_inbound_bytes),
            str(s.total_outbound_packets), str(s.total_outbound_bytes),
        ]

    def print_table(self, store: FlowStore, directions, numeric: bool = False) -> None:
        rows = [list(HEADER)] + [self._row(flow, numeric) for flow in store.flows(directions)]
        widths = [max(len(row[i]) for row in rows) for i in range(len(HEADER))]
        for row in rows:
            line = COLUMN_GAP.join(cell.ljust(w) for cell, w in zip(row, widths))
            print(line.rstrip(), file=self.out)

    def print_json(self, store: FlowStore, directions) -> None:
        json.dump(store.to_list(directions), self.out)
        self.out.write("\n")


def main(argv: Optional[List[str]] = None) -> None:
    sys.exit(CLI().run(sys.argv[1:] if argv is None else argv))


if __name__ == "__main__":
    main()

from __future__ import annotations
import ipaddress
import logging
import socket
from typing import List

import psutil

from .errors import LocalAddressLookupError

log = logging.getLogger(__name__)


def local_ipv4_addrs() -> List[str]:
    """
    Return the host's non loopback IPv4 addresses, sorted.
    """
    try:
        if_addrs = psutil.net_if_addrs()
    except (psutil.Error, OSError) as e:
        raise LocalAddressLookupError(f"failed to list interface addresses: {e}") from e

    addrs = set()
    for snics in if_addrs.values():
        for snic in snics:
            if snic.family != socket.AF_INET:
                continue
            try:
                ip = ipaddress.IPv4Address(snic.address)
            except ValueError:
                continue
            if ip.is_loopback:
                continue
            addrs.add(str(ip))
    return sorted(addrs)


def local_listening_ports() -> List[str]:
    """
    Return the TCP ports the host is listening on, as sorted decimal strings.
    """
    try:
        conns = psutil.net_connections(kind="tcp")
    except (psutil.Error, OSError) as e:
        raise LocalAddressLookupError(f"failed to get local listening ports: {e}") from e

    ports = {c.laddr.port for c in conns if c.status == psutil.CONN_LISTEN and c.laddr}
    return [str(p) for p in sorted(ports)]


def resolve_addr(addr: str) -> str:
    """
    Reverse resolve addr. Returns addr unchanged when there is no name.
    """
    try:
        name, _, _ = socket.gethostbyaddr(addr)
    except (OSError, UnicodeError) as e:
        log.debug("reverse lookup failed for %s: %s", addr, e)
        return addr
    return name.rstrip(".")

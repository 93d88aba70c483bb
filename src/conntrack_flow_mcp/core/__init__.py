"""
Core modules that must remain source neutral.

Keep conntrack line parsing and kernel format quirks out of this package.
"""

from .models import AddrPort, FlowDirection, HostFlow, HostFlowStat
from .store import FlowStore
from .errors import ConntrackError, LocalAddressLookupError, MalformedLineError, ReadError

__all__ = [
    "AddrPort",
    "FlowDirection",
    "HostFlow",
    "HostFlowStat",
    "FlowStore",
    "ConntrackError",
    "LocalAddressLookupError",
    "MalformedLineError",
    "ReadError",
]

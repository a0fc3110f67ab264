"""udpdup: duplicate incoming UDP packets to one or more UDP servers.

Useful for feeding one syslog stream to several independent collectors:
  - One inbound UDP socket, bound to all interfaces (dual-stack where available)
  - One independent send per configured destination, on a bounded thread pool
  - Per-destination failure isolation; a bad destination never stalls the rest
  - JSON config.json for topology, UDPDUP_* environment settings for the process
"""

__version__ = "1.0.0"
__description__ = "Duplicate incoming UDP packets to one or more UDP servers"

from udpdup.core.destination_table import DestinationTable
from udpdup.core.engine import FanOutEngine
from udpdup.models.config import EngineConfig

__all__ = ["DestinationTable", "EngineConfig", "FanOutEngine", "__version__"]

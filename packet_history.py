"""
Cache of raw object tables keyed by packet number, used as delta bases.
"""

import logging
from collections import OrderedDict
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 64


class PacketHistory:
    """Raw object tables of recently decoded packets.

    Only the packet named as `previous_packet_number` is ever looked up, so the
    oldest tables are dropped once more than `max_packets` are held. Pass
    max_packets=None to keep every packet.
    """

    def __init__(self, max_packets: Optional[int] = DEFAULT_HISTORY_SIZE):
        if max_packets is not None and max_packets < 1:
            raise ValueError("max_packets must be at least 1")
        self.max_packets = max_packets
        self._tables: "OrderedDict[int, List]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, packet_number: int) -> bool:
        return packet_number in self._tables

    def get(self, packet_number: int) -> Optional[List]:
        return self._tables.get(packet_number)

    def insert(self, packet_number: int, table: List):
        self._tables[packet_number] = table
        self._tables.move_to_end(packet_number)
        if self.max_packets is None:
            return
        while len(self._tables) > self.max_packets:
            dropped, _ = self._tables.popitem(last=False)
            logger.debug("Evicted packet %d from history", dropped)

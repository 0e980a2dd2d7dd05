"""
Record framing for HQM replay files.

Layout (multi-byte aligned integers are little-endian):

    u32 version | u32 declared length | record...

    record: u8 marker (5) | 1 bit game over | 8 bits red score
            | 8 bits blue score | 16 bits clock | 16 bits goal message timer
            | 8 bits period | object table | message backlog

After each record the reader skips to the next byte, a whole byte even when
already aligned.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

from bitreader import BitReader
from message_codec import Message, read_messages
from object_codec import GameObject, RawObject, read_objects
from packet_history import PacketHistory
from replay_errors import InvalidHeaderError

logger = logging.getLogger(__name__)

RECORD_MARKER = 5


@dataclass(frozen=True)
class FileHeader:
    version: int
    declared_length: int


@dataclass(frozen=True)
class PacketHeader:
    game_over: bool
    red_score: int
    blue_score: int
    clock: int
    goal_message_timer: int
    period: int
    packet_number: int
    previous_packet_number: int
    message_count: int
    message_start: int


@dataclass
class Packet:
    header: PacketHeader
    raw_objects: List[RawObject]
    objects: List[GameObject]
    messages: List[Message]

    def message_positions(self) -> range:
        """Absolute stream positions of the backlog messages, in order."""
        return range(self.header.message_start, self.header.message_start + len(self.messages))


def read_file_header(reader: BitReader) -> FileHeader:
    return FileHeader(
        version=reader.read_u32_aligned(),
        declared_length=reader.read_u32_aligned(),
    )


def read_packet(reader: BitReader, history: PacketHistory, *, validate_marker: bool = False) -> Packet:
    """Decode one record. The reader is left at the end of the record's last bit."""
    offset = reader.pos
    marker = reader.read_byte_aligned()
    if marker != RECORD_MARKER:
        if validate_marker:
            raise InvalidHeaderError(f"Record marker is {marker}, expected {RECORD_MARKER}", offset)
        logger.warning("Record at byte %d has marker %d, expected %d", offset, marker, RECORD_MARKER)

    game_over = reader.read_bits(1) == 1
    red_score = reader.read_bits(8)
    blue_score = reader.read_bits(8)
    clock = reader.read_bits(16)
    goal_message_timer = reader.read_bits(16)
    period = reader.read_bits(8)

    snapshot = read_objects(reader, history)
    message_start, messages = read_messages(reader)

    header = PacketHeader(
        game_over=game_over,
        red_score=red_score,
        blue_score=blue_score,
        clock=clock,
        goal_message_timer=goal_message_timer,
        period=period,
        packet_number=snapshot.packet_number,
        previous_packet_number=snapshot.previous_packet_number,
        message_count=len(messages),
        message_start=message_start,
    )
    return Packet(header, snapshot.raw, snapshot.objects, messages)


def iter_packets(
    data: bytes,
    history: Optional[PacketHistory] = None,
    *,
    strict: bool = False,
) -> Iterator[Packet]:
    """Yield every packet of a replay buffer in file order.

    The file header is skipped; use read_file_header to inspect it. A strict
    decode raises on truncated data and on bad record markers.
    """
    if history is None:
        history = PacketHistory()
    reader = BitReader(data, strict=strict)
    read_file_header(reader)

    count = 0
    while not reader.at_end:
        yield read_packet(reader, history, validate_marker=strict)
        reader.next_record()
        count += 1
    logger.debug("Decoded %d packets", count)

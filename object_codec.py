"""
Decoding of the 32-slot object table carried by every packet.

Each present slot holds a skater or a puck. Every field is delta-compressed
against the same slot of the previous packet when that slot held an object of
the same type. The raw table is stored in the packet history and a converted
view (meters, radians, rotation matrices) is handed back to the caller.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import numpy as np

from bitreader import BitReader
from packet_history import PacketHistory
from replay_errors import MissingReferenceError, UnknownObjectTypeError
from rotation import convert_matrix

logger = logging.getLogger(__name__)

OBJECT_SLOTS = 32

OBJECT_TYPE_SKATER = 0
OBJECT_TYPE_PUCK = 1

POSITION_BITS = 17
ROTATION_BITS = 31
STICK_POSITION_BITS = 13
STICK_ROTATION_BITS = 25
BODY_ANGLE_BITS = 16

# Fixed point: 1024 units per meter
POSITION_SCALE = 1024.0
# Stick position is sent relative to the skater, shifted to stay non-negative
STICK_OFFSET = 4.0
ANGLE_CENTER = 16384.0
ANGLE_SCALE = 8192.0


@dataclass(frozen=True)
class RawPuck:
    pos: Tuple[int, int, int]
    rot: Tuple[int, int]


@dataclass(frozen=True)
class RawSkater:
    pos: Tuple[int, int, int]
    rot: Tuple[int, int]
    stick_pos: Tuple[int, int, int]
    stick_rot: Tuple[int, int]
    head_rot: int
    body_rot: int


RawObject = Optional[Union[RawPuck, RawSkater]]


@dataclass(frozen=True, eq=False)
class Puck:
    pos: np.ndarray  # meters
    rot: np.ndarray  # 3x3 rotation matrix

    kind = 'puck'

    def to_dict(self) -> dict:
        return {
            'type': self.kind,
            'pos': self.pos.tolist(),
            'rot': self.rot.tolist(),
        }


@dataclass(frozen=True, eq=False)
class Skater:
    pos: np.ndarray
    rot: np.ndarray
    stick_pos: np.ndarray
    stick_rot: np.ndarray
    head_rot: float  # radians
    body_rot: float

    kind = 'skater'

    def to_dict(self) -> dict:
        return {
            'type': self.kind,
            'pos': self.pos.tolist(),
            'rot': self.rot.tolist(),
            'stick_pos': self.stick_pos.tolist(),
            'stick_rot': self.stick_rot.tolist(),
            'head_rot': self.head_rot,
            'body_rot': self.body_rot,
        }


GameObject = Optional[Union[Puck, Skater]]


@dataclass
class ObjectSnapshot:
    packet_number: int
    previous_packet_number: int
    raw: List[RawObject]
    objects: List[GameObject]


def _read_vector(reader: BitReader, bits: int, old: Optional[tuple], count: int) -> tuple:
    return tuple(
        reader.read_delta(bits, old[i] if old is not None else None)
        for i in range(count)
    )


def _read_skater(reader: BitReader, old: Optional[RawSkater]) -> RawSkater:
    pos = _read_vector(reader, POSITION_BITS, old.pos if old else None, 3)
    rot = _read_vector(reader, ROTATION_BITS, old.rot if old else None, 2)
    stick_pos = _read_vector(reader, STICK_POSITION_BITS, old.stick_pos if old else None, 3)
    stick_rot = _read_vector(reader, STICK_ROTATION_BITS, old.stick_rot if old else None, 2)
    head_rot = reader.read_delta(BODY_ANGLE_BITS, old.head_rot if old else None)
    body_rot = reader.read_delta(BODY_ANGLE_BITS, old.body_rot if old else None)
    return RawSkater(pos, rot, stick_pos, stick_rot, head_rot, body_rot)


def _read_puck(reader: BitReader, old: Optional[RawPuck]) -> RawPuck:
    pos = _read_vector(reader, POSITION_BITS, old.pos if old else None, 3)
    rot = _read_vector(reader, ROTATION_BITS, old.rot if old else None, 2)
    return RawPuck(pos, rot)


def _scale_position(raw: Tuple[int, int, int]) -> np.ndarray:
    return np.array(raw, dtype=np.float32) / np.float32(POSITION_SCALE)


def _scale_angle(raw: int) -> float:
    return float((np.float32(raw) - np.float32(ANGLE_CENTER)) / np.float32(ANGLE_SCALE))


def convert_object(raw: RawObject) -> GameObject:
    """Convert a raw slot into physical units."""
    if raw is None:
        return None

    pos = _scale_position(raw.pos)
    rot = convert_matrix(ROTATION_BITS, *raw.rot)
    if isinstance(raw, RawPuck):
        return Puck(pos, rot)

    stick_pos = _scale_position(raw.stick_pos) + pos - np.float32(STICK_OFFSET)
    return Skater(
        pos=pos,
        rot=rot,
        stick_pos=stick_pos,
        stick_rot=convert_matrix(STICK_ROTATION_BITS, *raw.stick_rot),
        head_rot=_scale_angle(raw.head_rot),
        body_rot=_scale_angle(raw.body_rot),
    )


def read_objects(reader: BitReader, history: PacketHistory) -> ObjectSnapshot:
    """Read the packet numbers and the object table, then record it in history."""
    packet_number = reader.read_u32_aligned()
    previous_packet_number = reader.read_u32_aligned()

    old_table = history.get(previous_packet_number)
    if old_table is None:
        logger.debug("Packet %d: previous packet %d not in history, expecting absolute fields",
                     packet_number, previous_packet_number)

    raw: List[RawObject] = []
    for slot in range(OBJECT_SLOTS):
        if reader.read_bits(1) == 0:
            raw.append(None)
            continue

        old = old_table[slot] if old_table is not None else None
        tag_offset = reader.pos
        object_type = reader.read_bits(2)
        try:
            if object_type == OBJECT_TYPE_SKATER:
                raw.append(_read_skater(reader, old if isinstance(old, RawSkater) else None))
            elif object_type == OBJECT_TYPE_PUCK:
                raw.append(_read_puck(reader, old if isinstance(old, RawPuck) else None))
            else:
                raise UnknownObjectTypeError(slot, object_type, tag_offset)
        except MissingReferenceError as e:
            raise MissingReferenceError(
                f"Packet {packet_number} slot {slot}: {e.detail}", e.offset
            ) from e

    history.insert(packet_number, raw)
    return ObjectSnapshot(
        packet_number=packet_number,
        previous_packet_number=previous_packet_number,
        raw=raw,
        objects=[convert_object(r) for r in raw],
    )

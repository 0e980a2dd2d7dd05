"""
Decoding of the message backlog (player updates, goals, chat).

Every packet retransmits a window of recent messages. This module decodes all
of them; callers drop the ones they have already seen.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from bitreader import BitReader
from replay_errors import MessageTextError, UnknownMessageTypeError

MESSAGE_PLAYER_UPDATE = 0
MESSAGE_GOAL = 1
MESSAGE_CHAT = 2

TEAM_RED = 'red'
TEAM_BLUE = 'blue'

# Player / object index meaning "nobody"
NO_INDEX = 0x3F

PLAYER_NAME_LENGTH = 31
CHAR_BITS = 7


@dataclass(frozen=True)
class PlayerUpdate:
    player_index: int
    player_name: str
    team_and_slot: Optional[Tuple[str, int]]  # (team, object slot)
    joined: bool

    kind = 'player_update'


@dataclass(frozen=True)
class Goal:
    team: str
    scorer: Optional[int]
    assist: Optional[int]

    kind = 'goal'


@dataclass(frozen=True)
class Chat:
    sender: Optional[int]  # None for server messages
    text: str

    kind = 'chat'


Message = Union[PlayerUpdate, Goal, Chat]


def _read_index(reader: BitReader) -> Optional[int]:
    value = reader.read_bits(6)
    return None if value == NO_INDEX else value


def _read_text(reader: BitReader, length: int) -> str:
    start = reader.pos
    raw = bytes(reader.read_bits(CHAR_BITS) for _ in range(length))
    try:
        text = raw.decode('utf-8')
    except UnicodeDecodeError as e:
        raise MessageTextError(f"Invalid text {raw!r}: {e}", start) from e
    return text.strip('\x00')


def _read_player_update(reader: BitReader) -> PlayerUpdate:
    player_index = reader.read_bits(6)
    joined = reader.read_bits(1) == 1
    team_code = reader.read_bits(2)
    slot = _read_index(reader)
    name = _read_text(reader, PLAYER_NAME_LENGTH)

    team = {0: TEAM_RED, 1: TEAM_BLUE}.get(team_code)
    team_and_slot = (team, slot) if team is not None and slot is not None else None
    return PlayerUpdate(player_index, name, team_and_slot, joined)


def _read_goal(reader: BitReader) -> Goal:
    team = TEAM_RED if reader.read_bits(2) == 0 else TEAM_BLUE
    scorer = _read_index(reader)
    assist = _read_index(reader)
    return Goal(team, scorer, assist)


def _read_chat(reader: BitReader) -> Chat:
    sender = _read_index(reader)
    length = reader.read_bits(6)
    return Chat(sender, _read_text(reader, length))


_READERS = {
    MESSAGE_PLAYER_UPDATE: _read_player_update,
    MESSAGE_GOAL: _read_goal,
    MESSAGE_CHAT: _read_chat,
}


def read_message(reader: BitReader) -> Message:
    """Read one tagged message."""
    offset = reader.pos
    tag = reader.read_bits(6)
    read = _READERS.get(tag)
    if read is None:
        raise UnknownMessageTypeError(tag, offset)
    return read(reader)


def read_messages(reader: BitReader) -> Tuple[int, List[Message]]:
    """Read a backlog: 16-bit count, 16-bit start position, then the messages.

    Returns (start position, messages). The message at index i has absolute
    position start + i.
    """
    count = reader.read_bits(16)
    start = reader.read_bits(16)
    return start, [read_message(reader) for _ in range(count)]

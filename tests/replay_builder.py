"""Test helpers that write synthetic replay data, mirroring the decoder's layout."""

from typing import List, Optional, Sequence


class BitWriter:
    """Writes values least-significant bit first, like the replay stream."""

    def __init__(self):
        self.bits: List[int] = []

    def write_bits(self, num_bits: int, value: int):
        for i in range(num_bits):
            self.bits.append((value >> i) & 1)

    def write_signed(self, num_bits: int, value: int):
        self.write_bits(num_bits, value & ((1 << num_bits) - 1))

    def align(self):
        while len(self.bits) % 8:
            self.bits.append(0)

    def next_record(self):
        if len(self.bits) % 8:
            self.align()
        else:
            self.bits.extend([0] * 8)

    def write_u8(self, value: int):
        self.align()
        self.write_bits(8, value)

    def write_u32(self, value: int):
        self.align()
        self.write_bits(32, value)

    def write_absolute(self, num_bits: int, value: int):
        self.write_bits(2, 3)
        self.write_bits(num_bits, value)

    def write_delta(self, mode: int, diff: int):
        self.write_bits(2, mode)
        self.write_signed({0: 3, 1: 6, 2: 12}[mode], diff)

    def write_text(self, text: str, length: Optional[int] = None):
        data = text.encode('ascii')
        if length is not None:
            data = data.ljust(length, b'\x00')
        for b in data:
            self.write_bits(7, b)

    def to_bytes(self) -> bytes:
        bits = self.bits + [0] * (-len(self.bits) % 8)
        out = bytearray()
        for i in range(0, len(bits), 8):
            byte = 0
            for j in range(8):
                byte |= bits[i + j] << j
            out.append(byte)
        return bytes(out)


# Slot descriptions used by write_objects:
#   None                                  -> empty slot
#   ('puck', fields)                      -> fields is a list of 5 fields
#   ('skater', fields)                    -> fields is a list of 12 fields
# Each field is ('abs', value) or (mode, diff) for mode 0..2.
PUCK_WIDTHS = [17, 17, 17, 31, 31]
SKATER_WIDTHS = [17, 17, 17, 31, 31, 13, 13, 13, 25, 25, 16, 16]


def absolute_puck(pos, rot):
    return ('puck', [('abs', v) for v in list(pos) + list(rot)])


def absolute_skater(pos, rot, stick_pos, stick_rot, head_rot, body_rot):
    values = list(pos) + list(rot) + list(stick_pos) + list(stick_rot) + [head_rot, body_rot]
    return ('skater', [('abs', v) for v in values])


def write_objects(w: BitWriter, packet_number: int, previous: int, slots: Sequence):
    w.write_u32(packet_number)
    w.write_u32(previous)
    slots = list(slots) + [None] * (32 - len(slots))
    for slot in slots:
        if slot is None:
            w.write_bits(1, 0)
            continue
        w.write_bits(1, 1)
        kind, fields = slot
        if kind == 'skater':
            w.write_bits(2, 0)
            widths = SKATER_WIDTHS
        elif kind == 'puck':
            w.write_bits(2, 1)
            widths = PUCK_WIDTHS
        else:
            w.write_bits(2, kind)
            continue
        for width, (mode, value) in zip(widths, fields):
            if mode == 'abs':
                w.write_absolute(width, value)
            else:
                w.write_delta(mode, value)


def write_player_update(w: BitWriter, index: int, name: str, *, joined=True, team=0, slot=0x3F):
    w.write_bits(6, 0)
    w.write_bits(6, index)
    w.write_bits(1, 1 if joined else 0)
    w.write_bits(2, team)
    w.write_bits(6, slot)
    w.write_text(name, 31)


def write_goal(w: BitWriter, team: int, scorer: int = 0x3F, assist: int = 0x3F):
    w.write_bits(6, 1)
    w.write_bits(2, team)
    w.write_bits(6, scorer)
    w.write_bits(6, assist)


def write_chat(w: BitWriter, sender: int, text: str):
    w.write_bits(6, 2)
    w.write_bits(6, sender)
    w.write_bits(6, len(text))
    w.write_text(text)


def write_packet(
    w: BitWriter,
    packet_number: int,
    previous: int,
    slots: Sequence = (),
    messages: Sequence = (),
    message_start: int = 0,
    *,
    marker: int = 5,
    game_over: bool = False,
    red_score: int = 0,
    blue_score: int = 0,
    clock: int = 30000,
    goal_message_timer: int = 0,
    period: int = 1,
):
    """Write one record. `messages` are callables taking the writer."""
    w.write_u8(marker)
    w.write_bits(1, 1 if game_over else 0)
    w.write_bits(8, red_score)
    w.write_bits(8, blue_score)
    w.write_bits(16, clock)
    w.write_bits(16, goal_message_timer)
    w.write_bits(8, period)
    write_objects(w, packet_number, previous, slots)
    w.write_bits(16, len(messages))
    w.write_bits(16, message_start)
    for write_message in messages:
        write_message(w)
    w.next_record()


def replay_writer(version: int = 1, declared_length: int = 0) -> BitWriter:
    w = BitWriter()
    w.write_u32(version)
    w.write_u32(declared_length)
    return w

"""
Low-level bit stream reading for HQM replay files.

Values are packed least-significant bit first: a field that spans a byte
boundary takes its low-order bits from the earlier byte.
"""

from replay_errors import MissingReferenceError, TruncatedReplayError

# Delta mode -> width of the signed difference. Mode 3 is an absolute value.
DELTA_WIDTHS = {0: 3, 1: 6, 2: 12}
DELTA_ABSOLUTE = 3


def sign_extend(value: int, bits: int) -> int:
    """Interpret the low `bits` bits of value as a two's-complement number."""
    if bits > 0 and value >= (1 << (bits - 1)):
        return value - (1 << bits)
    return value


class BitReader:
    """Cursor over a byte buffer with a byte position and a bit position (0..7).

    Reads past the end of the buffer return zero bits unless the reader is
    strict, in which case they raise TruncatedReplayError.
    """

    def __init__(self, data: bytes, *, strict: bool = False):
        self.data = data
        self.pos = 0
        self.bit_pos = 0
        self.strict = strict

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def _byte_at(self, pos: int) -> int:
        if pos < len(self.data):
            return self.data[pos]
        if self.strict:
            raise TruncatedReplayError("Read past end of replay data", pos)
        return 0

    def align(self):
        """Skip to the start of the next byte unless already on a boundary."""
        if self.bit_pos > 0:
            self.bit_pos = 0
            self.pos += 1

    def next_record(self):
        """Move to the start of the next byte, even when already aligned.

        Records are separated this way in the replay stream.
        """
        self.pos += 1
        self.bit_pos = 0

    def read_byte_aligned(self) -> int:
        """Read one byte from the next byte boundary."""
        self.align()
        value = self._byte_at(self.pos)
        self.pos += 1
        return value

    def read_u16_aligned(self) -> int:
        """Read a little-endian u16 from the next byte boundary."""
        self.align()
        value = self._byte_at(self.pos) | self._byte_at(self.pos + 1) << 8
        self.pos += 2
        return value

    def read_u32_aligned(self) -> int:
        """Read a little-endian u32 from the next byte boundary."""
        self.align()
        value = 0
        for i in range(4):
            value |= self._byte_at(self.pos + i) << (8 * i)
        self.pos += 4
        return value

    def read_bits(self, num_bits: int) -> int:
        """Read an unsigned value of num_bits bits (0..32)."""
        value = 0
        bits_read = 0
        while bits_read < num_bits:
            available = 8 - self.bit_pos
            to_read = min(num_bits - bits_read, available)
            mask = (1 << to_read) - 1
            chunk = (self._byte_at(self.pos) >> self.bit_pos) & mask
            value |= chunk << bits_read
            bits_read += to_read

            if to_read == available:
                self.bit_pos = 0
                self.pos += 1
            else:
                self.bit_pos += to_read
        return value

    def read_bits_signed(self, num_bits: int) -> int:
        return sign_extend(self.read_bits(num_bits), num_bits)

    def read_delta(self, full_width: int, reference=None) -> int:
        """Read a delta-compressed field.

        A 2-bit mode selects a 3, 6 or 12-bit signed difference from
        `reference` (clamped at zero), or an absolute `full_width`-bit value.
        """
        start = self.pos
        mode = self.read_bits(2)
        if mode == DELTA_ABSOLUTE:
            return self.read_bits(full_width)

        diff = self.read_bits_signed(DELTA_WIDTHS[mode])
        if reference is None:
            raise MissingReferenceError(
                f"Delta mode {mode} for a {full_width}-bit field without a previous value",
                start,
            )
        return max(0, reference + diff)

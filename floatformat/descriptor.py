#
# Static layout parameters of the emulated floating point formats
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import sys
from math import floor, log2
from typing import NamedTuple

from .bigfloat import RoundingTarget
from .errors import UnsupportedFormatError

__all__ = ('FormatDescriptor', 'STANDARD_LAYOUTS', 'supports_native_fast_path')


log2_10 = log2(10)

# Keyed by byte width: (exponent_bits, mantissa_bits, explicit_leading_bit).  mantissa_bits
# counts the stored fraction bits only; the 80-bit x87 format additionally stores its
# integer bit.
STANDARD_LAYOUTS = {
    4: (8, 23, False),
    8: (11, 52, False),
    10: (15, 63, True),
    16: (15, 112, False),
}

# The host's Python float is an IEEE double on every platform we care about, and struct
# packs 'f' as an IEEE single.  Guard anyway so an exotic host takes the slow path.
_host_is_ieee = (sys.float_info.mant_dig == 53 and sys.float_info.max_exp == 1024
                 and sys.float_info.min_exp == -1021)
_native_layouts = {(4, 8, 23, False), (8, 11, 52, False)} if _host_is_ieee else set()


class FormatDescriptor(NamedTuple):
    '''The layout of a binary floating point format of a given byte width.  Only instantiate
    through the from_ and for_ constructors.

    The encoding is, from the MSB, a sign bit, a biased exponent field of exponent_bits,
    an integer bit if explicit_leading_bit, and a fraction field of mantissa_bits.

    precision is the number of bits in the significand including the integer bit.

    e_max is the largest e such that 2^e is representable; e_min = 1 - e_max is the
    smallest e such that 2^e is not a subnormal number.  The smallest subnormal number is
    then 2^(e_min - (precision - 1)).
    '''

    # These four attributes determine the rest, which are pre-calculated for efficiency
    byte_width: int
    exponent_bits: int
    mantissa_bits: int
    explicit_leading_bit: bool

    exponent_bias: int
    precision: int
    e_max: int
    e_min: int
    bit_width: int
    int_bit: int
    quiet_bit: int
    max_significand: int
    max_exponent_field: int
    decimal_precision: int

    @classmethod
    def from_layout(cls, byte_width, exponent_bits, mantissa_bits, explicit_leading_bit=False):
        '''Make a FormatDescriptor with pre-calculated values.  All constructors ultimately
        call this one.'''
        if not all(isinstance(arg, int) for arg in (byte_width, exponent_bits, mantissa_bits)):
            raise TypeError('byte_width, exponent_bits and mantissa_bits must be integers')
        if exponent_bits < 2 or mantissa_bits < 2:
            raise UnsupportedFormatError('exponent and mantissa need at least 2 bits each')
        explicit_leading_bit = bool(explicit_leading_bit)
        bit_width = 1 + exponent_bits + mantissa_bits + explicit_leading_bit
        if bit_width != byte_width * 8:
            raise UnsupportedFormatError(f'a layout of {bit_width} bits does not fill '
                                         f'{byte_width} bytes')

        exponent_bias = (1 << (exponent_bits - 1)) - 1
        precision = mantissa_bits + 1
        int_bit = 1 << mantissa_bits
        quiet_bit = 1 << (mantissa_bits - 1)
        max_significand = (1 << precision) - 1
        max_exponent_field = (1 << exponent_bits) - 1

        # This least number of significant digits to convert to and from decimal correctly
        decimal_precision = 2 + floor(precision / log2_10)

        return cls(byte_width, exponent_bits, mantissa_bits, explicit_leading_bit,
                   exponent_bias, precision, exponent_bias, 1 - exponent_bias, bit_width,
                   int_bit, quiet_bit, max_significand, max_exponent_field,
                   decimal_precision)

    @classmethod
    def for_width(cls, byte_width):
        '''The standard format of the given byte width.'''
        layout = STANDARD_LAYOUTS.get(byte_width) if type(byte_width) is int else None
        if layout is None:
            widths = ', '.join(str(width) for width in STANDARD_LAYOUTS)
            raise UnsupportedFormatError(f'unsupported float byte width {byte_width!r}; '
                                         f'supported widths are {widths}')
        return cls.from_layout(byte_width, *layout)

    @property
    def target(self):
        '''The precision and exponent range results in this format are rounded to.'''
        return RoundingTarget(self.precision, self.e_min, self.e_max)

    def supports_native_fast_path(self):
        '''Return True if this layout is that of a host float type, so host arithmetic
        rounds exactly as this format requires.'''
        return (self.byte_width, self.exponent_bits, self.mantissa_bits,
                self.explicit_leading_bit) in _native_layouts

    def __repr__(self):
        return (f'FormatDescriptor(byte_width={self.byte_width}, '
                f'exponent_bits={self.exponent_bits}, mantissa_bits={self.mantissa_bits}, '
                f'explicit_leading_bit={self.explicit_leading_bit})')


def supports_native_fast_path(byte_width):
    '''Return True if the standard format of the given byte width can use host arithmetic.'''
    layout = STANDARD_LAYOUTS.get(byte_width) if type(byte_width) is int else None
    return layout is not None and (byte_width, *layout) in _native_layouts

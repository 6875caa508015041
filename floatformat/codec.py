#
# Conversion between BigFloat values and fixed-width binary encodings
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

from math import copysign, inf
from struct import Struct

from .bigfloat import BigFloat, Category
from .descriptor import FormatDescriptor

__all__ = ('encode_bits', 'decode_bits', 'encode', 'decode', 'host_endianness',
           'from_host_float', 'to_host_float', 'bits_to_host_float', 'round_to_single')


pack_double = Struct('=d').pack
unpack_double = Struct('=d').unpack
pack_single = Struct('=f').pack
unpack_single = Struct('=f').unpack

host_endianness = 'little' if pack_double(-0.0)[-1] == 0x80 else 'big'

_host_double = FormatDescriptor.for_width(8)


def encode_bits(value, descriptor):
    '''Return the encoding of value as an unsigned integer of descriptor.bit_width bits.

    Finite values are first correctly rounded to the format, so values too large for it
    encode as infinities and values too small as zeroes.  NaN payloads lose low-order
    bits if the fraction field is too narrow to hold them.
    '''
    if not isinstance(value, BigFloat):
        raise TypeError('encode_bits requires a BigFloat')
    value = value.round(descriptor.target)

    mantissa_bits = descriptor.mantissa_bits
    int_bit = descriptor.int_bit
    category = value.category

    if category == Category.ZERO:
        exponent_field, fraction = 0, 0
    elif category == Category.INFINITE:
        exponent_field, fraction = descriptor.max_exponent_field, 0
    elif category == Category.NAN:
        exponent_field = descriptor.max_exponent_field
        fraction = _nan_fraction(value.payload, mantissa_bits)
    elif value.exponent >= descriptor.e_min:
        # Normal.  Widen the significand to the full precision and drop the integer bit.
        exponent_field = value.exponent + descriptor.exponent_bias
        significand = value.significand
        fraction = (significand << (descriptor.precision - significand.bit_length())) - int_bit
    else:
        # Subnormal.  Express the significand in units of the smallest subnormal.
        exponent_field = 0
        fraction = value.significand << (value.exponent_int()
                                         - (descriptor.e_min - mantissa_bits))

    # If the format has an explicit integer bit, add it to the significand.  It is set for
    # normal numbers, NaNs and infinities.
    lshift = mantissa_bits
    if descriptor.explicit_leading_bit:
        lshift += 1
        if exponent_field:
            fraction += int_bit

    # Build up the encoding from the parts
    bits = exponent_field
    if value.sign:
        bits += 1 << descriptor.exponent_bits
    return (bits << lshift) + fraction


def decode_bits(bits, descriptor):
    '''Decode an unsigned integer encoding and return a BigFloat.

    An explicit integer bit is ignored when the exponent field is non-zero; it is implied by
    the exponent as for formats with an implicit integer bit.  With a zero exponent field a
    set integer bit counts, so pseudo-denormals read as values of the minimum exponent.
    '''
    if not isinstance(bits, int):
        raise TypeError('decode_bits requires an integer')
    if not 0 <= bits < 1 << descriptor.bit_width:
        raise ValueError(f'{bits:#x} is not a {descriptor.bit_width}-bit encoding')

    # Extract the parts from the encoding
    mantissa_bits = descriptor.mantissa_bits
    fraction = bits & (descriptor.int_bit - 1)
    stored_int_bit = bits & descriptor.int_bit if descriptor.explicit_leading_bit else 0
    bits >>= mantissa_bits + descriptor.explicit_leading_bit
    exponent_field = bits & descriptor.max_exponent_field
    sign = bits != exponent_field

    if exponent_field == descriptor.max_exponent_field:
        if fraction:
            return BigFloat.nan(sign, (1 << mantissa_bits) | fraction)
        return BigFloat.infinity(sign)

    if exponent_field == 0:
        # Zeroes, subnormals and pseudo-denormals
        return BigFloat.from_parts(sign, descriptor.e_min - mantissa_bits,
                                   fraction | stored_int_bit)

    exponent = exponent_field - descriptor.exponent_bias - mantissa_bits
    return BigFloat.from_parts(sign, exponent, fraction | descriptor.int_bit)


def encode(value, descriptor, endianness=None):
    '''Return the encoding of value as bytes of the given endianness.

    Endianness can be 'big' or 'little'.  If None, host-native endianness is used.
    '''
    return encode_bits(value, descriptor).to_bytes(descriptor.byte_width,
                                                   endianness or host_endianness)


def decode(raw, descriptor, endianness=None):
    '''Decode a binary encoding and return a BigFloat.

    Endianness can be 'big' or 'little'.  If None, host-native endianness is used.
    '''
    size = descriptor.byte_width
    if len(raw) != size:
        raise ValueError(f'expected {size} bytes to decode; got {len(raw)}')
    return decode_bits(int.from_bytes(raw, endianness or host_endianness), descriptor)


def _nan_fraction(payload, width):
    '''Return the fraction field of the given width holding a NaN payload.'''
    payload_bits = payload.bit_length() - 1
    fraction = payload - (1 << payload_bits)
    if payload_bits <= width:
        fraction <<= width - payload_bits
    else:
        fraction >>= payload_bits - width
    # An all-zero fraction would be an infinity; deliver the default quiet NaN instead
    return fraction or 1 << (width - 1)


##
## Host float support
##

def from_host_float(value):
    '''Return a Python float as an exact BigFloat.'''
    if not isinstance(value, float):
        raise TypeError('from_host_float requires a float')
    return decode_bits(int.from_bytes(pack_double(value), host_endianness), _host_double)


def bits_to_host_float(bits, descriptor):
    '''Return the encoding, which must be of a host float layout, as a Python float.'''
    if not descriptor.supports_native_fast_path():
        raise TypeError(f'{descriptor.byte_width}-byte values have no host float type')
    raw = bits.to_bytes(descriptor.byte_width, host_endianness)
    if descriptor.byte_width == 8:
        return unpack_double(raw)[0]
    return unpack_single(raw)[0]


def to_host_float(value, descriptor):
    '''Return value rounded to the format, which must be of a host float layout, as a Python
    float.'''
    return bits_to_host_float(encode_bits(value, descriptor), descriptor)


def round_to_single(value):
    '''Return the float rounded to single precision, ties to even.'''
    try:
        return unpack_single(pack_single(value))[0]
    except OverflowError:
        return copysign(inf, value)

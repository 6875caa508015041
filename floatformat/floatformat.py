#
# The operator surface of an emulated floating point format
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import logging
import math
import operator
from decimal import Decimal
from fractions import Fraction

from .bigfloat import (BigFloat, ROUND_CEILING, ROUND_DOWN, ROUND_FLOOR, ROUND_HALF_UP)
from .codec import (bits_to_host_float, decode, decode_bits, encode, encode_bits,
                    from_host_float, round_to_single)
from .descriptor import FormatDescriptor
from .text import DefaultDecFormat, DefaultHexFormat

__all__ = ('FloatFormat', )


logger = logging.getLogger(__name__)

# The forms an operand can take.  Results take the form of the first operand.
FORM_HOST = 'host'       # A Python float
FORM_BITS = 'bits'       # An integer encoding
FORM_BIG = 'big'         # A BigFloat


class FloatFormat:
    '''The arithmetic, comparison, conversion and text operations of one floating point
    format.

    Operands can be Python floats (for formats with a host float layout only), integer
    encodings, or BigFloat values, in any mix.  Results take the form of the first operand,
    so the same operation can serve an interpreter working on register bit patterns and
    a caller working with floats or BigFloats.

    Where the format has a host float layout, operations on Python floats use host
    arithmetic.  Host arithmetic rounds to nearest with ties to even exactly as the
    BigFloat path does; where it would deliver a NaN or raise, the BigFloat path decides
    the result instead so that NaN encodings agree too.
    '''

    __slots__ = ('descriptor', 'native')

    def __init__(self, descriptor, native_fast_path=True):
        if not isinstance(descriptor, FormatDescriptor):
            raise TypeError('FloatFormat requires a FormatDescriptor')
        self.descriptor = descriptor
        self.native = bool(native_fast_path) and descriptor.supports_native_fast_path()

    @property
    def byte_width(self):
        return self.descriptor.byte_width

    def __repr__(self):
        return f'FloatFormat(byte_width={self.byte_width}, native={self.native})'

    ##
    ## Operand handling
    ##

    def _host_round(self, value):
        '''Round a Python float to this host format.'''
        if self.descriptor.byte_width == 4:
            return round_to_single(value)
        return value

    def _is_host_operand(self, value):
        return self.native and type(value) is float

    def _check_bits(self, bits):
        '''Return bits as an unsigned encoding.  Negative values are taken to be two's
        complement.'''
        width = self.descriptor.bit_width
        if not -(1 << (width - 1)) <= bits < (1 << width):
            raise ValueError(f'{bits:#x} is not a {width}-bit encoding')
        return bits & ((1 << width) - 1)

    def _to_big(self, value):
        '''Return a pair (big, form): the operand as a BigFloat in this format, and the form it
        was given in.'''
        if isinstance(value, BigFloat):
            return value.round(self.descriptor.target), FORM_BIG
        if isinstance(value, float):
            if not self.descriptor.supports_native_fast_path():
                raise TypeError(f'{self.byte_width}-byte format does not take host floats')
            return from_host_float(value).round(self.descriptor.target), FORM_HOST
        if isinstance(value, int) and not isinstance(value, bool):
            return decode_bits(self._check_bits(value), self.descriptor), FORM_BITS
        raise TypeError(f'cannot use {type(value).__name__} as a floating point operand')

    def _from_big(self, value, form):
        '''Return the BigFloat value rounded to this format, in the given form.'''
        if form == FORM_BIG:
            return value.round(self.descriptor.target)
        bits = encode_bits(value, self.descriptor)
        if form == FORM_BITS:
            return bits
        return bits_to_host_float(bits, self.descriptor)

    def _host_result(self, host_op, *args):
        '''Return the result of host arithmetic on the operands rounded to this format, or None
        if the BigFloat path must decide it.'''
        host_round = self._host_round
        try:
            result = host_round(host_op(*(host_round(arg) for arg in args)))
        except (ZeroDivisionError, ValueError, OverflowError) as e:
            logger.debug('host %s failed (%s); using BigFloat arithmetic', host_op.__name__, e)
            return None
        if math.isnan(result):
            return None
        return result

    def _unary(self, host_op, big_op, value):
        if self._is_host_operand(value):
            result = self._host_result(host_op, value)
            if result is not None:
                return result
        big, form = self._to_big(value)
        return self._from_big(big_op(big), form)

    def _binary(self, host_op, big_op, lhs, rhs):
        if self._is_host_operand(lhs) and self._is_host_operand(rhs):
            result = self._host_result(host_op, lhs, rhs)
            if result is not None:
                return result
        lhs, form = self._to_big(lhs)
        rhs, _ = self._to_big(rhs)
        return self._from_big(big_op(lhs, rhs), form)

    ##
    ## Encoding and decoding
    ##

    def as_big_float(self, value):
        '''Return an operand in any form as a BigFloat in this format.'''
        return self._to_big(value)[0]

    def get_encoding(self, value):
        '''Return the operand's encoding in this format as an unsigned integer.'''
        return encode_bits(self._to_big(value)[0], self.descriptor)

    def decode_bits(self, bits):
        '''Return the BigFloat an integer encoding represents.'''
        if not isinstance(bits, int):
            raise TypeError('decode_bits requires an integer')
        return decode_bits(self._check_bits(bits), self.descriptor)

    def decode_host_float(self, bits):
        '''Return the Python float an integer encoding represents.  Only formats with a host
        float layout have one.'''
        return bits_to_host_float(self._check_bits(bits), self.descriptor)

    def to_host_float(self, value):
        '''Return the operand as a Python float.  Only formats with a host float layout have
        one.'''
        return bits_to_host_float(self.get_encoding(value), self.descriptor)

    def encode(self, value, endianness=None):
        '''Return the operand's encoding as bytes of the given endianness.  If None,
        host-native endianness is used.'''
        return encode(self._to_big(value)[0], self.descriptor, endianness)

    def decode(self, raw, endianness=None):
        '''Return the BigFloat bytes of the given endianness represent.  If None, host-native
        endianness is used.'''
        return decode(raw, self.descriptor, endianness)

    ##
    ## Special values
    ##

    def make_zero(self, sign=False):
        return BigFloat.zero(sign)

    def make_infinity(self, sign=False):
        return BigFloat.infinity(sign)

    def make_nan(self, sign=False):
        '''Return the default quiet NaN.'''
        return BigFloat.nan(sign)

    def zero_encoding(self, sign=False):
        return encode_bits(BigFloat.zero(sign), self.descriptor)

    def infinity_encoding(self, sign=False):
        return encode_bits(BigFloat.infinity(sign), self.descriptor)

    def nan_encoding(self, sign=False):
        return encode_bits(BigFloat.nan(sign), self.descriptor)

    def max_value(self, sign=False):
        '''Return the finite value of largest magnitude.'''
        d = self.descriptor
        return BigFloat.from_parts(sign, d.e_max - (d.precision - 1), d.max_significand)

    def min_value(self, sign=False):
        '''Return the subnormal value of smallest magnitude.'''
        d = self.descriptor
        return BigFloat.from_parts(sign, d.e_min - (d.precision - 1), 1)

    def min_normal(self, sign=False):
        '''Return the normal value of smallest magnitude.'''
        return BigFloat.from_parts(sign, self.descriptor.e_min, 1)

    ##
    ## Construction.  These return BigFloat values correctly rounded to this format.
    ##

    def from_value(self, value):
        '''Return a floating point value derived from value.  Values of type int, float, str,
        Decimal, Fraction and BigFloat are accepted.  Unlike operands, integers are taken to
        be numbers rather than encodings.'''
        converter = FloatFormat._converters.get(type(value))
        if not converter:
            raise TypeError(f'from_value cannot convert values of type {type(value)}')
        return converter(self, value)

    def from_int(self, value):
        return BigFloat.from_int(value).round(self.descriptor.target)

    def from_float(self, value):
        return from_host_float(value).round(self.descriptor.target)

    def from_string(self, string):
        return BigFloat.from_string(string, self.descriptor.target)

    def from_decimal(self, value):
        return BigFloat.from_decimal(value, self.descriptor.target)

    def from_fraction(self, value):
        return BigFloat.from_fraction(value, self.descriptor.target)

    def round_value(self, value):
        '''Return the BigFloat correctly rounded to this format.'''
        if not isinstance(value, BigFloat):
            raise TypeError('round_value requires a BigFloat')
        return value.round(self.descriptor.target)

    ##
    ## Arithmetic
    ##

    def add(self, lhs, rhs):
        '''Return lhs + rhs.'''
        target = self.descriptor.target
        return self._binary(operator.add, lambda a, b: a.add(b, target), lhs, rhs)

    def subtract(self, lhs, rhs):
        '''Return lhs - rhs.'''
        target = self.descriptor.target
        return self._binary(operator.sub, lambda a, b: a.subtract(b, target), lhs, rhs)

    def multiply(self, lhs, rhs):
        '''Return lhs * rhs.'''
        target = self.descriptor.target
        return self._binary(operator.mul, lambda a, b: a.multiply(b, target), lhs, rhs)

    def divide(self, lhs, rhs):
        '''Return lhs / rhs.  Division of a non-zero value by zero gives an infinity whose sign
        is the exclusive-or of the operand signs.'''
        target = self.descriptor.target
        return self._binary(operator.truediv, lambda a, b: a.divide(b, target), lhs, rhs)

    def sqrt(self, value):
        '''Return the square root of value; a NaN for values less than zero.'''
        target = self.descriptor.target
        return self._unary(math.sqrt, lambda a: a.sqrt(target), value)

    def negate(self, value):
        return self._unary(operator.neg, BigFloat.negate, value)

    def abs(self, value):
        return self._unary(operator.abs, BigFloat.abs, value)

    ##
    ## Rounding to integers
    ##

    def trunc(self, value, int_byte_width):
        '''Return value truncated to a signed integer of the given byte width.  Values out of
        range, including infinities, saturate; NaNs give zero.'''
        min_int, max_int = _int_range(int_byte_width, True)
        if self._is_host_operand(value):
            value = self._host_round(value)
            if math.isfinite(value):
                return min(max(math.trunc(value), min_int), max_int)
        big, _ = self._to_big(value)
        return big.convert_to_integer(min_int, max_int, ROUND_DOWN)

    def _integral(self, value, rounding, host_func):
        if self._is_host_operand(value):
            value = self._host_round(value)
            if math.isfinite(value):
                # A zero result keeps the operand's sign
                return math.copysign(float(host_func(value)), value)
            if math.isinf(value):
                return value
        big, form = self._to_big(value)
        return self._from_big(big.round_to_integral(rounding), form)

    def ceil(self, value):
        '''Return value rounded to an integral value towards +infinity.'''
        return self._integral(value, ROUND_CEILING, math.ceil)

    def floor(self, value):
        '''Return value rounded to an integral value towards -infinity.'''
        return self._integral(value, ROUND_FLOOR, math.floor)

    def round(self, value):
        '''Return value rounded to the nearest integral value, with ties away from zero.'''
        return self._integral(value, ROUND_HALF_UP, _host_round_half_up)

    ##
    ## Conversions
    ##

    def int_to_float(self, value, int_byte_width, signed=True):
        '''Return the encoding in this format of an integer of the given byte width, correctly
        rounded.  The integer is reduced to that width; if signed it is read as two's
        complement.'''
        if not isinstance(value, int):
            raise TypeError('int_to_float requires an integer')
        min_int, _ = _int_range(int_byte_width, signed)
        bits = int_byte_width * 8
        value &= (1 << bits) - 1
        if min_int and value >> (bits - 1):
            value -= 1 << bits
        return encode_bits(BigFloat.from_int(value), self.descriptor)

    def float_to_float(self, value, target_format):
        '''Return the operand of this format converted and rounded to target_format.  The
        result has the operand's form, except that a host float becomes the target's
        encoding when target_format has no host float layout.'''
        if not isinstance(target_format, FloatFormat):
            raise TypeError('float_to_float requires a FloatFormat target')
        big, form = self._to_big(value)
        if form == FORM_HOST and not target_format.descriptor.supports_native_fast_path():
            form = FORM_BITS
        return target_format._from_big(big, form)

    ##
    ## Comparisons.  These return 1 for true and 0 for false.
    ##

    def _compare(self, lhs, rhs, host_op, big_op):
        if self._is_host_operand(lhs) and self._is_host_operand(rhs):
            return int(host_op(self._host_round(lhs), self._host_round(rhs)))
        return int(big_op(self._to_big(lhs)[0], self._to_big(rhs)[0]))

    def equal(self, lhs, rhs):
        '''Return 1 if lhs == rhs.  NaNs are equal to nothing; +0 and -0 are equal.'''
        return self._compare(lhs, rhs, operator.eq, BigFloat.compare_eq)

    def not_equal(self, lhs, rhs):
        '''Return 1 if lhs != rhs, which is the case if either is a NaN.'''
        return self._compare(lhs, rhs, operator.ne, BigFloat.compare_ne)

    def less(self, lhs, rhs):
        '''Return 1 if lhs < rhs.  Comparisons involving NaNs are false.'''
        return self._compare(lhs, rhs, operator.lt, BigFloat.compare_lt)

    def less_equal(self, lhs, rhs):
        '''Return 1 if lhs <= rhs.  Comparisons involving NaNs are false.'''
        return self._compare(lhs, rhs, operator.le, BigFloat.compare_le)

    def is_nan(self, value):
        if self._is_host_operand(value):
            return int(math.isnan(value))
        return int(self._to_big(value)[0].is_nan())

    ##
    ## Text
    ##

    def to_decimal_string(self, value, exact=False, precision=0, text_format=None):
        '''Return the operand as decimal text.  See TextFormat for output control.

        By default the fewest digits that convert back to the same value in this format are
        output.  If exact is True the digits of the precise value are output.  Otherwise a
        positive precision outputs that many significant digits, rounded to nearest.
        '''
        text_format = text_format or DefaultDecFormat
        big, _ = self._to_big(value)
        if not big.is_finite():
            return text_format.format_non_finite(big)
        if exact:
            exponent, digits = big.to_decimal_parts(-1)
            precision = len(digits)
        elif precision:
            exponent, digits = big.to_decimal_parts(precision)
        else:
            exponent, digits = big.to_decimal_parts(0, self.descriptor.target)
            precision = self.descriptor.decimal_precision - 1
        return text_format.format_decimal(big.sign, exponent, digits, precision)

    def to_hex_string(self, value, text_format=None):
        '''Return the operand as text with a hexadecimal significand.  Zeroes are output with an
        exponent of 0 and subnormals with the minimum exponent.'''
        text_format = text_format or DefaultHexFormat
        big, _ = self._to_big(value)
        if not big.is_finite():
            return text_format.format_non_finite(big)
        return text_format.format_hex(big, self.descriptor)

    def to_binary_string(self, value):
        '''Return the operand's encoding as binary digits, with a space between the sign,
        exponent and fraction fields.  An explicit integer bit is a field of its own.'''
        d = self.descriptor
        digits = f'{self.get_encoding(value):0{d.bit_width}b}'
        field_widths = [1, d.exponent_bits]
        if d.explicit_leading_bit:
            field_widths.append(1)
        fields = []
        start = 0
        for width in field_widths:
            fields.append(digits[start:start + width])
            start += width
        fields.append(digits[start:])
        return ' '.join(fields)

    def parse_decimal(self, string):
        '''Return the BigFloat that decimal or hexadecimal-significand text converts to in this
        format.  Magnitudes too large for the format give infinities, and too small give
        zeroes.'''
        return BigFloat.from_string(string, self.descriptor.target)


FloatFormat._converters = {
    int: FloatFormat.from_int,
    float: FloatFormat.from_float,
    str: FloatFormat.from_string,
    Decimal: FloatFormat.from_decimal,
    Fraction: FloatFormat.from_fraction,
    BigFloat: FloatFormat.round_value,
}


def _int_range(byte_width, signed):
    '''Return the inclusive range (min_int, max_int) of an integer of the given byte width.'''
    if not isinstance(byte_width, int) or byte_width <= 0:
        raise ValueError(f'invalid integer byte width: {byte_width!r}')
    bits = byte_width * 8
    if signed:
        return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    return 0, (1 << bits) - 1


def _host_round_half_up(value):
    '''Return the magnitude of a finite float rounded to an integer, ties away from zero.'''
    magnitude = abs(value)
    result = math.floor(magnitude)
    # Exact: the fraction of a float is always representable
    if magnitude - result >= 0.5:
        result += 1
    return result

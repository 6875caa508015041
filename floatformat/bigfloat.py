#
# Arbitrary-precision binary floating point values and their arithmetic
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import re
from collections import namedtuple
from decimal import Decimal
from enum import IntEnum
from fractions import Fraction
from math import isqrt, log2
from typing import NamedTuple, Optional

from .errors import InvalidFromString

__all__ = ('Category', 'Compare', 'RoundingTarget', 'BigFloat', 'CANONICAL_NAN_PAYLOAD',
           'ROUND_CEILING', 'ROUND_FLOOR', 'ROUND_DOWN', 'ROUND_HALF_EVEN', 'ROUND_HALF_UP')


# Rounding modes.  Arithmetic always rounds to nearest with ties to even; the directed
# modes are used only when rounding to an integral value.
ROUND_CEILING = 'ROUND_CEILING'       # Towards +infinity
ROUND_FLOOR = 'ROUND_FLOOR'           # Towards -infinity
ROUND_DOWN = 'ROUND_DOWN'             # Towards zero
ROUND_HALF_EVEN = 'ROUND_HALF_EVEN'   # To nearest with ties towards even
ROUND_HALF_UP = 'ROUND_HALF_UP'       # To nearest with ties away from zero

# When precision is lost during a calculation these indicate what fraction of the LSB the
# lost bits represented.  It essentially combines the roles of 'guard' and 'sticky' bits.
LF_EXACTLY_ZERO = 0           # 000000
LF_LESS_THAN_HALF = 1         # 0xxxxx  x's not all zero
LF_EXACTLY_HALF = 2           # 100000
LF_MORE_THAN_HALF = 3         # 1xxxxx  x's not all zero

# A NaN payload is the NaN's fraction field read from its MSB, preceded by a marker bit.
# This is the payload of a quiet NaN with no other payload bits, in any format.
CANONICAL_NAN_PAYLOAD = 0b11


class Category(IntEnum):
    ZERO = 0
    NORMAL = 1
    INFINITE = 2
    NAN = 3


# Four-way result of the compare() operation.
class Compare(IntEnum):
    LESS_THAN = 0
    EQUAL = 1
    GREATER_THAN = 2
    UNORDERED = 3


class RoundingTarget(NamedTuple):
    '''What an operation rounds its exact result to.

    precision is the number of significand bits.  e_min is the smallest e such that 2^e
    is not subnormal, and e_max the largest e such that 2^e is finite.  Either can be None,
    in which case the exponent range is unbounded in that direction.
    '''
    precision: int
    e_min: Optional[int] = None
    e_max: Optional[int] = None


def as_target(target):
    '''Accept a RoundingTarget, anything with precision, e_min and e_max attributes (such as a
    FormatDescriptor), or a bare precision in bits.'''
    if isinstance(target, RoundingTarget):
        result = target
    elif isinstance(target, int):
        result = RoundingTarget(target)
    elif hasattr(target, 'precision'):
        result = RoundingTarget(target.precision, target.e_min, target.e_max)
    else:
        raise TypeError(f'cannot round to {target!r}')
    if not isinstance(result.precision, int) or result.precision < 1:
        raise ValueError(f'precision must be a positive integer: {result.precision!r}')
    return result


class BigFloat(namedtuple('BigFloat', 'category sign exponent significand payload')):
    '''An immutable binary floating point value with an unbounded significand and exponent.

    For NORMAL values (which include values that are subnormal in some fixed format) the
    significand is odd, and exponent is that of its leading bit, so that the value is

        (-1)^sign * significand * 2^(exponent - significand.bit_length() + 1)

    ZERO and INFINITE values carry only their sign.  NaNs carry a sign and a payload.

    Equality and hashing are structural: +0 and -0 differ, and a NaN equals itself.  Use
    compare() and the compare_ methods for numeric comparison.
    '''

    __slots__ = ()

    def __new__(cls, category, sign, exponent=0, significand=0, payload=0):
        category = Category(category)
        if not all(isinstance(arg, int) for arg in (exponent, significand, payload)):
            raise TypeError('exponent, significand and payload must be integers')
        sign = bool(sign)
        if category == Category.NORMAL:
            if significand <= 0:
                raise ValueError(f'a normal value needs a positive significand: {significand}')
            zeroes = (significand & -significand).bit_length() - 1
            return super().__new__(cls, category, sign, exponent, significand >> zeroes, 0)
        if category == Category.NAN:
            if payload <= 0:
                raise ValueError(f'NaN payload must be positive: {payload}')
            payload >>= (payload & -payload).bit_length() - 1
            # The marker bit alone would encode an infinity
            if payload == 1:
                payload = CANONICAL_NAN_PAYLOAD
            return super().__new__(cls, category, sign, 0, 0, payload)
        return super().__new__(cls, category, sign, 0, 0, 0)

    ##
    ## Construction
    ##

    @classmethod
    def zero(cls, sign=False):
        return cls(Category.ZERO, sign)

    @classmethod
    def infinity(cls, sign=False):
        return cls(Category.INFINITE, sign)

    @classmethod
    def nan(cls, sign=False, payload=CANONICAL_NAN_PAYLOAD):
        return cls(Category.NAN, sign, payload=payload)

    @classmethod
    def from_parts(cls, sign, exponent, significand):
        '''Return the exact value ± significand * 2^exponent.'''
        if significand < 0:
            raise ValueError(f'significand cannot be negative: {significand}')
        if significand == 0:
            return cls.zero(sign)
        return cls(Category.NORMAL, sign, exponent + significand.bit_length() - 1, significand)

    @classmethod
    def from_int(cls, value):
        '''Return the integer as an exact floating point value.'''
        if not isinstance(value, int):
            raise TypeError('from_int requires an integer')
        return cls.from_parts(value < 0, 0, abs(value))

    @classmethod
    def from_fraction(cls, value, target):
        '''Return the fraction correctly rounded to target.'''
        if not isinstance(value, Fraction):
            raise TypeError('from_fraction requires a Fraction instance')
        numerator = cls.from_int(value.numerator)
        denominator = cls.from_int(value.denominator)
        return numerator.divide(denominator, target)

    @classmethod
    def from_decimal(cls, value, target=None):
        '''Return the decimal converted to a floating point value, rounding if a target is
        given.'''
        if not isinstance(value, Decimal):
            raise TypeError('from_decimal requires a Decimal instance')
        if value.is_nan():
            return cls.nan(value.is_signed())
        return cls.from_string(str(value), target)

    @classmethod
    def from_string(cls, string, target=None):
        '''Convert decimal or hexadecimal-significand text to a floating point value.

        The text is read exactly.  If a target is given the result is correctly rounded to
        it, so out-of-range magnitudes become signed infinities or zeroes.  Without a
        target the text must denote a value exactly representable in binary.
        '''
        if not isinstance(string, str):
            raise TypeError('from_string requires a string')
        text = string.strip()

        if HEX_SIGNIFICAND_PREFIX.match(text):
            return cls._from_hex_significand_string(text, string, target)

        match = DEC_FLOAT_REGEX.match(text)
        if match is None:
            raise InvalidFromString(string)

        sign = text[0] == '-'
        groups = match.groups()

        # Decimal float?
        if groups[1] is not None:
            # groups[6] is the exponent, if any
            exponent = 0 if groups[6] is None else int(groups[6])

            # With a point the digits either side are groups[2] and groups[3]; without one
            # they are all in groups[4]
            if groups[2] is None:
                int_str, frac_str = groups[4], ''
            else:
                int_str, frac_str = groups[2], groups[3]

            # Join the digits, drop leading and trailing zeroes and move the exponent so
            # the joined digits read as an integer
            sig_str = int_str + frac_str.rstrip('0')
            exponent += len(int_str) - len(sig_str)
            sig_str = sig_str.lstrip('0') or '0'

            # The value is int(sig_str) * 10^exponent
            return cls._from_decimal_parts(sign, exponent, sig_str, target)

        # groups[7] matches infinities
        if groups[7] is not None:
            return cls.infinity(sign)

        # groups[9] matches NaNs
        return cls.nan(sign)

    @classmethod
    def _from_hex_significand_string(cls, text, string, target):
        match = HEX_SIGNIFICAND_REGEX.match(text)
        if match is None:
            raise InvalidFromString(string)

        sign = text[0] == '-'
        groups = match.groups()
        exponent = int(groups[4])

        # Digits either side of a point are groups[1] and groups[2], otherwise groups[3]
        if groups[1] is None:
            significand = int(groups[3], 16)
        else:
            fraction = groups[2].rstrip('0')
            significand = int((groups[1] + fraction) or '0', 16)
            exponent -= len(fraction) * 4

        return _normalize(sign, exponent, significand, target)

    @classmethod
    def _from_decimal_parts(cls, sign, exponent, sig_str, target):
        '''Return the value (-1)^sign * int(sig_str) * 10^exponent, correctly rounded to
        target if it is not None.'''
        # Exponent doesn't matter if zero
        if sig_str == '0':
            return cls.zero(sign)

        if target is not None:
            target = as_target(target)
            # Test for obviously over-large and over-small exponents.  The value lies in
            # [10^(frac_exp - 1), 10^frac_exp).
            frac_exp = exponent + len(sig_str)
            if target.e_max is not None and (frac_exp - 1) * log2_10 >= target.e_max + 2:
                return cls.infinity(sign)
            if target.e_min is not None and (frac_exp * log2_10
                                             <= target.e_min - target.precision - 1):
                return cls.zero(sign)

        significand = int(sig_str)
        if exponent >= 0:
            return _normalize(sign, 0, significand * pow(10, exponent), target)

        # significand / 10^n is significand / 5^n scaled by 2^-n
        pow5 = pow(5, -exponent)
        if target is None:
            quotient, remainder = divmod(significand, pow5)
            if remainder:
                raise ValueError(f'{sig_str}e{exponent} is not exactly representable in binary')
            return cls.from_parts(sign, exponent, quotient)
        return cls.from_parts(sign, 0, significand).divide(
            cls.from_parts(False, -exponent, pow5), target)

    ##
    ## Queries
    ##

    def is_zero(self):
        return self.category == Category.ZERO

    def is_normal(self):
        '''Return True for finite non-zero values.'''
        return self.category == Category.NORMAL

    def is_finite(self):
        return self.category <= Category.NORMAL

    def is_infinite(self):
        return self.category == Category.INFINITE

    def is_nan(self):
        return self.category == Category.NAN

    def is_negative(self):
        return self.sign

    def exponent_int(self):
        '''The exponent of the least significant bit of a finite non-zero value.'''
        return self.exponent - self.significand.bit_length() + 1

    def as_integer_ratio(self):
        '''Return a pair of integers in lowest terms, with positive denominator, whose ratio is
        exactly equal to the value.'''
        if self.is_nan():
            raise ValueError('cannot convert NaN to integer ratio')
        if self.is_infinite():
            raise OverflowError('cannot convert Infinity to integer ratio')
        if self.is_zero():
            return 0, 1
        numerator = -self.significand if self.sign else self.significand
        exponent = self.exponent_int()
        if exponent >= 0:
            return numerator << exponent, 1
        return numerator, 1 << -exponent

    def __repr__(self):
        sign = '-' if self.sign else ''
        if self.category == Category.NORMAL:
            return f'BigFloat({sign}0x{self.significand:x}p{self.exponent_int():+d})'
        if self.category == Category.ZERO:
            return f'BigFloat({sign}0)'
        if self.category == Category.INFINITE:
            return f'BigFloat({sign}Infinity)'
        return f'BigFloat({sign}NaN:{self.payload:#x})'

    ##
    ## Sign operations.  These are exact and never round.
    ##

    def set_sign(self, sign):
        '''Return a copy of this value with the given sign.'''
        return BigFloat(self.category, sign, self.exponent, self.significand, self.payload)

    def negate(self):
        return self.set_sign(not self.sign)

    def abs(self):
        return self.set_sign(False)

    def __neg__(self):
        return self.negate()

    def __abs__(self):
        return self.abs()

    ##
    ## Rounding
    ##

    def round(self, target):
        '''Return this value correctly rounded, ties to even, to target.  Non-finite values
        and zeroes are returned unchanged.'''
        if self.category != Category.NORMAL:
            return self
        return _normalize(self.sign, self.exponent_int(), self.significand, as_target(target))

    def _to_int(self, rounding):
        '''Round our finite non-zero value to an integer, rounding as specified.  Return the
        absolute value of the result; the caller needs to apply our sign.'''
        value = self.significand
        rshift = -self.exponent_int()

        if rshift <= 0:
            # We're already a (large) integer if rshift is <= 0
            return value << -rshift

        value, lost_fraction = shift_right(value, rshift)
        if round_up(rounding, lost_fraction, self.sign, bool(value & 1)):
            value += 1
        return value

    def round_to_integral(self, rounding):
        '''Return the value rounded to an integral value, as per rounding.  Zeroes, infinities
        and NaNs are returned unchanged, and a result of zero keeps our sign.'''
        if self.category != Category.NORMAL:
            return self
        return BigFloat.from_parts(self.sign, 0, self._to_int(rounding))

    def to_int(self, rounding):
        '''Return the finite value rounded to a Python int, as per rounding.'''
        if not self.is_finite():
            raise ValueError(f'cannot convert {self.category.name.lower()} to an integer')
        if self.is_zero():
            return 0
        result = self._to_int(rounding)
        return -result if self.sign else result

    def convert_to_integer(self, min_int, max_int, rounding):
        '''Convert this to an integer in the given inclusive range, as per rounding.  min_int and
        max_int are the range of the target integer format and must include zero.

        Out-of-range values saturate.  Infinities give max_int or min_int as appropriate.
        NaNs give zero.
        '''
        if not (isinstance(min_int, int) and isinstance(max_int, int)):
            raise TypeError('min_int and max_int must be integers')
        if not min_int <= 0 <= max_int:
            raise ValueError('zero must lie between min_int and max_int')

        if self.category == Category.NAN:
            return 0
        if self.category == Category.INFINITE:
            return min_int if self.sign else max_int
        if self.category == Category.ZERO:
            return 0

        # Values with a large exponent saturate without building the integer
        if self.exponent >= max(max_int, -min_int).bit_length():
            return min_int if self.sign else max_int

        result = self._to_int(rounding)
        result = -result if self.sign else result
        return min(max(result, min_int), max_int)

    ##
    ## Arithmetic.  Where target is None the result is exact; otherwise it is correctly
    ## rounded to target, ties to even.
    ##

    def add(self, rhs, target=None):
        '''Return the sum self + rhs.'''
        return self._add_sub(rhs, False, target)

    def subtract(self, rhs, target=None):
        '''Return the difference self - rhs.'''
        return self._add_sub(rhs, True, target)

    def _add_sub(self, rhs, is_subtract, target):
        lhs = self

        # Propagate the leftmost NaN
        if lhs.category == Category.NAN:
            return lhs
        if rhs.category == Category.NAN:
            return rhs

        # Handle either being infinite
        if lhs.category == Category.INFINITE or rhs.category == Category.INFINITE:
            # Put the infinity in LHS
            flipped = lhs.category != Category.INFINITE
            if flipped:
                lhs, rhs = rhs, lhs

            # infinity + finite -> infinity
            if rhs.category != Category.INFINITE:
                return BigFloat.infinity(lhs.sign ^ (is_subtract and flipped))
            if is_subtract == (lhs.sign == rhs.sign):
                # Subtraction of like-signed infinities is an invalid op
                return BigFloat.nan()
            # Addition of like-signed infinites preserves its sign
            return BigFloat.infinity(lhs.sign)

        # Determine if the operation on the absolute values is effectively an addition or
        # subtraction of shifted significands.
        is_sub = is_subtract ^ lhs.sign ^ rhs.sign

        # Zeroes.  Adding two like-signed zeroes (or subtracting opposite-signed ones) gives
        # the sign of the left hand zero; otherwise an exact zero sum is positive.
        if rhs.category == Category.ZERO:
            if lhs.category == Category.ZERO:
                return BigFloat.zero(lhs.sign and not is_sub)
            return lhs.round(target) if target is not None else lhs
        if lhs.category == Category.ZERO:
            rhs = rhs.set_sign(rhs.sign ^ is_subtract)
            return rhs.round(target) if target is not None else rhs

        sign = lhs.sign
        lhs_exponent = lhs.exponent_int()
        rhs_exponent = rhs.exponent_int()

        # Left shift of lhs that brings both to the same exponent
        lshift = lhs_exponent - rhs_exponent

        if is_sub:
            # Line up on the smaller exponent and subtract
            if lshift >= 0:
                significand = (lhs.significand << lshift) - rhs.significand
                exponent = rhs_exponent
            else:
                significand = (rhs.significand << -lshift) - lhs.significand
                exponent = lhs_exponent
                sign = not sign
            # Negative difference
            if significand < 0:
                sign = not sign
                significand = -significand
        else:
            # Line up on the smaller exponent and add; the sign is that of lhs
            if lshift >= 0:
                significand = (lhs.significand << lshift) + rhs.significand
                exponent = rhs_exponent
            else:
                significand = (rhs.significand << -lshift) + lhs.significand
                exponent = lhs_exponent

        # Two non-zero numbers adding exactly to zero give a positive zero
        if not significand:
            sign = False

        return _normalize(sign, exponent, significand, target)

    def multiply(self, rhs, target=None):
        '''Return the product self * rhs.'''
        sign = self.sign ^ rhs.sign

        if self.category == Category.NAN:
            return self
        if rhs.category == Category.NAN:
            return rhs

        if self.category == Category.INFINITE or rhs.category == Category.INFINITE:
            # infinity * zero -> invalid op
            if self.category == Category.ZERO or rhs.category == Category.ZERO:
                return BigFloat.nan()
            # infinity * infinity -> infinity
            # infinity * finite-non-zero -> infinity
            return BigFloat.infinity(sign)

        if self.category == Category.ZERO or rhs.category == Category.ZERO:
            return BigFloat.zero(sign)

        exponent = self.exponent_int() + rhs.exponent_int()
        return _normalize(sign, exponent, self.significand * rhs.significand, target)

    def divide(self, rhs, target):
        '''Return the quotient self / rhs correctly rounded to target.'''
        if target is None:
            raise TypeError('division requires a rounding target')
        target = as_target(target)
        sign = self.sign ^ rhs.sign

        if self.category == Category.NAN:
            return self
        if rhs.category == Category.NAN:
            return rhs

        if self.category == Category.INFINITE:
            # infinity / infinity is an invalid op
            if rhs.category == Category.INFINITE:
                return BigFloat.nan()
            # infinity / finite -> infinity
            return BigFloat.infinity(sign)

        # finite / infinity -> zero
        if rhs.category == Category.INFINITE:
            return BigFloat.zero(sign)

        if rhs.category == Category.ZERO:
            # 0 / 0 -> NaN
            if self.category == Category.ZERO:
                return BigFloat.nan()
            # Finite / 0 -> Infinity
            return BigFloat.infinity(sign)

        if self.category == Category.ZERO:
            return BigFloat.zero(sign)

        return self._divide_finite(rhs, sign, target)

    def _divide_finite(self, rhs, sign, target):
        '''Calculate self / rhs, where both are finite and non-zero.'''
        lhs_sig = self.significand
        rhs_sig = rhs.significand

        # Shift the dividend left so the quotient has at least two bits beyond the target
        # precision.  Those bits together with a sticky bit for a non-zero remainder are
        # enough to round correctly.
        lshift = max(0, target.precision + 2 + rhs_sig.bit_length() - lhs_sig.bit_length())
        quot_sig, remainder = divmod(lhs_sig << lshift, rhs_sig)
        exponent = self.exponent_int() - rhs.exponent_int() - lshift

        if remainder:
            quot_sig = (quot_sig << 1) + 1
            exponent -= 1

        return _normalize(sign, exponent, quot_sig, target)

    def sqrt(self, target):
        '''Return sqrt(self) correctly rounded to target.  It has a positive sign for all
        operands >= 0, except that sqrt(-0) shall be -0.'''
        if target is None:
            raise TypeError('square root requires a rounding target')
        target = as_target(target)

        if self.category == Category.NAN or self.category == Category.ZERO:
            return self
        if self.sign:
            return BigFloat.nan()
        if self.category == Category.INFINITE:
            return self

        # Scale the significand so its integer square root has at least two bits beyond
        # the target precision, and so that the exponent is even.
        significand = self.significand
        exponent = self.exponent_int()
        lshift = max(0, 2 * (target.precision + 2) - significand.bit_length())
        if (exponent - lshift) & 1:
            lshift += 1
        significand <<= lshift
        exponent = (exponent - lshift) // 2

        root = isqrt(significand)
        if root * root != significand:
            # A sticky bit for the inexact remainder
            root = (root << 1) + 1
            exponent -= 1

        return _normalize(False, exponent, root, target)

    ##
    ## Comparisons
    ##

    def compare(self, rhs):
        '''Return self vs rhs as one of the four comparison constants.  Zeroes compare equal
        regardless of sign.'''
        if self.category == Category.NAN or rhs.category == Category.NAN:
            return Compare.UNORDERED

        if self.category == Category.INFINITE:
            # Comparing two infinities
            if rhs.category == Category.INFINITE and self.sign == rhs.sign:
                return Compare.EQUAL
            # RHS is finite or a differently-signed infinity
            return Compare.LESS_THAN if self.sign else Compare.GREATER_THAN
        if rhs.category == Category.INFINITE:
            # Finite vs infinity
            return Compare.GREATER_THAN if rhs.sign else Compare.LESS_THAN

        # Get the either-is-a-zero case out the way as zeroes cannot have their exponents
        # compared.
        if self.category == Category.ZERO:
            if rhs.category == Category.ZERO:
                return Compare.EQUAL
            return Compare.GREATER_THAN if rhs.sign else Compare.LESS_THAN
        if rhs.category == Category.ZERO or self.sign != rhs.sign:
            return Compare.LESS_THAN if self.sign else Compare.GREATER_THAN

        # Finally, two non-zero finite numbers with equal signs.  Compare the exponents of
        # their leading bits.
        exponent_diff = self.exponent - rhs.exponent
        if exponent_diff:
            if (exponent_diff > 0) ^ self.sign:
                return Compare.GREATER_THAN
            return Compare.LESS_THAN

        # Exponents are the same.  We need to make their significands comparable.
        lhs_sig, rhs_sig = self.significand, rhs.significand
        length_diff = lhs_sig.bit_length() - rhs_sig.bit_length()
        if length_diff > 0:
            rhs_sig <<= length_diff
        elif length_diff < 0:
            lhs_sig <<= -length_diff

        # At last we have an apples-for-apples comparison
        if lhs_sig == rhs_sig:
            return Compare.EQUAL
        if (lhs_sig > rhs_sig) ^ self.sign:
            return Compare.GREATER_THAN
        return Compare.LESS_THAN

    def compare_eq(self, rhs):
        return self.compare(rhs) == Compare.EQUAL

    def compare_ne(self, rhs):
        return self.compare(rhs) != Compare.EQUAL

    def compare_lt(self, rhs):
        return self.compare(rhs) == Compare.LESS_THAN

    def compare_le(self, rhs):
        return self.compare(rhs) in (Compare.LESS_THAN, Compare.EQUAL)

    def compare_gt(self, rhs):
        return self.compare(rhs) == Compare.GREATER_THAN

    def compare_ge(self, rhs):
        return self.compare(rhs) in (Compare.GREATER_THAN, Compare.EQUAL)

    ##
    ## Conversion to decimal
    ##

    def to_decimal_parts(self, digits=0, target=None):
        '''Returns a pair (exponent, digit_string) for finite numbers.  exponent is that of the
        leading digit.

        digits is the number of significant digits to output, correctly rounded with ties
        to even.  -1 outputs as many digits as necessary to give the precise value.  0
        gives the fewest digits such that, when read back and rounded to target, they give
        this value again; target is then required and this value is first rounded to it.

        See "How to Print Floating-Point Numbers Accurately" by Steele and White, in
        particular Table 3.  This is an optimized implementation of their algorithm.
        '''
        if not self.is_finite():
            raise ValueError('value must be finite')

        value = self
        if digits == 0:
            if target is None:
                raise TypeError('shortest output requires a rounding target')
            target = as_target(target)
            value = self.round(target)
            if not value.is_finite():
                raise ValueError('value is out of range of the rounding target')

        if value.is_zero():
            return 0, '0' * max(digits, 1)

        significand = value.significand
        e_p = value.exponent_int()
        if digits == 0:
            # Widen the significand to the full precision of the target, or as far as the
            # subnormal quantum allows.
            lshift = target.precision - significand.bit_length()
            if target.e_min is not None:
                lshift = min(lshift, e_p - (target.e_min - (target.precision - 1)))
            significand <<= lshift
            e_p -= lshift

        R = significand << max(0, e_p)
        M = 1 << max(0, e_p)
        S = 1 << max(0, -e_p)

        # Scale R up until divmod() gives a non-zero leading digit
        exponent = -1
        while R * 10 < S:
            exponent -= 1
            R *= 10
            M *= 10

        # Scale S up until the leading digit is below 10, with room for half an ulp when
        # generating shortest digits.  A fixed digit count leaves the significand
        # unwidened, so M is not small beside R and must not take part.
        while 2 * R + (0 if digits else M) >= 2 * S:
            S *= 10
            exponent += 1

        if digits:
            # Precision is fixed or infinite.  Generate the digits.
            def gen_digits(count):
                nonlocal R, S
                while R and count:
                    U, R = divmod(R * 10, S)
                    yield U + 48
                    count -= 1

            output = bytearray(gen_digits(digits))
            # Rounding
            if R:
                R *= 2
                if R < S:
                    lost_fraction = LF_LESS_THAN_HALF
                elif R == S:
                    lost_fraction = LF_EXACTLY_HALF
                else:
                    lost_fraction = LF_MORE_THAN_HALF

                # Handle rounding by bumping
                if round_up(ROUND_HALF_EVEN, lost_fraction, value.sign, bool(output[-1] & 1)):
                    pos = len(output)
                    while True:
                        pos -= 1
                        output[pos] = (output[pos] - 48 + 1) % 10 + 48
                        if output[pos] != 48:
                            break
                        if pos == 0:
                            output[pos] = 49
                            exponent += 1
                            break
        else:
            # The value is R / S and M is one ulp above it, scaled along with R.  The ulp
            # below is the same except at a power of two above the subnormal range, where
            # it is half as big.  Generation stops once R is under half the lower ulp, or
            # S - R under half the upper one: any digit string between those bounds reads
            # back as this value.  An even value may stop on the bound itself, since ties
            # round to it.
            on_boundary = (significand == 1 << (target.precision - 1)
                           and (target.e_min is None or value.exponent > target.e_min))
            low_shift = 2 if on_boundary else 1
            is_even = (significand & 1) == 0

            output = bytearray()

            while True:
                U, R = divmod(R * 10, S)
                M *= 10
                # Equality with M is a tie, which reads back correctly only when even
                low = (R << low_shift) < M + is_even
                high = 2 * (S - R) < M + is_even
                if low or high:
                    break
                output.append(U + 48)

            if low and not high:
                pass
            elif high and not low:
                U += 1
            elif 2 * R < S:
                pass
            elif 2 * R > S:
                U += 1
            else:
                U += (U & 1)
            output.append(U + 48)

        output = output.decode()
        output += '0' * (digits - len(output))

        return exponent, output


#
# Useful internal helper routines
#

def _normalize(sign, exponent, significand, target):
    '''Return the value ± 2^exponent * significand, correctly rounded to target with ties to
    even.  If target is None the value is returned exactly.'''
    if significand == 0:
        return BigFloat.zero(sign)
    if target is None:
        return BigFloat.from_parts(sign, exponent, significand)

    precision, e_min, e_max = as_target(target)
    size = significand.bit_length()

    # Shifting the significand so the MSB is one gives us the natural shift.  There it
    # is followed by a binary point, so the exponent must be adjusted to compensate.
    # However we cannot fully shift if the exponent would fall below e_min.
    exponent += precision - 1
    rshift = size - precision
    if e_min is not None:
        rshift = max(rshift, e_min - exponent)

    # Shift the significand and update the exponent
    significand, lost_fraction = shift_right(significand, rshift)
    exponent += rshift

    # Round
    if round_up(ROUND_HALF_EVEN, lost_fraction, sign, bool(significand & 1)):
        # Increment the significand
        significand += 1
        # If the significand now overflows, halve it and increment the exponent
        if significand >> precision:
            significand >>= 1
            exponent += 1

    # If the new exponent would be too big, then we overflow.
    if e_max is not None and exponent > e_max:
        return BigFloat.infinity(sign)

    return BigFloat.from_parts(sign, exponent - (precision - 1), significand)


def lost_bits_from_rshift(significand, bits):
    '''Return what the lost bits would be were the significand shifted right the given number
    of bits (negative is a left shift).
    '''
    if bits <= 0:
        return LF_EXACTLY_ZERO
    # Prevent over-large shifts consuming memory
    bits = min(bits, significand.bit_length() + 2)
    bit_mask = 1 << (bits - 1)
    first_bit = bool(significand & bit_mask)
    second_bit = bool(significand & (bit_mask - 1))
    return first_bit * 2 + second_bit


def shift_right(significand, bits):
    '''Return the significand shifted right a given number of bits (left if bits is negative),
    and the fraction that is lost doing so.
    '''
    if bits <= 0:
        result = significand << -bits
    else:
        result = significand >> bits
    return result, lost_bits_from_rshift(significand, bits)


def round_up(rounding, lost_fraction, sign, is_odd):
    '''Return True if, when an operation is inexact, the result should be rounded up (i.e.,
    away from zero by incrementing the significand).

    sign is the sign of the number, and is_odd indicates if the LSB of the new
    significand is set, which is needed for ties-to-even rounding.
    '''
    if lost_fraction == LF_EXACTLY_ZERO:
        return False

    if rounding == ROUND_HALF_EVEN:
        if lost_fraction == LF_EXACTLY_HALF:
            return is_odd
        return lost_fraction == LF_MORE_THAN_HALF
    if rounding == ROUND_CEILING:
        return not sign
    if rounding == ROUND_FLOOR:
        return sign
    if rounding == ROUND_DOWN:
        return False
    if rounding == ROUND_HALF_UP:
        return lost_fraction != LF_LESS_THAN_HALF
    raise ValueError(f'unknown rounding mode: {rounding!r}')


log2_10 = log2(10)

HEX_SIGNIFICAND_PREFIX = re.compile('[-+]?0x', re.ASCII | re.IGNORECASE)
HEX_SIGNIFICAND_REGEX = re.compile(
    # sign[opt] hex-sig-prefix
    '[-+]?0x'
    # (hex-integer[opt].fraction or hex-integer.[opt])
    '(([0-9a-f]*)\\.([0-9a-f]+)|([0-9a-f]+)\\.?)'
    # p exp-sign[opt]dec-exponent
    'p([-+]?[0-9]+)$',
    re.ASCII | re.IGNORECASE
)
DEC_FLOAT_REGEX = re.compile(
    # sign[opt]
    '[-+]?('
    # (dec-integer[opt].fraction or dec-integer.[opt])
    '(([0-9]*)\\.([0-9]+)|([0-9]+)\\.?)'
    # e sign[opt]dec-exponent   [opt]
    '(e([-+]?[0-9]+))?|'
    # inf or infinity
    '(inf(inity)?)|'
    # nan
    '(nan))$',
    re.ASCII | re.IGNORECASE
)

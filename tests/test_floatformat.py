import logging
import math
import random
import struct
import sys
from decimal import Decimal
from fractions import Fraction

import pytest

from floatformat import *


all_widths = (4, 8, 10, 16)
binary_ops = ('add', 'subtract', 'multiply', 'divide')


def host_double(hex_string):
    return struct.unpack('>d', bytes.fromhex(hex_string))[0]


class TestScenarios:

    fmt = get_format(8)

    def test_add(self):
        result = self.fmt.add(1.234, 1.123)
        assert result == 2.357
        assert self.fmt.to_decimal_string(result) == '2.357'
        bits = self.fmt.add(self.fmt.get_encoding(1.234), self.fmt.get_encoding(1.123))
        assert bits == self.fmt.get_encoding(2.357)
        assert self.fmt.to_decimal_string(bits) == '2.357'

    @pytest.mark.parametrize('lhs, rhs, answer', (
        (-1.123, 1.123, 0.0),
        (math.inf, 1.123, math.inf),
        (-math.inf, 1.123, -math.inf),
        (-math.inf, -math.inf, -math.inf),
    ))
    def test_add_special(self, lhs, rhs, answer):
        result = self.fmt.add(lhs, rhs)
        assert result == answer
        assert math.copysign(1.0, result) == math.copysign(1.0, answer)
        bits = self.fmt.add(self.fmt.get_encoding(lhs), self.fmt.get_encoding(rhs))
        assert bits == self.fmt.get_encoding(answer)

    def test_add_invalid(self):
        result = self.fmt.add(-math.inf, math.inf)
        assert math.isnan(result)
        assert self.fmt.get_encoding(result) == 0x7ff8000000000000
        assert self.fmt.add(self.fmt.get_encoding(-math.inf),
                            self.fmt.get_encoding(math.inf)) == 0x7ff8000000000000
        assert self.fmt.add(self.fmt.get_encoding(math.nan), 1.123) == self.fmt.nan_encoding()

    @pytest.mark.parametrize('lhs, rhs, answer', (
        (3.75, 0.0, math.inf),
        (-3.75, 0.0, -math.inf),
        (3.75, -0.0, -math.inf),
        (-3.75, -0.0, math.inf),
    ))
    def test_divide_by_zero(self, lhs, rhs, answer):
        assert self.fmt.divide(lhs, rhs) == answer
        bits = self.fmt.divide(self.fmt.get_encoding(lhs), self.fmt.get_encoding(rhs))
        assert bits == self.fmt.get_encoding(answer)
        f4 = get_format(4)
        assert f4.divide(lhs, rhs) == answer
        assert f4.divide(f4.get_encoding(lhs), f4.get_encoding(rhs)) == f4.get_encoding(answer)

    def test_divide_zero_by_zero(self):
        assert math.isnan(self.fmt.divide(0.0, 0.0))
        assert self.fmt.divide(0, 0) == self.fmt.nan_encoding()

    def test_sqrt(self):
        result = self.fmt.sqrt(2.0)
        assert result == math.sqrt(2.0)
        assert self.fmt.to_decimal_string(result) == '1.4142135623730951'
        assert self.fmt.sqrt(0x4000000000000000) == 0x3ff6a09e667f3bcd
        assert math.isnan(self.fmt.sqrt(-1.0))
        assert self.fmt.sqrt(self.fmt.get_encoding(-1.0)) == self.fmt.nan_encoding()
        assert math.copysign(1.0, self.fmt.sqrt(-0.0)) == -1.0
        assert self.fmt.sqrt(math.inf) == math.inf

    @pytest.mark.parametrize('value, answer', (
        (2.5, 3.0),
        (2.25, 2.0),
        (2.75, 3.0),
        (-2.5, -3.0),
        (-2.25, -2.0),
        (-2.75, -3.0),
        (0.5, 1.0),
        (0.49999999999999994, 0.0),
        (-0.25, -0.0),
        (4503599627370497.0, 4503599627370497.0),
        (math.inf, math.inf),
        (-math.inf, -math.inf),
    ))
    def test_round(self, value, answer):
        result = self.fmt.round(value)
        assert result == answer
        assert math.copysign(1.0, result) == math.copysign(1.0, answer)
        assert self.fmt.round(self.fmt.get_encoding(value)) == self.fmt.get_encoding(answer)

    def test_round_nan(self):
        assert math.isnan(self.fmt.round(math.nan))
        assert self.fmt.round(self.fmt.nan_encoding()) == self.fmt.nan_encoding()

    @pytest.mark.parametrize('value, ceil, floor', (
        (2.5, 3.0, 2.0),
        (-2.5, -2.0, -3.0),
        (-0.5, -0.0, -1.0),
        (0.5, 1.0, 0.0),
        (-0.0, -0.0, -0.0),
        (7.0, 7.0, 7.0),
        (1e300, 1e300, 1e300),
        (-math.inf, -math.inf, -math.inf),
    ))
    def test_ceil_floor(self, value, ceil, floor):
        for op, answer in ((self.fmt.ceil, ceil), (self.fmt.floor, floor)):
            result = op(value)
            assert result == answer
            assert math.copysign(1.0, result) == math.copysign(1.0, answer)
            assert op(self.fmt.get_encoding(value)) == self.fmt.get_encoding(answer)

    @pytest.mark.parametrize('bits, text', (
        (0x3fd3333333333333, '0.3'),
        (0x0065006700610050, repr(host_double('0065006700610050'))),
        (0x4000fcd6e9ba37b3, repr(host_double('4000fcd6e9ba37b3'))),
    ))
    def test_decode_to_string(self, bits, text):
        assert self.fmt.to_decimal_string(bits) == text
        assert self.fmt.to_decimal_string(self.fmt.decode_bits(bits)) == text

    def test_single_to_string(self):
        f4 = get_format(4)
        assert f4.to_decimal_string(0xbfbbef00) == '-1.4682312'
        assert f4.to_decimal_string(0xbfbbef00, exact=True) == '-1.468231201171875'
        assert f4.to_decimal_string(0xbfbbef00, precision=3) == '-1.47'

    @pytest.mark.parametrize('width', all_widths)
    def test_simple_strings(self, width):
        fmt = get_format(width)
        assert fmt.to_decimal_string(fmt.make_zero(True)) == '-0.0'
        assert fmt.to_decimal_string(fmt.make_zero(False)) == '0.0'
        assert fmt.to_decimal_string(BigFloat.from_int(1)) == '1.0'
        assert fmt.to_decimal_string(BigFloat.from_int(2)) == '2.0'
        assert fmt.to_decimal_string(BigFloat.from_int(-1)) == '-1.0'
        assert fmt.to_decimal_string(BigFloat.from_int(-2)) == '-2.0'
        assert fmt.to_decimal_string(fmt.parse_decimal('+inf')) == 'Infinity'
        assert fmt.to_decimal_string(fmt.parse_decimal('-Infinity')) == '-Infinity'
        assert fmt.to_decimal_string(fmt.parse_decimal('NaN')) == 'NaN'
        assert fmt.to_decimal_string(fmt.infinity_encoding(True)) == '-Infinity'

    def test_exponent_form(self):
        assert self.fmt.to_decimal_string(1e16) == '1.0e+16'
        assert self.fmt.to_decimal_string(1.5e-7) == '1.5e-07'
        assert self.fmt.to_decimal_string(1e15) == '1000000000000000.0'
        assert get_format(4).to_decimal_string(16777216.0) == '16777216.0'
        assert get_format(4).to_decimal_string(1e8) == '1.0e+08'

    def test_exact_string(self):
        assert self.fmt.to_decimal_string(0.1, exact=True) == (
            '0.1000000000000000055511151231257827021181583404541015625')
        assert self.fmt.to_decimal_string(2.0 ** 70, exact=True) == (
            '1180591620717411303424.0')

    @pytest.mark.parametrize('text, answer', (
        ('1.7976931348623159E+308', BigFloat.infinity(False)),
        ('-1.7976931348623159E+308', BigFloat.infinity(True)),
        ('5.1e-350', BigFloat.zero(False)),
        ('-5.1e-350', BigFloat.zero(True)),
        ('0.1', from_host_float(0.1)),
        ('  -0x1.8p1 ', BigFloat.from_int(-3)),
    ))
    def test_parse_decimal(self, text, answer):
        assert self.fmt.parse_decimal(text) == answer

    def test_parse_decimal_invalid(self):
        with pytest.raises(InvalidFromString):
            self.fmt.parse_decimal('1.0f')

    def test_parse_decimal_single(self):
        f4 = get_format(4)
        assert f4.parse_decimal('3.4028236e38') == BigFloat.infinity(False)
        assert f4.parse_decimal('1e-46') == BigFloat.zero(False)
        assert f4.get_encoding(f4.parse_decimal('0.1')) == 0x3dcccccd


class TestSingleMidpoints:

    f4 = get_format(4)
    slow = FormatRegistry(native_fast_path=False).get_format(4)

    @pytest.mark.parametrize('lhs, rhs, answer', (
        (16777216.0, 1.0, 16777216.0),
        (16777216.0, 3.0, 16777220.0),
        (16777218.0, 1.0, 16777220.0),
        (1.0, 2.0 ** -24, 1.0),
        (1.0, 3 * 2.0 ** -24, 1.0000002384185791),
    ))
    def test_add(self, lhs, rhs, answer):
        assert self.f4.add(lhs, rhs) == answer
        bits = self.slow.add(self.f4.get_encoding(lhs), self.f4.get_encoding(rhs))
        assert bits == self.f4.get_encoding(answer)

    def test_operands_rounded(self):
        # Host float operands are first rounded to the format
        assert self.f4.add(0.1, 0.0) == round_to_single(0.1)
        assert self.f4.equal(0.1, round_to_single(0.1)) == 1
        assert self.f4.as_big_float(16777217.0) == BigFloat.from_int(16777216)

    def test_overflow(self):
        largest = struct.unpack('<f', struct.pack('<I', 0x7f7fffff))[0]
        assert self.f4.add(largest, largest) == math.inf
        assert self.f4.multiply(-largest, 2.0) == -math.inf
        assert self.f4.multiply(self.f4.get_encoding(largest), 2.0) == 0x7f800000

    def test_int_to_float(self):
        assert self.f4.int_to_float(16777217, 4) == 0x4b800000
        assert self.f4.int_to_float(16777219, 4) == self.f4.get_encoding(16777220.0)
        assert self.f4.from_value(16777217) == BigFloat.from_int(16777216)


class TestOperandForms:

    @pytest.mark.parametrize('op', binary_ops)
    @pytest.mark.parametrize('width', (4, 8))
    def test_three_forms(self, op, width):
        fmt = get_format(width)
        x, y = 1.5, -0.1
        host = getattr(fmt, op)(x, y)
        bits = getattr(fmt, op)(fmt.get_encoding(x), fmt.get_encoding(y))
        big = getattr(fmt, op)(fmt.as_big_float(x), fmt.as_big_float(y))
        assert type(host) is float
        assert type(bits) is int
        assert isinstance(big, BigFloat)
        assert fmt.get_encoding(host) == bits == fmt.get_encoding(big)

    @pytest.mark.parametrize('op', binary_ops)
    @pytest.mark.parametrize('width', all_widths)
    def test_two_forms(self, op, width):
        fmt = get_format(width)
        x, y = BigFloat.from_int(7), fmt.from_string('-0.1')
        big = getattr(fmt, op)(x, y)
        bits = getattr(fmt, op)(fmt.get_encoding(x), fmt.get_encoding(y))
        assert big == fmt.decode_bits(bits)
        assert fmt.get_encoding(big) == bits

    def test_result_takes_first_form(self):
        fmt = get_format(8)
        one, two = BigFloat.from_int(1), fmt.get_encoding(2.0)
        assert fmt.add(one, 2.0) == BigFloat.from_int(3)
        assert fmt.add(two, one) == fmt.get_encoding(3.0)
        assert fmt.add(1.0, two) == 3.0
        assert type(fmt.add(1.0, two)) is float

    def test_negative_encodings(self):
        f4 = get_format(4)
        # Two's complement encodings are accepted
        assert f4.negate(-0x40800000) == 0x3f800000
        assert f4.decode_bits(-1) == f4.decode_bits(0xffffffff)
        assert f4.decode_bits(-1).is_nan()

    @pytest.mark.parametrize('operand', (1 << 32, -(1 << 31) - 1))
    def test_encoding_out_of_range(self, operand):
        with pytest.raises(ValueError):
            get_format(4).add(operand, 0)

    @pytest.mark.parametrize('operand', (True, '1.0', Decimal(1), None, [1]))
    def test_bad_operand(self, operand):
        with pytest.raises(TypeError):
            get_format(8).add(operand, 1.0)
        with pytest.raises(TypeError):
            get_format(8).add(0, operand)

    @pytest.mark.parametrize('width', (10, 16))
    def test_no_host_floats(self, width):
        fmt = get_format(width)
        for op in binary_ops:
            with pytest.raises(TypeError):
                getattr(fmt, op)(1.0, 2.0)
            with pytest.raises(TypeError):
                getattr(fmt, op)(BigFloat.from_int(1), 2.0)
        with pytest.raises(TypeError):
            fmt.sqrt(2.0)
        with pytest.raises(TypeError):
            fmt.get_encoding(2.0)
        with pytest.raises(TypeError):
            fmt.to_host_float(BigFloat.from_int(1))
        with pytest.raises(TypeError):
            fmt.decode_host_float(0)
        # But floats are accepted as values to convert
        assert fmt.from_float(0.1) == from_host_float(0.1)
        assert fmt.from_value(-2.5) == BigFloat.from_parts(True, -1, 5)

    def test_no_fast_path_accepts_floats(self):
        slow = FormatRegistry(native_fast_path=False).get_format(8)
        assert slow.native is False
        assert slow.add(1.234, 1.123) == 2.357
        assert type(slow.add(1.234, 1.123)) is float


class TestNativeParity:

    @pytest.mark.parametrize('width', (4, 8))
    def test_random(self, width):
        fast = get_format(width)
        slow = FormatRegistry(native_fast_path=False).get_format(width)
        assert fast.native and not slow.native
        rng = random.Random(width)
        specials = [fast.zero_encoding(), fast.zero_encoding(True), fast.infinity_encoding(),
                    fast.infinity_encoding(True), fast.nan_encoding(), fast.get_encoding(1.0),
                    fast.get_encoding(-2.5), fast.get_encoding(0.5), 1, (1 << 31) + 1]
        bit_width = width * 8

        def operand():
            if rng.random() < 0.3:
                return rng.choice(specials)
            if rng.random() < 0.3:
                # Operands of similar magnitude
                return fast.get_encoding(rng.uniform(-100, 100))
            return rng.getrandbits(bit_width)

        for _ in range(1500):
            a, b = operand(), operand()
            x, y = fast.decode_host_float(a), fast.decode_host_float(b)
            assert type(x) is float
            # Converting a single-precision NaN to a host float may quiet it
            if width == 4 and (math.isnan(x) or math.isnan(y)):
                continue
            for op in binary_ops:
                result = getattr(fast, op)(x, y)
                assert fast.get_encoding(result) == getattr(slow, op)(a, b), (op, a, b)
            for op in ('sqrt', 'negate', 'abs', 'ceil', 'floor', 'round'):
                result = getattr(fast, op)(x)
                assert fast.get_encoding(result) == getattr(slow, op)(a), (op, a)
            for op in ('equal', 'not_equal', 'less', 'less_equal'):
                assert getattr(fast, op)(x, y) == getattr(slow, op)(a, b), (op, a, b)
            assert fast.is_nan(x) == slow.is_nan(a)
            assert fast.trunc(x, 4) == slow.trunc(a, 4)
            assert fast.trunc(x, 1) == slow.trunc(a, 1)


class TestConversions:

    @pytest.mark.parametrize('value, int_width, answer', (
        (1e20, 4, (1 << 31) - 1),
        (-1e20, 4, -(1 << 31)),
        (math.inf, 8, (1 << 63) - 1),
        (-math.inf, 2, -(1 << 15)),
        (math.nan, 4, 0),
        (-2.9, 4, -2),
        (2.9, 1, 2),
        (127.9, 1, 127),
        (-128.9, 1, -128),
        (-0.0, 4, 0),
        (4294967295.5, 8, 4294967295),
    ))
    def test_trunc(self, value, int_width, answer):
        fmt = get_format(8)
        assert fmt.trunc(value, int_width) == answer
        assert fmt.trunc(fmt.get_encoding(value), int_width) == answer
        assert get_format(16).trunc(get_format(16).from_float(value), int_width) == answer

    def test_trunc_bad_width(self):
        with pytest.raises(ValueError):
            get_format(8).trunc(1.0, 0)

    @pytest.mark.parametrize('width, value, int_width, signed, answer', (
        (8, 2, 4, True, 0x4000000000000000),
        (8, -2, 4, True, 0xc000000000000000),
        (8, 0xfffffffe, 4, True, 0xc000000000000000),
        (8, 0xfffffffe, 4, False, 0x41efffffffc00000),
        (8, 0, 4, True, 0),
        (8, (1 << 63) + 1, 8, False, 0x43e0000000000000),
        (4, 2, 4, True, 0x40000000),
        (4, -2, 4, True, 0xc0000000),
        (4, 16777217, 4, True, 0x4b800000),
        (10, -2, 4, True, 0xc0008000000000000000),
        (10, (1 << 64) - 1, 8, False, 0x403effffffffffffffff),
        (16, 2, 4, True, 0x40000000000000000000000000000000),
    ))
    def test_int_to_float(self, width, value, int_width, signed, answer):
        assert get_format(width).int_to_float(value, int_width, signed) == answer

    def test_int_to_float_bad(self):
        with pytest.raises(TypeError):
            get_format(8).int_to_float(1.0, 4)
        with pytest.raises(ValueError):
            get_format(8).int_to_float(1, -4)

    def test_float_to_float(self):
        f4, f8, f10, f16 = (get_format(width) for width in all_widths)
        single_tenth = round_to_single(0.1)
        assert f4.float_to_float(0x3dcccccd, f8) == 0x3fb99999a0000000
        assert f4.float_to_float(single_tenth, f8) == single_tenth
        assert f8.float_to_float(0.1, f4) == single_tenth
        assert f8.float_to_float(0x3fb999999999999a, f4) == 0x3dcccccd
        assert f8.float_to_float(0x3fb999999999999a, f10) == 0x3ffbccccccccccccd000
        assert f10.float_to_float(0x3ffbcccccccccccccccd, f8) == 0x3fb999999999999a
        assert f16.float_to_float(f16.max_value(), f8) == BigFloat.infinity(False)
        assert f16.float_to_float(f16.get_encoding(f16.max_value()), f8) == 0x7ff0000000000000
        assert f8.float_to_float(0x7ff8000000000001, f4) == 0x7fc00000
        assert f8.float_to_float(1e-50, f4) == 0.0

    @pytest.mark.parametrize('width', all_widths)
    def test_float_to_float_round_trip(self, width):
        fmt = get_format(width)
        rng = random.Random(width)
        for target_width in all_widths:
            if target_width < width:
                continue
            target = get_format(target_width)
            for _ in range(200):
                bits = rng.getrandbits(fmt.descriptor.bit_width)
                if fmt.decode_bits(bits).is_nan():
                    continue
                wider = fmt.float_to_float(bits, target)
                assert target.float_to_float(wider, fmt) == fmt.get_encoding(bits)

    @pytest.mark.parametrize('x', (0.1, -2.5, 0.0, -0.0, 5e-324, math.inf, math.nan))
    @pytest.mark.parametrize('width', (10, 16))
    def test_float_to_float_host_to_wide(self, x, width):
        f8, target = get_format(8), get_format(width)
        answer = f8.float_to_float(f8.get_encoding(x), target)
        assert f8.float_to_float(x, target) == answer
        assert target.decode_bits(answer) == f8.as_big_float(x)

    def test_float_to_float_host_to_host(self):
        assert get_format(4).float_to_float(0.1, get_format(8)) == round_to_single(0.1)
        assert get_format(8).float_to_float(0.1, get_format(4)) == round_to_single(0.1)

    def test_float_to_float_needs_format(self):
        with pytest.raises(TypeError):
            get_format(8).float_to_float(0.1, FormatDescriptor.for_width(4))

    @pytest.mark.parametrize('value', (1, 0.1, '0.1', Decimal('0.1'), Fraction(1, 10),
                                       BigFloat.from_fraction(Fraction(1, 10), 200)))
    def test_from_value(self, value):
        fmt = get_format(8)
        answer = BigFloat.from_int(1) if value == 1 else from_host_float(0.1)
        assert fmt.from_value(value) == answer

    @pytest.mark.parametrize('value', (True, None, [1], 1j))
    def test_from_value_bad(self, value):
        with pytest.raises(TypeError):
            get_format(8).from_value(value)

    def test_round_value(self):
        fmt = get_format(4)
        assert fmt.round_value(from_host_float(0.1)) == fmt.from_float(0.1)
        with pytest.raises(TypeError):
            fmt.round_value(0.1)

    def test_bytes(self):
        fmt = get_format(8)
        raw = bytes.fromhex('3ff0000000000000')
        assert fmt.encode(1.0, 'big') == raw
        assert fmt.encode(fmt.get_encoding(1.0), 'little') == raw[::-1]
        assert fmt.encode(BigFloat.from_int(1)) == struct.pack('=d', 1.0)
        assert fmt.decode(raw, 'big') == BigFloat.from_int(1)
        with pytest.raises(ValueError):
            fmt.decode(raw[1:])

    def test_host_floats(self):
        fmt = get_format(8)
        assert fmt.decode_host_float(0x3ff0000000000000) == 1.0
        assert fmt.to_host_float(BigFloat.from_int(3)) == 3.0
        assert fmt.to_host_float(0x4008000000000000) == 3.0
        assert get_format(4).to_host_float(0.1) == round_to_single(0.1)


class TestComparisons:

    fmt = get_format(8)

    @pytest.mark.parametrize('lhs, rhs, equal, less', (
        (1.234, 1.234, 1, 0),
        (-1.234, -1.234, 1, 0),
        (-1.234, 1.234, 0, 1),
        (1.234, -1.234, 0, 0),
        (0.0, -1.234, 0, 0),
        (0.0, 1.234, 0, 1),
        (0.0, -0.0, 1, 0),
        (math.inf, 1.234, 0, 0),
        (-math.inf, 1.234, 0, 1),
        (1.234, math.inf, 0, 1),
        (math.inf, math.inf, 1, 0),
        (math.nan, math.nan, 0, 0),
        (math.nan, 1.234, 0, 0),
        (1.234, math.nan, 0, 0),
    ))
    def test_compare(self, lhs, rhs, equal, less):
        unordered = math.isnan(lhs) or math.isnan(rhs)
        not_equal = 1 - equal
        less_equal = 0 if unordered else less | equal
        for a, b in ((lhs, rhs), (self.fmt.get_encoding(lhs), self.fmt.get_encoding(rhs)),
                     (self.fmt.as_big_float(lhs), self.fmt.get_encoding(rhs))):
            results = (self.fmt.equal(a, b), self.fmt.not_equal(a, b), self.fmt.less(a, b),
                       self.fmt.less_equal(a, b))
            assert results == (equal, not_equal, less, less_equal)
            assert all(type(result) is int for result in results)

    @pytest.mark.parametrize('width', all_widths)
    def test_is_nan(self, width):
        fmt = get_format(width)
        assert fmt.is_nan(fmt.nan_encoding()) == 1
        assert fmt.is_nan(fmt.nan_encoding(True)) == 1
        assert fmt.is_nan(fmt.infinity_encoding()) == 0
        assert fmt.is_nan(fmt.make_nan()) == 1
        assert fmt.is_nan(fmt.make_zero()) == 0
        if fmt.native:
            assert fmt.is_nan(math.nan) == 1
            assert fmt.is_nan(1.0) == 0


class TestSpecialValues:

    @pytest.mark.parametrize('width, zero, infinity, nan', (
        (4, 0x80000000, 0x7f800000, 0x7fc00000),
        (8, 0x8000000000000000, 0x7ff0000000000000, 0x7ff8000000000000),
        (10, 0x80000000000000000000, 0x7fff8000000000000000, 0x7fffc000000000000000),
        (16, 1 << 127, 0x7fff << 112, 0x7fff8 << 108),
    ))
    def test_encodings(self, width, zero, infinity, nan):
        fmt = get_format(width)
        assert fmt.zero_encoding() == 0
        assert fmt.zero_encoding(True) == zero
        assert fmt.infinity_encoding() == infinity
        assert fmt.infinity_encoding(True) == infinity | zero
        assert fmt.nan_encoding() == nan
        assert fmt.nan_encoding(True) == nan | zero
        assert fmt.make_zero(True) == BigFloat.zero(True)
        assert fmt.make_infinity(True) == BigFloat.infinity(True)
        assert fmt.make_nan() == BigFloat.nan()

    def test_double_limits(self):
        fmt = get_format(8)
        assert fmt.max_value() == from_host_float(sys.float_info.max)
        assert fmt.max_value(True) == from_host_float(-sys.float_info.max)
        assert fmt.min_value() == from_host_float(5e-324)
        assert fmt.min_normal() == from_host_float(sys.float_info.min)

    @pytest.mark.parametrize('width, max_hex, min_hex', (
        (4, '0x1.fffffep+127', '0x0.000002p-126'),
        (8, '0x1.fffffffffffffp+1023', '0x0.0000000000001p-1022'),
        (10, '0x1.fffffffffffffffep+16383', '0x0.0000000000000002p-16382'),
        (16, '0x1.ffffffffffffffffffffffffffffp+16383',
         '0x0.0000000000000000000000000001p-16382'),
    ))
    def test_limits_hex(self, width, max_hex, min_hex):
        fmt = get_format(width)
        assert fmt.to_hex_string(fmt.max_value()) == max_hex
        assert fmt.to_hex_string(fmt.min_value()) == min_hex
        assert fmt.to_hex_string(fmt.infinity_encoding(True)) == '-Infinity'
        assert fmt.add(fmt.max_value(), fmt.max_value()) == BigFloat.infinity(False)
        assert fmt.multiply(fmt.min_value(), BigFloat.from_parts(False, -1, 1)) == (
            BigFloat.zero(False))


class TestFormat:

    def test_repr(self):
        assert repr(get_format(8)) == 'FloatFormat(byte_width=8, native=True)'
        assert repr(get_format(10)) == 'FloatFormat(byte_width=10, native=False)'

    def test_bad_descriptor(self):
        with pytest.raises(TypeError):
            FloatFormat(8)

    def test_half_precision(self):
        # Any valid layout can be emulated, not only the standard ones
        half = FloatFormat(FormatDescriptor.from_layout(2, 5, 10))
        assert not half.native
        assert half.add(0x3c00, 0x3c00) == 0x4000
        assert half.divide(0x3c00, 0x4200) == 0x3555
        assert half.multiply(0x7bff, 0x4000) == 0x7c00
        assert half.to_decimal_string(0x3555) == '0.3333'
        assert half.to_hex_string(0x3555) == '0x1.554p-2'
        assert half.to_binary_string(0x3555) == '0 01101 0101010101'

    @pytest.mark.parametrize('width, operand, answer', (
        (4, 1.0, '0 01111111 ' + '0' * 23),
        (4, -2.0, '1 10000000 ' + '0' * 23),
        (4, 0x7fc00000, '0 11111111 1' + '0' * 22),
        (8, 5e-324, '0 ' + '0' * 11 + ' ' + '0' * 51 + '1'),
        (10, 0x3fff8000000000000000, '0 011111111111111 1 ' + '0' * 63),
        (10, 0x00000000000000000001, '0 ' + '0' * 15 + ' 0 ' + '0' * 62 + '1'),
        (16, BigFloat.infinity(True), '1 ' + '1' * 15 + ' ' + '0' * 112),
    ))
    def test_binary_string(self, width, operand, answer):
        assert get_format(width).to_binary_string(operand) == answer

    def test_binary_string_matches_struct(self):
        fmt = get_format(8)
        rng = random.Random(3)
        for _ in range(200):
            x = rng.uniform(-1e10, 1e10)
            bits = struct.unpack('<Q', struct.pack('<d', x))[0]
            assert fmt.to_binary_string(x).replace(' ', '') == f'{bits:064b}'

    def test_fallback_logged(self, caplog):
        fmt = get_format(8)
        with caplog.at_level(logging.DEBUG, logger='floatformat.floatformat'):
            assert fmt.divide(1.0, 0.0) == math.inf
        messages = [record.getMessage() for record in caplog.records
                    if record.name == 'floatformat.floatformat']
        assert len(messages) == 1
        assert 'truediv' in messages[0]

#
# Textual output of floating point values
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import attr

__all__ = ('TextFormat', 'DefaultDecFormat', 'DefaultHexFormat', 'Dec_g_Format')


@attr.s(slots=True, kw_only=True, eq=False)
class TextFormat:
    '''How a value of some format is spelt as decimal or hexadecimal text.

    Only the appearance is controlled here; which digits are printed is decided by the
    caller, normally FloatFormat.to_decimal_string() and FloatFormat.to_hex_string().
    '''

    # Minimum count of exponent digits.  0 means never write an exponent, padding the
    # significand with zeroes instead, like printf's 'f'.  A negative count follows
    # printf's 'g': the exponent is written only when the 'g' rule asks for one, and is
    # then padded to the absolute value.
    exp_digits = attr.ib(default=1)
    # Write '+' before a non-negative exponent
    force_exp_sign = attr.ib(default=True)
    # Write '+' before a positive value
    force_leading_sign = attr.ib(default=False)
    # Always write a point, adding '.0' when nothing follows it: "5.0", "1.0e2", "0x1.0p2"
    force_point = attr.ib(default=False)
    # Upper case 'E', 'P', 'X' and hex digits.  inf and nan below are written as given.
    upper_case = attr.ib(default=False)
    # Drop trailing zero digits of the significand
    rstrip_zeroes = attr.ib(default=False)
    # Spelling of infinity
    inf = attr.ib(default='Infinity')
    # Spelling of NaN; payloads are never shown
    nan = attr.ib(default='NaN')

    def leading_sign(self, sign):
        if sign:
            return '-'
        return '+' if self.force_leading_sign else ''

    def exponent_str(self, exponent):
        '''Return the exponent with its sign, padded with zeroes to exp_digits.'''
        if exponent < 0:
            sign = '-'
        else:
            sign = '+' if self.force_exp_sign else ''
        return sign + str(abs(exponent)).rjust(abs(self.exp_digits), '0')

    def format_non_finite(self, value):
        '''Return the text of an infinity or NaN.'''
        text = self.inf if value.is_infinite() else self.nan
        return self.leading_sign(value.sign) + text

    def _with_point(self, digits, point):
        '''Return digits with a decimal point after the first point digits.  point lies in
        1..len(digits).'''
        if point < len(digits):
            return f'{digits[:point]}.{digits[point:]}'
        if self.force_point:
            return digits + '.0'
        return digits

    def format_decimal(self, sign, exponent, digits, precision=None):
        '''Return the text of a finite decimal value.

        digits is the string of significant decimal digits and exponent the power of ten of
        the first of them.  sign is True for negative values.  precision is the digit count
        the 'g' rule compares the exponent against, by default len(digits).
        '''
        precision = precision or len(digits)
        assert precision > 0

        if self.rstrip_zeroes:
            digits = digits.rstrip('0') or '0'

        use_exponent = self.exp_digits != 0
        if self.exp_digits < 0 and -4 <= exponent < precision:
            use_exponent = False

        if use_exponent:
            body = self._with_point(digits, 1) + 'e' + self.exponent_str(exponent)
        elif exponent < 0:
            body = '0.' + '0' * (-exponent - 1) + digits
        else:
            point = exponent + 1
            body = self._with_point(digits.ljust(point, '0'), point)

        result = self.leading_sign(sign) + body
        return result.upper() if self.upper_case else result

    def format_hex(self, value, descriptor):
        '''Return a finite value of the described format as a C99 hexadecimal float.

        Subnormals are written with the format's minimum exponent and a leading digit of 0.
        Zero is written as 0x0p+0.
        '''
        if value.is_zero():
            hex_sig, exponent = '0', 0
        else:
            precision = descriptor.precision
            exponent = max(value.exponent, descriptor.e_min)
            significand = value.significand << (value.exponent_int()
                                                - (exponent - (precision - 1)))
            # Align the integer bit to the bottom of the leading hex digit
            significand <<= (precision & 3) ^ 1
            hex_sig = f'{significand:x}'.rjust((precision + 6) // 4, '0')

        if self.rstrip_zeroes:
            hex_sig = hex_sig.rstrip('0') or '0'
        if len(hex_sig) > 1:
            hex_sig = f'{hex_sig[0]}.{hex_sig[1:]}'
        elif self.force_point:
            hex_sig += '.0'

        result = f'{self.leading_sign(value.sign)}0x{hex_sig}p{self.exponent_str(exponent)}'
        return result.upper() if self.upper_case else result


# Default format for decimal output.  Finite values print as Python prints floats, except
# that an exponent is always preceded by a point, e.g. '1.0e+16'.
DefaultDecFormat = TextFormat(exp_digits=-2, force_point=True)

# Default format for hexadecimal output; matches float.hex() for finite doubles
DefaultHexFormat = TextFormat(force_point=True)

# This instance is intended to match the output of Python's **g** format specifier when
# the specified precisions are the same.
Dec_g_Format = TextFormat(exp_digits=-2, rstrip_zeroes=True, inf='inf', nan='nan')

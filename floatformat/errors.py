#
# Exceptions raised by the floating point format emulation package
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

__all__ = ('FloatFormatError', 'UnsupportedFormatError', 'InvalidFromString')


class FloatFormatError(Exception):
    '''All exceptions raised by this package subclass from this.  Arithmetic itself never
    raises; results of invalid operations are NaNs, infinities or zeroes.'''


class UnsupportedFormatError(FloatFormatError, ValueError):
    '''Raised when a format is requested for a byte width, or with a layout, that cannot be
    emulated.  No partially constructed format is ever returned.'''


class InvalidFromString(FloatFormatError, ValueError):
    '''Raised when converting text that is not a valid floating point number.'''

    def __init__(self, string):
        super().__init__(f'invalid floating point number: {string!r}')
        self.string = string

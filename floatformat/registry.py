#
# Shared floating point format instances, one per byte width
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import logging
import threading

from .descriptor import FormatDescriptor
from .errors import UnsupportedFormatError
from .floatformat import FloatFormat

__all__ = ('FormatRegistry', 'default_registry', 'get_format')


logger = logging.getLogger(__name__)


class FormatRegistry:
    '''Hands out one shared FloatFormat per supported byte width, constructing each lazily on
    first request.  Safe to use from several threads.

    If native_fast_path is False the formats handed out never use host arithmetic.
    '''

    def __init__(self, *, native_fast_path=True):
        self.native_fast_path = native_fast_path
        self._formats = {}
        self._lock = threading.Lock()

    def get_format(self, byte_width):
        '''Return the FloatFormat for the byte width.  Raises UnsupportedFormatError for widths
        other than 4, 8, 10 and 16.'''
        if type(byte_width) is not int:
            raise UnsupportedFormatError(f'byte width must be an integer: {byte_width!r}')
        fmt = self._formats.get(byte_width)
        if fmt is None:
            with self._lock:
                fmt = self._formats.get(byte_width)
                if fmt is None:
                    descriptor = FormatDescriptor.for_width(byte_width)
                    fmt = FloatFormat(descriptor, self.native_fast_path)
                    self._formats[byte_width] = fmt
                    logger.debug('constructed %r', fmt)
        return fmt

    def __repr__(self):
        return (f'FormatRegistry(native_fast_path={self.native_fast_path}, '
                f'widths={sorted(self._formats)})')


default_registry = FormatRegistry()


def get_format(byte_width):
    '''Return the shared FloatFormat of the default registry for the byte width.'''
    return default_registry.get_format(byte_width)

#
# Bit-exact emulation of target-machine binary floating point formats
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

from .bigfloat import *
from .codec import *
from .descriptor import *
from .errors import *
from .floatformat import *
from .registry import *
from .text import *

from . import bigfloat, codec, descriptor, errors, floatformat, registry, text

__all__ = (bigfloat.__all__ + codec.__all__ + descriptor.__all__ + errors.__all__
           + floatformat.__all__ + registry.__all__ + text.__all__)

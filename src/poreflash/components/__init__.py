"""Sub-package containing pure component property models.

Each component provides correlations for densities, enthalpies, internal energies and
viscosities of its liquid and gaseous state as functions of temperature and pressure,
as well as the inversion of the density correlations for the pressure.

"""

__all__ = []

from . import base, brine, h2o, n2
from .base import *
from .brine import *
from .h2o import *
from .n2 import *

__all__.extend(base.__all__)
__all__.extend(h2o.__all__)
__all__.extend(brine.__all__)
__all__.extend(n2.__all__)

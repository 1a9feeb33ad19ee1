"""Sub-package containing flash functionality for fluid phase equilibria."""

__all__ = []

from . import abstract_flash, flash_initializer, ncp_flash, solvers
from .abstract_flash import *
from .flash_initializer import *
from .ncp_flash import *
from .solvers import *

__all__.extend(solvers.__all__)
__all__.extend(abstract_flash.__all__)
__all__.extend(flash_initializer.__all__)
__all__.extend(ncp_flash.__all__)

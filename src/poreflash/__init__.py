"""PoreFlash.

Phase equilibrium (flash) calculations and primary variable mappings for multiphase,
multicomponent flow in porous media. Contains the following modules and sub-packages:

components: Property models of pure components (water, brine, nitrogen).

fluid_systems: Phase properties and fugacities of fluid mixtures.

capillary_pressures: Capillary pressure laws.

flash: Flash calculations and the numerical methods used by them.

energy: Energy modules deciding on the temperature primary variables.

primary_variables: Layout of primary variables and the mapping from fluid states.

Units are standard SI units.


isort:skip_file

"""

import os
from pathlib import Path
import configparser
from types import MappingProxyType


__version__ = "0.1.0"

# Try to read the config file from the directory where python process was launched
try:
    cwd = Path(os.getcwd())
    pth = cwd / Path("poreflash.cfg")
    cfg = configparser.ConfigParser()
    cfg.read(pth)
    _config = {section: dict(cfg[section]) for section in cfg.sections()}
except (OSError, configparser.Error):
    # the assumption is that no configurations are given
    _config = {}

config = MappingProxyType(_config)
"""Read-only configuration, with one dictionary per section of ``poreflash.cfg``."""

# ------------------------------------
# Simplified namespaces.

from poreflash._core import *
from poreflash.utils import *
from poreflash.states import *

from poreflash import components
from poreflash.components import H2O, N2, Brine, Component, pressure_from_density

from poreflash.fluid_systems import *
from poreflash.capillary_pressures import *

from poreflash import flash
from poreflash.flash import AbstractFlash, NcpFlash, FlashInitializer

from poreflash.energy import *
from poreflash.primary_variables import *

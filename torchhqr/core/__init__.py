"""Low-level utilities and linear algebra kernels."""

from . import constants    # constant values
from . import linalg       # linear algebra (reflectors, hessenberg, sweeps)
from . import optionals    # optional dependencies (numpy, scipy)
from . import options      # structures of options
from . import utils        # pytorch utilities

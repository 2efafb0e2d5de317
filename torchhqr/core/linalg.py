"""Linear algebra.

Elementary reflectors, reduction to Hessenberg form and multishift QR
sweeps on (batches of) real or complex matrices.
"""

# Expose from private implementation
from ._linalg_householder import reflector, reflector_, reflector_apply_, \
    org2r, org2r_
from ._linalg_hessenberg import hessenberg, hessenberg_, orghr_
from ._linalg_bulge import shift_column, move_bulge, move_bulge_
from ._linalg_sweep import SweepOptions, multishift_sweep, multishift_sweep_
from ._linalg_checks import orthogonality_error, similarity_error, \
    hessenberg_error

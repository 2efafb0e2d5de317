"""Check which optional modules are available."""
import importlib

# Numpy
try:
    import numpy
except ImportError:
    numpy = None

# Scipy
try:
    import scipy
except ImportError:
    scipy = None


def try_import(path, keys=None):
    """Try to import from a module.

    Parameters
    ----------
    path : str
        Path to module or variable in a module. The import looks like a
        renamed import:
        >> # equivalent to: `import pack.sub.mod as my_mod`
        >> my_mod = try_import('pack.sub.mod')
    keys : str or list[str], optional
        Keys to load from the module

    Returns
    -------
    loaded_stuff : module or object or tuple
        A tuple is returned if `keys` is a list.
        Return None if import fails.

    """
    try:
        module = importlib.import_module(path)
    except ImportError:
        if keys is None or isinstance(keys, str):
            return None
        return [None] * len(list(keys))
    if keys is None:
        return module
    if isinstance(keys, str):
        return getattr(module, keys)
    return tuple(getattr(module, key) for key in keys)

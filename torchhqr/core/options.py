"""Structures of options with defaults and validators."""
import copy


class Validated:
    """An object used to associate a validator function to an option value.

    Examples
    --------
    class MyOption(Option):
        free_param: int = 1
        validated_param: float = Validated(0.5, lambda x: x > 0)
    """

    def __init__(self, default, validator):
        """

        Parameters
        ----------
        default : object
        validator : callable -> bool

        """
        self.default = default
        self.validator = validator


class Option:
    """A base class for a structure of options.

    Options are declared as (annotated) class attributes with a default
    value. On instantiation, every default is deep-copied into the
    instance so that mutable defaults are never shared between objects.
    A default can be wrapped in `Validated` to attach a validator that
    is checked on every assignment.

    Unknown keys are rejected (`KeyError`) and values that fail
    validation raise a `ValueError`.

    Examples
    --------
    ```python
    >> class SolverOption(Option):
    >>     max_iter: int = Validated(10, lambda x: x > 0)
    >>     verbose: bool = False
    >>
    >> opt = SolverOption(verbose=True)
    >> opt.update({'max_iter': 20})
    >> opt.max_iter = 0  # ValueError
    ```
    """
    _validators = None
    __protected_fields__ = ('copy', 'keys', 'items', 'values', 'update')

    def __init__(self, *args, **kwargs):
        """

        Parameters
        ----------
        args : sequence
            ordered as in `self.keys()`
        kwargs : dict of `option_name: value`
        """
        cls = type(self)
        self._validators = dict()
        for key in self.keys():
            value = getattr(cls, key)
            if isinstance(value, Validated):
                self._validators[key] = value.validator
                value = value.default
            super().__setattr__(key, copy.deepcopy(value))

        if len(args) > len(self.keys()):
            raise ValueError('Too many values for this object')
        for key, value in zip(self.keys(), args):
            setattr(self, key, value)
        self.update(kwargs)

    def __setattr__(self, key, value):
        if key.startswith('_'):
            return super().__setattr__(key, value)
        if key not in self.keys():
            raise KeyError(f'Key "{key}" does not exist in structure '
                           f'{type(self).__name__}')
        validator = self._validators.get(key, None)
        if validator is not None and not validator(value):
            raise ValueError(f'Value {value} failed validation for '
                             f'option "{key}"')
        return super().__setattr__(key, value)

    def update(self, other=None, **kwargs):
        """Update attributes from another option object or dictionary.

        Parameters
        ----------
        other : Option or dict_like or iterable of (key, value), optional
        kwargs : dict
            `for k in kwargs: self[k] = kwargs[k]`

        Returns
        -------
        self

        """
        if other is not None:
            if hasattr(other, 'keys'):
                other = [(key, other[key]) for key in other.keys()]
            for key, value in other:
                setattr(self, key, value)
        for key, value in kwargs.items():
            setattr(self, key, value)
        return self

    @classmethod
    def keys(cls):
        """

        Returns
        -------
        list[str]
            All existing keys, in the same order as they were defined.

        """
        keys = []
        for klass in reversed(cls.__mro__):
            if klass is object or not issubclass(klass, Option):
                continue
            for key in vars(klass):
                if (key.startswith('_') or key in keys
                        or key in Option.__protected_fields__
                        or callable(getattr(klass, key))):
                    continue
                keys.append(key)
        return keys

    def __getitem__(self, key):
        if key not in self.keys():
            raise KeyError(key)
        return getattr(self, key)

    def __setitem__(self, key, value):
        setattr(self, key, value)

    def __iter__(self):
        return iter(self.keys())

    def items(self):
        """Iterate over all `(key, value)` pairs."""
        for key in self.keys():
            yield key, self[key]

    def values(self):
        """Iterate over all values."""
        for key in self.keys():
            yield self[key]

    def __eq__(self, other):
        if not isinstance(other, Option):
            other = type(self)().update(other)
        if type(self) != type(other):
            return False
        return all(self[key] == other[key] for key in self.keys())

    def copy(self):
        """Deep copy of the object."""
        return copy.deepcopy(self)

    def __str__(self):
        width = max(len(key) for key in self.keys())
        return '\n'.join(f'{key:{width}s} : {value}'
                         for key, value in self.items())

    def __repr__(self):
        return f'{type(self).__name__}({dict(self.items())!r})'

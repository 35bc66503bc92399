"""
Scalar value conversion for bound arguments.

convert(value, target) turns a raw default or a user-supplied string into the
slot's declared type:

- a value already of the target type is returned unchanged, except that a
  bool is still converted for an int slot (int(True) == 1);
- Any, object, or a non-type annotation that is not a union is passed through;
- Optional[X] / X | None accepts None and otherwise converts to X; other
  unions try each member in declaration order;
- None is rejected for non-optional slots;
- bool accepts true/false, yes/no, on/off, 1/0 (case-insensitive);
- Enum subclasses accept a member, a member name, or a member value;
- every other type is called with the value (int("42"), Path("a"), ...).

Failures raise ConversionError; the binder wraps it into an
InvalidValueConversionError naming the declaration.
"""
import enum
import types
import typing

_TRUTHY = frozenset({"true", "yes", "on", "1"})
_FALSY = frozenset({"false", "no", "off", "0"})


class ConversionError(ValueError):
    """
    raised when a value cannot be converted to a slot type.
    """

    def __init__(self, value, target, reason=None):
        self.value = value
        self.target = target
        self.reason = reason
        super().__init__(
            "cannot convert %r to %s%s" % (value, typename(target), f": {reason}" if reason else "")
        )


def typename(target, /):
    """
    readable name of a type or annotation ('int', 'int | None', ...).
    """
    if isinstance(target, type) and not typing.get_args(target):
        return target.__qualname__
    return repr(target).replace("typing.", "")


def _convert_bool(value):
    if isinstance(value, str):
        if (lowered := value.strip().lower()) in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
        raise ConversionError(value, bool, "expected one of %s" % ", ".join(sorted(_TRUTHY | _FALSY)))
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ConversionError(value, bool)


def _convert_enum(value, target):
    if isinstance(value, str) and value in target.__members__:
        return target.__members__[value]
    try:
        return target(value)
    except ValueError:
        pass
    # members with non-string values may still be spelled on the command line
    for member in target:
        if str(member.value) == str(value):
            return member
    raise ConversionError(value, target, "expected one of %s" % ", ".join(target.__members__))


def convert(value, target, /):
    """
    convert value to target; see the module docstring for the rules.
    """
    if target is typing.Any or target is object:
        return value

    origin = typing.get_origin(target)

    if origin is typing.Union or origin is types.UnionType:
        members = typing.get_args(target)
        if value is None:
            if type(None) in members:
                return None
            raise ConversionError(value, target)
        reasons = []
        for member in members:
            if member is type(None):
                continue
            try:
                return convert(value, member)
            except ConversionError as exception:
                reasons.append(exception.reason or typename(member))
        raise ConversionError(value, target, "; ".join(reasons) or None)

    if origin is typing.Literal:
        for choice in typing.get_args(target):
            if value == choice or str(value) == str(choice):
                return choice
        raise ConversionError(value, target)

    if origin is not None:
        # parametrized generics (list[int], ...) are beyond scalar conversion
        raise ConversionError(value, target, "only scalar types are supported")

    if value is None:
        raise ConversionError(value, target, "value is required")

    if not isinstance(target, type):
        if callable(target):
            try:
                return target(value)
            except (ValueError, TypeError, ArithmeticError) as exception:
                raise ConversionError(value, target, str(exception)) from exception
        return value

    if target is bool:
        return value if isinstance(value, bool) else _convert_bool(value)

    if isinstance(value, target) and not (isinstance(value, bool) and target is not bool):
        return value

    if issubclass(target, enum.Enum):
        return _convert_enum(value, target)

    try:
        return target(value)
    except (ValueError, TypeError, ArithmeticError) as exception:
        raise ConversionError(value, target, str(exception)) from exception


__all__ = (
    "ConversionError",
    "convert",
    "typename",
)

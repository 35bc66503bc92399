r"""
Bindery argument markers and declarations.

Overview
- Argument: the marker placed in a class body. It is a data descriptor, so
  the slot it occupies is an ordinary instance attribute once bound:

      class Server:
          port: int = Argument("port", "p", default="8080", help="listen port")
          host: str = Argument("host", default="localhost")

  Argument.__set_name__ records the owning class and the attribute name; the
  pair (owner, slot) is what the binder matches against live instances.

- Declaration: the immutable record the registry builds from a bound
  Argument. It captures names, default, help, the resolved slot type, and the
  originating (owner, slot). Equality and hashing use (owner, slot) only.

- declare(argument): memoized Argument -> Declaration factory, so the
  registry and the instance store share the very same Declaration objects.

Metadata (sanitized on construction)
- long / short: names without delimiters; at least one is required. Each must
  match r"[^\W_]+(-[^\W_]+)*" (letters and digits, single inner hyphens, no
  underscores). long and short must differ.
- default: any value, converted to the slot type on every assignment.
- help: Unset | str | Text, trimmed and non-empty when provided.
- type: Unset | callable converter overriding the annotation.
- hidden: bool, suppresses the argument from rendered help.

Slot type resolution (first hit wins)
1. the explicit type= converter,
2. the owner's annotation for the slot (typing.get_type_hints),
3. type(default) when the default is not None,
4. str.
"""
import builtins
import functools
import logging
import re
import typing

from rich.text import Text

from .faults import FaultCode
from .utils import *

logger = logging.getLogger(__name__)


class ArgumentType(type):
    """
    Metaclass giving markers and declarations read-only fields and stable
    representations.

    - every name in __introspectable__ becomes a mirror() property over "_name";
    - __typename__ is the hyphenated lower-case class name, used in messages;
    - __repr__/__rich_repr__ list the introspectable fields.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join("%s=%r" % pair for pair in self.__rich_repr__()),
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_names(cls, metadata, /):
    """
    Internal: validate long/short names in place (Unset when omitted).
    """
    for field in ("long", "short"):
        if not isinstance(name := metadata[field], str | Unset):
            raise TypeError(f"{cls.__typename__} {field!r} name must be a string")
        if isinstance(name, str):
            if not (name := name.strip()):
                raise ValueError(f"{cls.__typename__} {field!r} name cannot be empty")
            if not re.fullmatch(r"[^\W_]+(-[^\W_]+)*", name):
                raise ValueError(
                    f"{cls.__typename__} {field!r} name {name!r} must be a shell-style name without delimiters"
                )
        metadata[field] = name

    if not metadata["long"] and not metadata["short"]:
        raise TypeError(f"{cls.__typename__} must specify a long or a short name")
    if metadata["long"] == metadata["short"]:
        raise ValueError(f"{cls.__typename__} long and short names must differ")

    metadata["long"] = coalesce(metadata["long"])
    metadata["short"] = coalesce(metadata["short"])


def _sanitize_help(cls, metadata, /):
    if not isinstance(help := metadata["help"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'help' must be a string")
    elif isinstance(help, str) and not (help := help.strip()):
        raise ValueError(f"{cls.__typename__} 'help' cannot be empty")
    metadata["help"] = coalesce(help)


class Argument(metaclass=ArgumentType):
    """
    Marker declaring a class attribute as a bindable command-line argument.

    The marker is a data descriptor: reading the attribute on an instance
    returns the bound value (AttributeError until something bound it), and
    assigning stores into the instance's __dict__ under the slot name. Reading
    it on the class returns the marker itself.
    """

    __introspectable__ = (
        "long",
        "short",
        "default",
        "help",
        "type",
        "hidden",
        "owner",
        "slot",
    )

    def __new__(
            cls,
            long=Unset,
            short=Unset,
            *,
            default=None,
            help=Unset,
            type=Unset,
            hidden=False,
    ):
        metadata = {
            "long": long,
            "short": short,
            "default": default,
            "help": help,
            "type": type,
            "hidden": bool(hidden),
        }
        _sanitize_names(cls, metadata)
        _sanitize_help(cls, metadata)
        if type is not Unset and not callable(type):
            raise TypeError(f"{cls.__typename__} 'type' must be callable")

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        # Bound by __set_name__ when the owning class is created.
        self._owner = None
        self._slot = None
        return self

    @property
    def names(self):
        return tuple(name for name in (self.long, self.short) if name)

    def __set_name__(self, owner, name):
        if self._owner is not None:
            raise TypeError(
                f"{type(self).__typename__} already declared as "
                f"{self._owner.__qualname__}.{self._slot}, cannot reuse it as {owner.__qualname__}.{name}"
            )
        self._owner = owner
        self._slot = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        try:
            return instance.__dict__[self._slot]
        except KeyError:
            raise AttributeError(
                f"argument {self._slot!r} of {builtins.type(instance).__qualname__!r} has not been bound yet "
                f"(code {FaultCode.UNBOUND_ARGUMENT.normalize()}); register the instance and initialize first",
                name=self._slot,
                obj=instance,
            ) from None

    def __set__(self, instance, value):
        instance.__dict__[self._slot] = value

    def __delete__(self, instance):
        try:
            del instance.__dict__[self._slot]
        except KeyError:
            raise AttributeError(self._slot) from None


def _resolve_type(argument):
    """
    Internal: the type a declaration converts its values to.
    """
    if argument.type is not Unset:
        return argument.type
    try:
        hints = typing.get_type_hints(argument.owner)
    except (NameError, TypeError, AttributeError) as exception:
        logger.debug("annotations of %s are unavailable: %s", argument.owner.__qualname__, exception)
        hints = {}
    if (annotation := hints.get(argument.slot, Unset)) is not Unset and typing.get_origin(annotation) is not typing.ClassVar:
        return annotation
    if argument.default is not None:
        return type(argument.default)
    return str


class Declaration(metaclass=ArgumentType):
    """
    Immutable description of one bindable argument, scanned from an Argument.

    Identity is the (owner, slot) pair the argument was declared on, never its
    names: two declarations compare equal exactly when they originate from the
    same attribute of the same class.
    """

    __introspectable__ = (
        "long",
        "short",
        "default",
        "help",
        "type",
        "hidden",
        "owner",
        "slot",
    )

    def __new__(cls, argument, /):
        if not isinstance(argument, Argument):
            raise TypeError(f"{cls.__typename__} must be built from an argument")
        if argument.owner is None:
            raise TypeError(f"{cls.__typename__} argument must be declared inside a class body")

        self = super().__new__(cls)
        self._long = argument.long
        self._short = argument.short
        self._default = argument.default
        self._help = argument.help
        self._type = _resolve_type(argument)
        self._hidden = argument.hidden
        self._owner = argument.owner
        self._slot = argument.slot
        self._argument = argument
        return self

    @property
    def argument(self):
        return self._argument

    @property
    def names(self):
        """
        Non-empty names, long first.
        """
        return tuple(name for name in (self.long, self.short) if name)

    @property
    def label(self):
        """
        "Owner.slot", used in diagnostics.
        """
        return f"{self.owner.__qualname__}.{self.slot}"

    @property
    def order(self):
        """
        Stable sort key: owner module, owner qualified name, slot.
        """
        return self.owner.__module__ or "", self.owner.__qualname__, self.slot

    def __eq__(self, other):
        if not isinstance(other, Declaration):
            return NotImplemented
        return self.owner is other.owner and self.slot == other.slot

    def __hash__(self):
        return hash((id(self.owner), self.slot))

    def __setattr__(self, name, value):
        if hasattr(self, "_argument"):
            raise AttributeError(f"{type(self).__typename__} is immutable")
        super().__setattr__(name, value)


@functools.cache
def declare(argument, /):
    """
    Return the Declaration for a bound Argument (one per argument, memoized).
    """
    declaration = Declaration(argument)
    logger.debug("declared %s as %r", declaration.label, declaration.names)
    return declaration


__all__ = (
    "Argument",
    "Declaration",
    "declare",
)

# Not part of the public API.
del ArgumentType

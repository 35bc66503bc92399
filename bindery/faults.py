"""
Bindery faults (errors and warnings) and rendering.

Scope
- FaultCode: stable numeric identifiers for every binding issue.
- BindingException / BindingWarning: base types carrying a message plus an
  options mapping (title, code, hint and context such as token/index/
  declaration/value), able to render themselves with rich.
- BindingExit: an exception group bundling every fault of a deferred pass.
- trigger(): central entry point to surface a fault (raise, or print and exit
  in shell mode).
- getdoc(): optional description lookup for a code from the host application.

Propagation
- Scan-time problems (SCAN_TYPE_UNAVAILABLE) never reach this layer as
  exceptions; the registry logs and skips them.
- Binding-time faults abort the current pass before anything is assigned.

Host configuration (read from __main__ when present)
- __prog__:   program name shown in headers (defaults to argv[0]).
- __styles__: style overrides for the rich renderers.
- __codes__:  mapping FaultCode -> label, to remap numeric ids.
- __docs__:   mapping FaultCode -> short documentation string.
"""
import copy
import inspect
import os.path
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used by the binder (stable identifiers).

    grouping
    - discovery (2110x): SCAN_TYPE_UNAVAILABLE (recovered, logged only)
    - tokens (2111x): MALFORMED_TOKEN, UNRECOGNIZED_TOKEN, MISSING_VALUE,
      DUPLICATED_ARGUMENT
    - values (2112x): INVALID_VALUE_CONVERSION
    - declarations (2113x): AMBIGUOUS_DECLARATION_NAME
    - warnings/notices (22xxx): UNBOUND_ARGUMENT, UNBOUND_INSTANCE
    """
    # --- discovery ---
    SCAN_TYPE_UNAVAILABLE       = 21101

    # --- tokens ---
    MALFORMED_TOKEN             = 21111
    UNRECOGNIZED_TOKEN          = 21112
    MISSING_VALUE               = 21113
    DUPLICATED_ARGUMENT         = 21114

    # --- values ---
    INVALID_VALUE_CONVERSION    = 21121

    # --- declarations ---
    AMBIGUOUS_DECLARATION_NAME  = 21131

    # --- notices ---
    UNBOUND_ARGUMENT            = 22111
    UNBOUND_INSTANCE            = 22112

    def normalize(self):
        """
        return a host-normalized label for this code (__main__.__codes__), or
        the numeric value as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _prog(options):
    main = __import__("__main__")
    return options.get("prog") or getattr(main, "__prog__", None) or os.path.basename(sys.argv[0]) or "bindery"


def _stylers(options, styles):
    """
    build the (styler, text) pair shared by every renderer in this module.
    """
    colorful = options.get("colorful", True)

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment if colorful else Text(fragment.plain)
        return Text(str(fragment), style if colorful else "")

    return styler, text


class _Fault:
    """
    shared behaviour of BindingException and BindingWarning.
    """
    __palette__ = {}

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def hint(self):
        return self.options.get("hint")

    def __str__(self):
        return self.message if self.message is not Unset else ""

    def __rich__(self):
        styles = defaultdict(str, self.__palette__ | getattr(__import__("__main__"), "__styles__", {}))
        styler, text = _stylers(self.options, styles)

        header = Text.assemble(
            "[ ",
            text(_prog(self.options), styler("prog-name")),
            " — ",
            text(self.code.normalize() if self.code else "?", styler("code")),
            " | ",
            text(str(self.options.get("title", type(self).__name__)).title(), styler("title")),
            " ]"
        )
        message = text(str(self), styler("message"))
        hint = Text.assemble(text(" → ", styler("hint-arrow")), text(self.hint, styler("hint")))

        if self.options.get("fancy", False):
            width = self.options.get("ratio") and int((console.width - 4) * self.options["ratio"])
            return Panel(Group(message, hint), title=header, title_align="left", width=width or None)

        return Group(header, message, hint)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class BindingException(_Fault, Exception):
    __palette__ = {
        "prog-name": "bold #E6E6F0",
        "code": "bold #00E5FF",
        "title": "bold #FF4DA6",
        "message": "#C8C8D0",
        "hint-arrow": "#9CE19C dim",
        "hint": "italic #9CE19C",
    }

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)


class MalformedTokenError(BindingException): ...
class UnrecognizedTokenError(BindingException): ...
class MissingValueError(BindingException): ...
class DuplicatedArgumentError(BindingException): ...
class InvalidValueConversionError(BindingException, ValueError): ...
class AmbiguousDeclarationNameError(BindingException): ...


class BindingWarning(_Fault, Warning):
    __palette__ = {
        "prog-name": "bold #E6E6F0",
        "code": "bold #FFB400",
        "title": "bold #FFC2E0",
        "message": "#D6D6DE",
        "hint-arrow": "#B8EFAF dim",
        "hint": "italic #B8EFAF",
    }

    def __trigger__(self):
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)


class UnboundInstanceWarning(BindingWarning): ...


class BindingExit(ExceptionGroup):
    """
    every fault collected during one deferred binding pass.
    """

    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad binding", tuple(exceptions))

    def __init__(self, exceptions, **options):
        super().__init__("bad binding", tuple(exceptions))
        self.options = MappingProxyType(options)

    def __rich__(self):
        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "title": "bold #FF4DA6",
        } | getattr(__import__("__main__"), "__styles__", {}))
        styler, text = _stylers(self.options, styles)

        header = Text.assemble(
            "[ ",
            text(_prog(self.options), styler("prog-name")),
            " — ",
            text(self.message.title(), styler("title")),
            " ]"
        )
        renders = [copy.replace(exception, ratio=2/3) for exception in self.exceptions]

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ (see the base classes).
    - options are merged into the fault via copy.replace() before triggering.
    - outside shell mode errors are raised and warnings go through warnings.warn;
      in shell mode both are printed on stderr and errors exit with status 1.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation for a fault code, from __main__.__docs__.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "FaultCode",
    "BindingException",
    "MalformedTokenError",
    "UnrecognizedTokenError",
    "MissingValueError",
    "DuplicatedArgumentError",
    "InvalidValueConversionError",
    "AmbiguousDeclarationNameError",
    "BindingWarning",
    "UnboundInstanceWarning",
    "BindingExit",
    "trigger",
    "getdoc",
)

"""
Bindery context: registration and the binding passes.

A Context owns one Registry (what can be bound) and one InstanceStore (what
receives values). Several contexts may live side by side; the module-level
`default` context and the register/initialize/initialize_defaults functions
give the usual process-wide entry points.

Quick start
    from bindery import Argument, register, initialize

    class Server:
        port: int = Argument("port", "p", default="8080", help="listen port")
        host: str = Argument("host", default="localhost", help="listen address")

    server = register(Server())
    if initialize(sys.argv[1:], ("--", "-"), "help"):
        ...  # help requested, nothing was bound
    server.port  # 8080, or whatever --port/-p said

Binding pass (Context.initialize)
1. help detection: any token equal to <delimiter><help> returns True at once;
   nothing is assigned.
2. resolution: tokens are paired into (declaration, raw value); see
   bindery.tokens for the grammar.
3. conversion: every supplied value, and every default that has at least one
   target, is converted to its declaration's type.
4. defaults are assigned for declarations without a supplied value, then
   supplied values, each onto every matching target in registration order.

Steps 1 to 3 finish before anything is assigned: a fault leaves every
registered instance untouched. Immediate contexts raise the first fault;
deferred contexts report every fault of the pass at once (BindingExit).
"""
import functools
import logging
import threading

from rich.console import Console
from rich.table import Table
from rich.text import Text

from . import tokens as _tokens
from .conversion import ConversionError, convert, typename
from .faults import *
from .registry import Registry
from .store import InstanceStore, resolve
from .utils import Unset, coalesce, ordinal

logger = logging.getLogger(__name__)

stdout = Console()


class Context:
    """
    Binding context: a registry, an instance store, and runtime options.

    Options
    - shell:    print faults with rich and exit(1) instead of raising; print
                help automatically when it is requested.
    - fancy:    render faults inside panels.
    - colorful: style rendered faults and help.
    - deferred: collect every fault of a pass and raise them as a BindingExit.
    """

    def __init__(
            self,
            registry=Unset,
            /,
            *,
            shell=False,
            fancy=False,
            colorful=True,
            deferred=False,
            prog=Unset,
            console=Unset,
    ):
        if not isinstance(registry, Registry | Unset):
            raise TypeError("context 'registry' must be a registry")
        if not isinstance(prog, str | Unset):
            raise TypeError("context 'prog' must be a string")
        self._registry = Registry() if registry is Unset else registry
        self._store = InstanceStore()
        self._lock = threading.RLock()
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._deferred = bool(deferred)
        self._prog = coalesce(prog)
        self._console = coalesce(console, stdout)

    def __repr__(self):
        return "context(registry=%r, instances=%d, shell=%r, deferred=%r)" % (
            self._registry, len(self._store), self._shell, self._deferred
        )

    @property
    def registry(self):
        return self._registry

    @property
    def store(self):
        return self._store

    @property
    def shell(self):
        return self._shell

    @property
    def fancy(self):
        return self._fancy

    @property
    def colorful(self):
        return self._colorful

    @property
    def deferred(self):
        return self._deferred

    def trigger(self, fault, /, **options):
        """
        surface fault with this context's rendering options.
        """
        trigger(
            fault,
            **options,
            shell=self._shell,
            fancy=self._fancy,
            colorful=self._colorful,
            prog=self._prog,
        )

    def register(self, instance, /):
        """
        register instance to receive bound values; returns the instance.

        The same instance may be registered any number of times; each
        registration receives every assignment.
        """
        if instance is None:
            raise TypeError("cannot register None")
        with self._lock:
            targets = self._store.add(instance)
        if not targets:
            self.trigger(UnboundInstanceWarning(
                "%s declares no arguments, registering it has no effect" % type(instance).__qualname__,
                title="instance without arguments",
                code=FaultCode.UNBOUND_INSTANCE,
                hint="declare attributes with Argument(...) on its class",
                instance=instance,
                docs=getdoc(FaultCode.UNBOUND_INSTANCE),
            ))
        return instance

    def _declarations(self):
        try:
            return self._registry.declarations
        except BindingException as fault:
            self.trigger(fault)
            raise

    def _convert(self, declaration, value, report, /, **context):
        try:
            return convert(value, declaration.type)
        except ConversionError as error:
            origin = "value" if "token" in context else "default"
            where = " at %s position" % ordinal(context["index"]) if "index" in context else ""
            report(InvalidValueConversionError(
                "cannot convert %s %r of %s%s to %s" % (
                    origin, value, declaration.label, where, typename(declaration.type)
                ),
                title="invalid value",
                code=FaultCode.INVALID_VALUE_CONVERSION,
                hint=error.reason or "pass a value of type %s" % typename(declaration.type),
                declaration=declaration,
                value=value,
                **context,
                docs=getdoc(FaultCode.INVALID_VALUE_CONVERSION),
            ))
            return Unset

    def initialize_defaults(self, instance, /):
        """
        assign every default onto this one instance only; returns the instance.

        The instance store and any command-line input are left alone, so this is
        safe to call any number of times.
        """
        declarations = self._declarations()
        with self._lock:
            faults = []
            report = faults.append if self._deferred else self.trigger
            plan = []
            for target in resolve(instance):
                if target.declaration not in declarations:
                    continue
                plan.append((target, self._convert(target.declaration, target.declaration.default, report)))
            if faults:
                self.trigger(BindingExit(faults))
            for target, value in plan:
                target.assign(value)
        logger.debug("defaults assigned onto %s (%d slots)", type(instance).__qualname__, len(plan))
        return instance

    def initialize(self, args=(), delimiters=(), help=Unset):
        """
        bind args onto every registered instance.

        returns True when help was requested (nothing is assigned then), False
        once every declaration has been bound to its supplied value or default.
        """
        tokens = _tokens.tokenize(args)
        delimiters = _tokens.delimiters(delimiters)
        if not isinstance(help, str | Unset | None):
            raise TypeError("help parameter must be a string")

        if _tokens.requested(tokens, delimiters, coalesce(help)):
            logger.debug("help requested, binding skipped")
            if self._shell:
                self.helper(delimiters)
            return True

        declarations = self._declarations()
        with self._lock:
            faults = []
            report = faults.append if self._deferred else self.trigger

            supplied = _tokens.resolve(tokens, self._registry, delimiters, report)

            defaults = []
            for declaration in self._registry.ordered(declarations.difference(supplied)):
                if targets := self._store.targets(declaration):
                    defaults.append((targets, self._convert(declaration, declaration.default, report)))

            values = []
            for declaration in self._registry.ordered(supplied.keys()):
                value, position, token = supplied[declaration]
                converted = self._convert(declaration, value, report, token=token, index=position)
                values.append((self._store.targets(declaration), converted))

            if faults:
                self.trigger(BindingExit(faults))

            for targets, value in defaults + values:
                for target in targets:
                    target.assign(value)

        logger.debug(
            "bound %d defaults and %d supplied values onto %d instances",
            len(defaults), len(values), len(self._store),
        )
        return False

    def helper(self, delimiters=("--", "-"), /):
        """
        render every visible declaration as a rich table.
        """
        delimiters = _tokens.delimiters(delimiters) or ("",)
        declarations = self._registry.ordered(self._declarations())
        table = Table(
            title=Text(self._prog or "arguments", style="bold" if self._colorful else ""),
            show_header=True,
            header_style="bold #00E5FF" if self._colorful else "",
            box=None,
        )
        table.add_column("argument", no_wrap=True)
        table.add_column("type")
        table.add_column("default")
        table.add_column("description")

        for declaration in declarations:
            if declaration.hidden:
                continue
            names = []
            if declaration.long:
                names.append(delimiters[0] + declaration.long)
            if declaration.short:
                names.append(delimiters[-1] + declaration.short)
            table.add_row(
                ", ".join(names),
                typename(declaration.type),
                repr(declaration.default),
                declaration.help or "",
            )

        self._console.print(table)


def registered(source=Unset, /, *, context=Unset):
    """
    class decorator registering every new instance after __init__ returns.

        @registered
        class Server: ...

        @registered(context=custom)
        class Worker: ...

    A decorated subclass of a decorated class registers its instances once,
    with its own context.
    """
    if not isinstance(context, Context | Unset):
        raise TypeError("@registered() 'context' must be a context")

    def wrapper(cls, /):
        if not isinstance(cls, type):
            raise TypeError("@registered() must be applied to a class")
        initializer = cls.__init__

        @functools.wraps(initializer)
        def __init__(self, *args, **kwargs):
            initializer(self, *args, **kwargs)
            outermost = next(klass for klass in type(self).__mro__ if "__registered__" in vars(klass))
            if outermost is cls:
                coalesce(vars(cls)["__registered__"], default).register(self)

        cls.__init__ = __init__
        cls.__registered__ = context
        return cls

    if source is Unset:
        return wrapper
    return wrapper(source)


default = Context()
"""
process-wide context with a registry scanning every loaded module.
"""


def register(instance, /):
    return default.register(instance)


def initialize(args=(), delimiters=(), help=Unset):
    return default.initialize(args, delimiters, help)


def initialize_defaults(instance, /):
    return default.initialize_defaults(instance)


__all__ = (
    "Context",
    "registered",
    "default",
    "register",
    "initialize",
    "initialize_defaults",
)

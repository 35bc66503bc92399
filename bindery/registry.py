"""
Bindery registry: the memoized set of every argument declaration.

A Registry is built lazily, exactly once, on first access to .declarations.
Where the declarations come from is decided at construction:

- Registry(Server, Client.port, ...)   explicit classes (with their
                                       subclasses and nested classes) or
                                       Argument markers;
- Registry(modules=("app.**.cli",))    every class of the modules matched by
                                       the given module globs;
- Registry()                           every class of every module loaded in
                                       sys.modules at first access.

Robustness
- a module or class whose members cannot be enumerated, or whose argument
  annotations cannot be evaluated, is skipped and logged at debug level
  (SCAN_TYPE_UNAVAILABLE); the scan never aborts on it.

Names
- by default two declarations may not share a long or short name;
  AmbiguousDeclarationNameError is raised when the registry is built.
- Registry(..., ambiguous=True) accepts shared names: a supplied name then
  binds every declaration that carries it.

Concurrency
- the build runs under a lock with a double check, so concurrent first
  accesses run the scan once and all observe the same frozenset.
"""
import importlib
import logging
import sys
import threading
from collections import defaultdict
from types import MappingProxyType, ModuleType

from .arguments import Argument, Declaration, declare
from .faults import AmbiguousDeclarationNameError, FaultCode, getdoc
from .utils import Unset, mglob

logger = logging.getLogger(__name__)


def _members(namespace):
    # snapshot, modules may be imported concurrently while we iterate
    return list(vars(namespace).values())


class Registry:
    """
    Lazily built, read-mostly collection of Declarations.
    """

    def __init__(self, *sources, modules=Unset, ambiguous=False):
        for source in sources:
            if not isinstance(source, type | Argument | Declaration | ModuleType):
                raise TypeError("registry sources must be classes, modules, arguments or declarations")
        if modules is not Unset:
            if isinstance(modules, str):
                modules = (modules,)
            modules = tuple(modules)
            if not all(isinstance(pattern, str) for pattern in modules):
                raise TypeError("registry 'modules' must be module-glob strings")

        self._sources = sources
        self._modules = modules
        self._ambiguous = bool(ambiguous)
        self._lock = threading.Lock()
        self._declarations = Unset
        self._names = Unset

    def __repr__(self):
        state = "built, %d declarations" % len(self._declarations) if self.built else "pending"
        return f"registry({state})"

    @property
    def built(self):
        return self._declarations is not Unset

    @property
    def ambiguous(self):
        return self._ambiguous

    @property
    def declarations(self):
        """
        frozenset of every Declaration; the first access performs the scan.
        """
        if (declarations := self._declarations) is Unset:
            with self._lock:
                if (declarations := self._declarations) is Unset:
                    declarations = self._build()
        return declarations

    @property
    def names(self):
        """
        read-only mapping of every long/short name to its declarations.
        """
        self.declarations
        return self._names

    def lookup(self, name, /):
        """
        declarations carrying name as long or short name (possibly empty).
        """
        return self.names.get(name, ())

    def ordered(self, declarations=Unset, /):
        """
        declarations (all by default) in stable binding order.
        """
        return sorted(self.declarations if declarations is Unset else declarations, key=lambda x: x.order)

    def __iter__(self):
        return iter(self.ordered())

    def __len__(self):
        return len(self.declarations)

    def __contains__(self, declaration):
        return declaration in self.declarations

    def _build(self):
        declarations = frozenset(self._scan())

        names = defaultdict(list)
        for declaration in sorted(declarations, key=lambda x: x.order):
            for name in declaration.names:
                names[name].append(declaration)

        if not self._ambiguous:
            for name, shared in names.items():
                if len(shared) > 1:
                    raise AmbiguousDeclarationNameError(
                        "name %r is declared by %s" % (name, " and ".join(x.label for x in shared)),
                        title="ambiguous argument name",
                        code=FaultCode.AMBIGUOUS_DECLARATION_NAME,
                        hint="rename one of the arguments, or build the registry with ambiguous=True",
                        name=name,
                        declarations=tuple(shared),
                        docs=getdoc(FaultCode.AMBIGUOUS_DECLARATION_NAME),
                    )

        self._names = MappingProxyType({name: tuple(shared) for name, shared in names.items()})
        self._declarations = declarations
        logger.debug("registry built with %d declarations", len(declarations))
        return declarations

    def _scan(self):
        """
        yield a Declaration for every bound Argument reachable from the sources.
        """
        for source in self._sources:
            if isinstance(source, Declaration):
                yield source
            elif isinstance(source, Argument):
                if source.owner is None:
                    logger.debug("ignoring %r: not declared inside a class body", source)
                    continue
                yield declare(source)

        scanned = set()
        for cls in self._classes():
            # declared or inherited: walk the whole MRO, reading each namespace once
            for klass in cls.__mro__:
                if id(klass) in scanned:
                    continue
                scanned.add(id(klass))
                try:
                    arguments = [object for object in _members(klass) if isinstance(object, Argument)]
                except Exception as exception:
                    self._skip(klass, exception)
                    continue
                for argument in arguments:
                    if argument.owner is None:
                        logger.debug("ignoring %r: not declared inside a class body", argument)
                        continue
                    try:
                        declaration = declare(argument)
                    except Exception as exception:
                        self._skip(klass, exception)
                        continue
                    yield declaration

    def _classes(self):
        """
        every class reachable downwards (nested classes, subclasses) from the
        roots, each once.
        """
        seen = set()
        stack = list(reversed(self._roots()))
        while stack:
            cls = stack.pop()
            if id(cls) in seen:
                continue
            seen.add(id(cls))
            yield cls
            try:
                nested = [object for object in _members(cls) if isinstance(object, type)]
                stack.extend(reversed(nested + type.__subclasses__(cls)))
            except Exception as exception:
                self._skip(cls, exception)

    def _roots(self):
        roots = []
        for source in self._sources:
            if isinstance(source, type):
                roots.append(source)
            elif isinstance(source, ModuleType):
                roots.extend(self._module_classes(source))

        if self._modules is not Unset:
            for pattern in self._modules:
                for name in mglob(pattern):
                    try:
                        module = importlib.import_module(name)
                    except Exception as exception:
                        self._skip(name, exception)
                        continue
                    roots.extend(self._module_classes(module))
        elif not self._sources:
            for module in list(sys.modules.values()):
                if isinstance(module, ModuleType):
                    roots.extend(self._module_classes(module))
        return roots

    def _module_classes(self, module):
        try:
            return [object for object in _members(module) if isinstance(object, type)]
        except Exception as exception:
            self._skip(module, exception)
            return []

    def _skip(self, source, exception):
        logger.debug(
            "skipping %s (code %s): %s: %s",
            getattr(source, "__qualname__", getattr(source, "__name__", source)),
            FaultCode.SCAN_TYPE_UNAVAILABLE.normalize(),
            type(exception).__name__,
            exception,
        )


__all__ = (
    "Registry",
)

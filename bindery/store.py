"""
Bindery instance store and binding targets.

A BindingTarget is one (instance, declaration) pair: a live object and one
marked attribute visible on its type. Targets are resolved once, when the
instance is registered, by walking type(instance).__mro__ the way attribute
lookup does: the first class defining a name wins, so a subclass inherits its
bases' arguments and shadows them when it redefines the name.

The InstanceStore keeps targets in registration order. Registering the same
object twice registers its targets twice; both receive every assignment.
"""
import logging
from .arguments import Argument, declare

logger = logging.getLogger(__name__)


class BindingTarget:
    """
    One marked attribute of one registered instance.
    """
    __slots__ = ("_instance", "_declaration")

    def __init__(self, instance, declaration, /):
        self._instance = instance
        self._declaration = declaration

    @property
    def instance(self):
        return self._instance

    @property
    def declaration(self):
        return self._declaration

    def matches(self, declaration, /):
        return self._declaration == declaration

    def assign(self, value, /):
        # setattr so that overriding descriptors and properties still run
        setattr(self._instance, self._declaration.slot, value)

    def __repr__(self):
        return f"binding-target({type(self._instance).__qualname__}@{id(self._instance):#x}.{self._declaration.slot})"


def resolve(instance, /):
    """
    BindingTargets for every marked attribute visible on type(instance).
    """
    if instance is None:
        raise TypeError("cannot bind arguments onto None")

    targets = []
    seen = set()
    for klass in type(instance).__mro__:
        for name, object in vars(klass).items():
            if name in seen:
                continue
            seen.add(name)
            if isinstance(object, Argument) and object.owner is not None:
                targets.append(BindingTarget(instance, declare(object)))
    return targets


class InstanceStore:
    """
    Append-only, ordered collection of binding targets.
    """

    def __init__(self):
        self._instances = []
        self._targets = []

    def __len__(self):
        return len(self._instances)

    def __iter__(self):
        return iter(tuple(self._instances))

    @property
    def instances(self):
        """
        registered instances in registration order (duplicates included).
        """
        return tuple(self._instances)

    def add(self, instance, /):
        """
        register instance; returns its targets (possibly none).
        """
        targets = resolve(instance)
        self._instances.append(instance)
        self._targets.extend(targets)
        logger.debug(
            "registered %s with %d binding targets",
            type(instance).__qualname__,
            len(targets),
        )
        return tuple(targets)

    def targets(self, declaration, /):
        """
        targets matching declaration, in registration order.
        """
        return tuple(target for target in self._targets if target.matches(declaration))


__all__ = (
    "BindingTarget",
    "InstanceStore",
    "resolve",
)

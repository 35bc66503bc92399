"""
Bindery utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the registry, the binder and the fault layer.
- Public-but-internal leaning: consumers may import them, but they exist to
  keep the higher-level modules short and consistent.

Overview
- UnsetType / Unset
  • Singleton sentinel meaning "not provided", distinct from None (None is a
    legitimate argument default).

- coalesce(value, default=None)
  • Replace Unset with a concrete default while preserving None/0/"".

- rename(callable, name) / @rename("name")
  • Give generated callables a stable __name__/__qualname__.

- mirror("attr")
  • Read-only property over a private backing field (self._attr).

- ordinal(number)
  • Human-friendly 1-based position labels ("first", "12th") used in faults.

- mglob(pattern)
  • Expand "pkg.**.cli" style module globs into importable module names; used
    to scope a registry scan to part of the program.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
    >>> ordinal(3), ordinal(22)
    ('third', '22nd')
"""
import builtins
import functools
import importlib
import pkgutil
import re
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Argument defaults may legitimately be None, so the binder needs a marker
    that cannot collide with user data. A single instance, Unset, is exposed.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a process-wide singleton.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsey values such as None, 0 or "" are returned as-is; only Unset is
    replaced.
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable
    - rename(name)           -> decorator

    Raises TypeError for wrong arity, a non-callable target, a non-string name,
    or callables whose names cannot be updated (e.g., built-ins).
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def mirror(name, /):
    """
    Define a read-only property that exposes the backing attribute "_{name}".

    Declarations are immutable records; their public fields are mirrors so the
    only way to set them is at construction time.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return getattr(self, "_" + name)

    return property(getter)


def ordinal(number, /):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, 113th, …)
    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


@functools.cache
def _translate_segment(segment):
    """
    translate one dot-free glob segment into a regex fragment.
      *      → any run of non-dot chars
      ?      → one non-dot char
      [...]  → character class, [!...] negated
      \\x     → literal x
    """
    size = len(segment)
    index = 0
    parts = []
    while index < size:
        char = segment[index]
        if char == '\\' and index + 1 < size:
            parts.append(re.escape(segment[index + 1]))
            index += 2
            continue
        if char == '*':
            parts.append(r'[^.]*')
        elif char == '?':
            parts.append(r'[^.]')
        elif char == '[':
            start = index + 1
            negated = ''
            if start < size and segment[start] in ('!', '^'):
                negated = '^'
                start += 1
            end = segment.find(']', start)
            if end < 0:
                parts.append(r'\[')
            else:
                parts.append(f'[{negated}{segment[start:end]}]')
                index = end
        else:
            parts.append(re.escape(char))
        index += 1
    return ''.join(parts)


@functools.cache
def _compile_glob(pattern):
    """
    compile a module glob into a regex meant for fullmatch();
    a '**' segment spans zero or more whole segments.
    """
    head, *tail = pattern.split('.')
    body = [_translate_segment(head)]
    for segment in tail:
        if segment == '**':
            body.append(r'(?:\.[A-Za-z_]\w*)*')
        else:
            body.append(r'\.' + _translate_segment(segment))
    return re.compile(''.join(body))


def mglob(source, /):
    """
    expand a dot-separated module glob into fully-qualified module names.

    rules
    - the pattern must start with at least one concrete package segment.
    - a pattern without wildcards is returned as-is (one module name).
    - matching modules are imported lazily by the caller; this function only
      walks package paths, so unimportable prefixes yield an empty list.
    - results are sorted.

    examples
    - "app.*"         → direct children of app
    - "app.**.cli"    → every cli module below app
    """
    if not isinstance(source, str):
        raise TypeError("mglob() argument must be a string")
    elif not (source := source.strip()):
        raise ValueError("mglob() argument must be a non-empty string")

    if re.fullmatch(r"(?!\d)\w+(\.(?!\d)\w+)*", source):
        return [source]

    prefixes = []
    for segment in source.split('.'):
        if not re.fullmatch(r"(?!\d)\w+", segment):
            break
        prefixes.append(segment)

    if not prefixes:
        raise ValueError("mglob() pattern must start with a concrete package segment")

    try:
        package = importlib.import_module(prefix := ".".join(prefixes))
    except ImportError:
        return []

    pattern = _compile_glob(source)
    matches = {prefix} if pattern.fullmatch(prefix) else set()

    for metadata in pkgutil.walk_packages(getattr(package, "__path__", ()), prefix + '.'):
        if pattern.fullmatch(metadata.name):
            matches.add(metadata.name)

    return sorted(matches)


Unset = UnsetType()
"""
Internal sentinel for "not provided" (see UnsetType).
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "ordinal",
    "mglob",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)

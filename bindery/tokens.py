"""
Bindery token grammar.

Input is a flat sequence of tokens (or one shell-like string, split with
shlex). Tokens are read left to right as name/value pairs:

    --port 8080        name token, then the value token (taken verbatim,
                       even when it starts with a delimiter)
    --port=8080        name and value in a single token
    -p 8080            any recognized delimiter works with long or short names

Rules
- a name token must start with one of the recognized delimiters; when several
  match, the longest one is stripped ("--" before "-");
- the stripped name is looked up against every declaration's long and short
  names;
- a name token with no recognized delimiter is malformed, an unknown name is
  unrecognized, a trailing name without a value is missing its value, and a
  declaration supplied twice is duplicated.

Every problem is handed to report(fault). When report raises (the default
behaviour of an immediate binder) resolution stops at the first fault; when it
collects (deferred mode) resolution goes on so that every fault is reported.
"""
import difflib
import logging
import shlex
from collections.abc import Iterable

from .faults import (
    FaultCode,
    MalformedTokenError,
    UnrecognizedTokenError,
    MissingValueError,
    DuplicatedArgumentError,
    getdoc,
)
from .utils import Unset, ordinal

logger = logging.getLogger(__name__)


def tokenize(args, /):
    """
    normalize args into a tuple of strings; a single string is shell-split.
    """
    if args is None:
        return ()
    if isinstance(args, str):
        return tuple(shlex.split(args))
    if not isinstance(args, Iterable):
        raise TypeError("arguments must be a string or an iterable of strings")
    tokens = tuple(args)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("arguments must be a string or an iterable of strings")
    return tokens


def delimiters(values, /):
    """
    normalize delimiters into a tuple sorted longest first.
    """
    if values is None:
        return ()
    if isinstance(values, str):
        values = (values,)
    result = set()
    for value in values:
        if not isinstance(value, str):
            raise TypeError("parameter delimiters must be strings")
        if not value:
            raise ValueError("parameter delimiters cannot be empty")
        result.add(value)
    return tuple(sorted(result, key=lambda x: (-len(x), x)))


def requested(tokens, delimiters, help, /):
    """
    True when any token is exactly a delimiter followed by the help name; an
    empty help name makes a bare delimiter the help token, None disables it.
    """
    if help is None:
        return False
    candidates = {delimiter + help for delimiter in delimiters}
    return any(token in candidates for token in tokens)


def strip(token, delimiters, /):
    """
    (delimiter, name) for a name token, or Unset when no delimiter applies.
    """
    for delimiter in delimiters:
        if token.startswith(delimiter) and len(token) > len(delimiter):
            return delimiter, token[len(delimiter):]
    return Unset


def resolve(tokens, registry, delimiters, report, /):
    """
    map each supplied Declaration to its raw value.

    returns a dict {declaration: (value, position, token)} in input order.
    """
    supplied = {}
    hint = "use %s (for example: %s)" % (
        " or ".join(repr(delimiter + "<name> <value>") for delimiter in reversed(delimiters)) or "a delimiter",
        (delimiters[0] if delimiters else "--") + "name=value",
    )

    index = 0
    while index < len(tokens):
        token = tokens[index]
        position = index + 1

        if (stripped := strip(token, delimiters)) is Unset:
            report(MalformedTokenError(
                "expected an argument name at %s position, got %r" % (ordinal(position), token),
                title="malformed argument name",
                code=FaultCode.MALFORMED_TOKEN,
                hint=hint,
                token=token,
                index=position,
                docs=getdoc(FaultCode.MALFORMED_TOKEN),
            ))
            index += 1
            continue

        delimiter, name = stripped
        name, inline, value = name.partition("=")
        if inline:
            index += 1
        elif index + 1 < len(tokens):
            value = tokens[index + 1]
            index += 2
        else:
            report(MissingValueError(
                "argument %r at %s position has no value" % (token, ordinal(position)),
                title="missing argument value",
                code=FaultCode.MISSING_VALUE,
                hint="pass a value after it (for example: %s <value> or %s=<value>)" % (token, token),
                token=token,
                index=position,
                docs=getdoc(FaultCode.MISSING_VALUE),
            ))
            index += 1
            continue

        if not (declarations := registry.lookup(name)):
            suggestions = difflib.get_close_matches(name, registry.names.keys(), 5)
            if suggestions:
                advice = "did you mean %r?" % (delimiter + suggestions[0])
            else:
                advice = "check the spelling; known names are %s" % (
                    ", ".join(repr(delimiter + known) for known in sorted(registry.names)) or "none"
                )
            report(UnrecognizedTokenError(
                "unrecognized argument %r at %s position" % (delimiter + name, ordinal(position)),
                title="unrecognized argument",
                code=FaultCode.UNRECOGNIZED_TOKEN,
                hint=advice,
                token=token,
                name=name,
                index=position,
                suggestions=tuple(suggestions),
                docs=getdoc(FaultCode.UNRECOGNIZED_TOKEN),
            ))
            continue

        for declaration in declarations:
            if declaration in supplied:
                _, first, _ = supplied[declaration]
                report(DuplicatedArgumentError(
                    "argument %r at %s position was already given at %s position" % (
                        delimiter + name, ordinal(position), ordinal(first)
                    ),
                    title="duplicated argument",
                    code=FaultCode.DUPLICATED_ARGUMENT,
                    hint="pass %s only once" % (delimiter + name),
                    token=token,
                    index=position,
                    declaration=declaration,
                    docs=getdoc(FaultCode.DUPLICATED_ARGUMENT),
                ))
                continue
            supplied[declaration] = value, position, token
            logger.debug("%s supplied as %r at position %d", declaration.label, value, position)

    return supplied


__all__ = (
    "tokenize",
    "delimiters",
    "requested",
    "strip",
    "resolve",
)

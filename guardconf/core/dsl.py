"""Keyword registration for build-script directives.

Task methods marked with ``@directive`` may be named in a build script.
Methods marked with ``@keyword`` may additionally appear as bare words
(property-style, without arguments). For every keyword the
``with_dsl_aliases`` class decorator adds a ``dsl_<name>()`` alias that
performs the same mutation and returns None.
"""

from __future__ import annotations

from typing import Any, Callable, List, Type, TypeVar

T = TypeVar("T")

_DIRECTIVE = "__guardconf_directive__"
_KEYWORD = "__guardconf_keyword__"
DSL_PREFIX = "dsl_"


def directive(method: Callable[..., Any]) -> Callable[..., Any]:
    """Mark a method as callable from a build script."""
    setattr(method, _DIRECTIVE, True)
    return method


def keyword(method: Callable[..., Any]) -> Callable[..., Any]:
    """Mark a method as usable from a build script without arguments."""
    setattr(method, _DIRECTIVE, True)
    setattr(method, _KEYWORD, True)
    return method


def _alias(method: Callable[..., Any]) -> Callable[..., None]:
    def alias(self: Any) -> None:
        method(self)
        return None

    alias.__name__ = f"{DSL_PREFIX}{method.__name__}"
    alias.__qualname__ = alias.__name__
    alias.__doc__ = f"Same as ``{method.__name__}()``; always returns None."
    return alias


def with_dsl_aliases(cls: Type[T]) -> Type[T]:
    """Add a ``dsl_<name>`` alias for every ``@keyword`` method of ``cls``."""
    for name in keywords(cls):
        setattr(cls, f"{DSL_PREFIX}{name}", _alias(getattr(cls, name)))
    return cls


def keywords(cls: type) -> List[str]:
    """Names of the bare-word keywords of a class, sorted."""
    return sorted(
        name
        for name in dir(cls)
        if not name.startswith(DSL_PREFIX) and getattr(getattr(cls, name), _KEYWORD, False)
    )


def directives(cls: type) -> List[str]:
    """Names of all build-script directives of a class, sorted."""
    return sorted(
        name
        for name in dir(cls)
        if not name.startswith(DSL_PREFIX) and getattr(getattr(cls, name), _DIRECTIVE, False)
    )

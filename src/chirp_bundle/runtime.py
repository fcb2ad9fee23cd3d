"""Runtime support for generated template bundles.

Inlined verbatim at the top of every artifact, so it must stay
self-contained: kida is the only import outside the standard library.
"""

import builtins
from functools import cache

from kida import Environment


@cache
def _environment(**options):
    return Environment(**options)


def _template(source, filename, **options):
    """Compile *source* once and return its render function."""
    template = _environment(**options).from_string(source)

    def render(**context):
        return template.render(**context)

    render.filename = filename
    return render


def _empty(**context):
    return ""


class _Unit:
    """A renderer whose children are reachable as attributes.

    Children live in their own dict, so a template named like one of the
    slots still resolves to the child and never replaces the renderer.
    """

    __slots__ = ("_children", "_render")

    def __init__(self, render):
        object.__setattr__(self, "_render", render)
        object.__setattr__(self, "_children", {})

    def __getattribute__(self, name):
        children = object.__getattribute__(self, "_children")
        if name in children:
            return children[name]
        return object.__getattribute__(self, name)

    def __setattr__(self, name, value):
        object.__getattribute__(self, "_children")[name] = value

    def __delattr__(self, name):
        try:
            del object.__getattribute__(self, "_children")[name]
        except KeyError:
            raise AttributeError(name) from None

    def __call__(self, **context):
        return object.__getattribute__(self, "_render")(**context)

    def __iter__(self):
        return iter(list(object.__getattribute__(self, "_children").items()))

    def __repr__(self):
        children = sorted(object.__getattribute__(self, "_children"))
        return f"<template unit children={children}>"


def _publish(name, root, namespace):
    """Bind *root* as *name* in the loading namespace.

    Imported artifacts expose it as a module attribute; artifacts run as
    scripts also register it in builtins for every later module.
    """
    namespace[name] = root
    if namespace.get("__name__") == "__main__":
        setattr(builtins, name, root)
    return root

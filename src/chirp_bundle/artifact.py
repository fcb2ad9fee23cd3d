"""Serialize a unit subtree into a loadable Python module.

An artifact is self-contained: the runtime support module is inlined,
an empty root container is declared, every unit of the subtree is bound
to its dotted key path in pre-order, and the root is published under
the configured global name::

    T = _Unit(_template('...', 'page.html', autoescape=True, ...))
    T.sidebar = _Unit(_template('...', 'page.html [sidebar]', ...))
    _publish('Templates', T, globals())
"""

from functools import cache
from importlib.resources import files
from keyword import iskeyword

from chirp_bundle.units import Unit, walk

# Name of the root container inside the artifact
ROOT_NAME = "T"


@cache
def runtime_source() -> str:
    """Return the runtime support module's source text."""
    return files("chirp_bundle").joinpath("runtime.py").read_text(encoding="utf-8")


def _attribute(name: str) -> bool:
    return name.isidentifier() and not iskeyword(name)


def _reference(key_path: tuple[str, ...]) -> str:
    expr = ROOT_NAME
    for name in key_path:
        expr = f"{expr}.{name}" if _attribute(name) else f"getattr({expr}, {name!r})"
    return expr


def bindings(unit: Unit) -> list[str]:
    """One assignment line per unit in the subtree, pre-order.

    Names that are not valid attribute names (``my-page``) are bound
    with ``setattr`` so the artifact still parses.
    """
    lines: list[str] = []
    for key_path, node in walk(unit):
        value = f"_Unit({node.render.code})"
        if not key_path or _attribute(key_path[-1]):
            lines.append(f"{_reference(key_path)} = {value}")
        else:
            lines.append(f"setattr({_reference(key_path[:-1])}, {key_path[-1]!r}, {value})")
    return lines


def serialize(unit: Unit, global_name: str = "Templates") -> str:
    """Build the artifact source for the subtree rooted at *unit*."""
    parts = [
        f"# Generated by chirp-bundle for {unit.key_path_str()}. Do not edit.",
        runtime_source().rstrip("\n"),
        "",
        "",
        *bindings(unit),
        "",
        f"__all__ = [{global_name!r}]",
        f"_publish({global_name!r}, {ROOT_NAME}, globals())",
        "",
    ]
    return "\n".join(parts)

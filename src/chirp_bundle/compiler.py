"""Compiler adapter.

The builder treats the template compiler as opaque: source text and a
filename go in, a renderer comes out (or ``CompileError`` is raised).
A renderer is anything callable with keyword context that can also
describe itself as a Python expression, which is how artifacts embed it.

The default compiler is kida, configured the same way chirp configures
its own environment.
"""

from typing import Any, Protocol

from kida import Environment
from kida.environment.exceptions import TemplateError

from chirp_bundle.errors import CompileError


class Renderer(Protocol):
    """A compiled template.

    ``code`` is a Python expression that rebuilds the renderer inside a
    generated artifact, using the names ``runtime.py`` defines.
    """

    @property
    def code(self) -> str: ...

    def __call__(self, **context: Any) -> str: ...


class Compiler(Protocol):
    """Turns template source into a ``Renderer``.

    Implementations raise ``CompileError`` for rejected source.
    """

    def compile(self, source: str, filename: str) -> Renderer: ...


class EmptyRenderer:
    """Renderer for directories with no template of their own."""

    __slots__ = ()

    @property
    def code(self) -> str:
        return "_empty"

    def __call__(self, **context: Any) -> str:
        return ""

    def __repr__(self) -> str:
        return "EmptyRenderer()"


EMPTY = EmptyRenderer()


class KidaRenderer:
    """A kida template plus the source needed to rebuild it elsewhere."""

    __slots__ = ("_options", "_template", "filename", "source")

    def __init__(self, template: Any, source: str, filename: str, options: dict[str, bool]) -> None:
        self._template = template
        self._options = options
        self.source = source
        self.filename = filename

    @property
    def code(self) -> str:
        options = "".join(f", {key}={value!r}" for key, value in sorted(self._options.items()))
        return f"_template({self.source!r}, {self.filename!r}{options})"

    def __call__(self, **context: Any) -> str:
        return self._template.render(**context)

    def __repr__(self) -> str:
        return f"KidaRenderer({self.filename!r})"


class KidaCompiler:
    """Compile templates with a kida ``Environment``.

    Usage::

        compiler = KidaCompiler(autoescape=True)
        render = compiler.compile("<h1>{{ title }}</h1>", "page.html")
        render(title="Hi")
    """

    __slots__ = ("_env", "options")

    def __init__(
        self,
        *,
        autoescape: bool = True,
        trim_blocks: bool = True,
        lstrip_blocks: bool = True,
    ) -> None:
        self.options = {
            "autoescape": autoescape,
            "trim_blocks": trim_blocks,
            "lstrip_blocks": lstrip_blocks,
        }
        self._env = Environment(**self.options)

    def compile(self, source: str, filename: str) -> KidaRenderer:
        try:
            template = self._env.from_string(source)
        except TemplateError as exc:
            raise CompileError(filename, detail=str(exc)) from exc
        return KidaRenderer(template, source, filename, self.options)

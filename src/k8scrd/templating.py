"""
Renders resource templates against a flat map of string attributes.

Templates use Jinja2 syntax. In addition, Go-style dot references (`{{ .name }}`) are accepted and resolve to the
attribute of the same name, so that templates written for `text/template` with a flat map as the dot value render
unchanged. A dot reference always looks up the attribute map, so it works for any attribute name, including names
such as `true`, `none` or `attributes`.

The attribute map is also available as `attributes`, e.g. `{{ attributes["app-name"] }}` for keys that are not
valid identifiers. Attributes are further exposed as plain Jinja2 variables (`{{ name }}`), except for the reserved
names `attributes`, `true`, `false`, `none` (and their capitalized forms), which keep their Jinja2 meaning.
"""

from dataclasses import dataclass
import re
from typing import Any, Mapping

import jinja2
from loguru import logger

from k8scrd.diagnostics import ProviderError

# Matches a Jinja2 expression or statement tag. An unterminated tag extends to the end of the template so that the
# dot references in it are still rewritten and the parser reports the actual syntax error.
_TAG_PATTERN = re.compile(r"(\{\{|\{%)(.*?)(\}\}|%\}|\Z)", re.S)

# Matches a string literal (kept as is) or a dot reference that does not follow an identifier, a closing bracket
# or another dot, i.e. one that is not an attribute access.
_DOT_REFERENCE_PATTERN = re.compile(r"(\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*')|(?<![\w)\].])\.([A-Za-z_]\w*)")


@dataclass
class TemplateParseError(ProviderError):
    """
    Raised when a template can not be compiled.
    """

    message: str
    lineno: int | None = None

    kind = "TemplateParseError"
    summary = "Invalid custom resource template."

    def __str__(self) -> str:
        location = f" (line {self.lineno})" if self.lineno is not None else ""
        return f"The provided template is not valid as it could not be parsed{location}: {self.message}"


@dataclass
class TemplateExecError(ProviderError):
    """
    Raised when a compiled template fails to render, e.g. because it references an attribute that is not set.
    """

    message: str

    kind = "TemplateExecError"
    summary = "Invalid custom resource template."

    def __str__(self) -> str:
        return f"The provided template could not be rendered with the given attributes: {self.message}"


def translate_dot_references(template: str) -> str:
    """
    Rewrite Go-style dot references in the tags of *template* to lookups in the `attributes` map. Text outside of
    tags and string literals inside of tags are left untouched.
    """

    def _rewrite_reference(match: re.Match[str]) -> str:
        if match.group(1):
            return match.group(1)
        return f'attributes["{match.group(2)}"]'

    def _rewrite_tag(match: re.Match[str]) -> str:
        body = _DOT_REFERENCE_PATTERN.sub(_rewrite_reference, match.group(2))
        return match.group(1) + body + match.group(3)

    return _TAG_PATTERN.sub(_rewrite_tag, template)


class _Attributes(dict[str, str]):
    pass


class _Environment(jinja2.Environment):
    """
    Subscripting the attribute map only looks up keys, never falls back to the attributes of the `dict` object.
    """

    def getitem(self, obj: Any, argument: Any) -> Any:
        if isinstance(obj, _Attributes):
            try:
                return obj[argument]
            except (KeyError, TypeError):
                return self.undefined(hint=f"attribute {argument!r} is not set", obj=obj, name=argument)
        return super().getitem(obj, argument)


class TemplateRenderer:
    """
    Compiles and renders templates. Rendering is strict: referencing an attribute that is not set is an error.
    """

    def __init__(self) -> None:
        self._env = _Environment(
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )

    def compile(self, template: str) -> jinja2.Template:
        """
        Compile the given template.

        Raises:
            TemplateParseError: If the template is malformed.
        """

        try:
            return self._env.from_string(translate_dot_references(template))
        except jinja2.TemplateSyntaxError as exc:
            raise TemplateParseError(exc.message or str(exc), exc.lineno) from exc

    def render(self, template: str, attributes: Mapping[str, Any] | None) -> str:
        """
        Render *template* with the given *attributes*. Every attribute value is converted to its string
        representation. If *attributes* is `None`, the template is rendered with no attributes at all.

        Raises:
            TemplateParseError: If the template is malformed.
            TemplateExecError: If the template can not be rendered with the given attributes.
        """

        compiled = self.compile(template)

        values = _Attributes((key, str(value)) for key, value in (attributes or {}).items())
        for key, value in values.items():
            logger.trace("Template attribute {} => {}", key, value)

        context: dict[str, Any] = {**values, "attributes": values}
        try:
            document = compiled.render(context)
        except jinja2.TemplateError as exc:
            raise TemplateExecError(exc.message or str(exc)) from exc
        except (TypeError, ValueError, ArithmeticError, LookupError) as exc:
            raise TemplateExecError(f"{type(exc).__name__}: {exc}") from exc

        logger.debug("Template after applying attributes:\n{}", document)
        return document

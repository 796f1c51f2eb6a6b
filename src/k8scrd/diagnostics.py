"""
Structured diagnostics that are handed back to the caller of a provider or resource operation instead of raising.
"""

from dataclasses import dataclass
from enum import Enum


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single error or warning, carrying enough detail for the end user to understand what went wrong without
    consulting any logs.
    """

    severity: Severity
    summary: str
    detail: str

    attribute: str | None = None
    """
    The path of the configuration attribute that the diagnostic refers to, if any.
    """

    def __str__(self) -> str:
        prefix = f"{self.severity.value}: {self.summary}"
        if self.attribute:
            prefix += f" (at '{self.attribute}')"
        return f"{prefix}\n  {self.detail}" if self.detail else prefix


class Diagnostics(list[Diagnostic]):
    """
    An accumulating list of diagnostics.
    """

    def add_error(self, summary: str, detail: str, attribute: str | None = None) -> None:
        self.append(Diagnostic(Severity.ERROR, summary, detail, attribute))

    def add_warning(self, summary: str, detail: str, attribute: str | None = None) -> None:
        self.append(Diagnostic(Severity.WARNING, summary, detail, attribute))

    def has_error(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self)

    def errors(self) -> list[Diagnostic]:
        return [d for d in self if d.severity == Severity.ERROR]


class ProviderError(Exception):
    """
    Base class for errors raised by the components of the provider. The resource and provider operations catch
    these and convert them to diagnostics with #to_diagnostic().
    """

    #: A short, stable name for the kind of error, e.g. `TemplateParseError`.
    kind: str = "ProviderError"

    summary: str = "Provider error"

    attribute: str | None = None

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(Severity.ERROR, self.summary, str(self), self.attribute)

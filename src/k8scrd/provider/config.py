"""
Resolution of the provider configuration from statically configured values and environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Final, Literal, Mapping, Union

from loguru import logger

from k8scrd.diagnostics import Diagnostic, Diagnostics, ProviderError


class _Unknown(Enum):
    UNKNOWN = "unknown"

    def __repr__(self) -> str:
        return "UNKNOWN"


UNKNOWN: Final = _Unknown.UNKNOWN
"""
Marks a configuration value that is not yet known, for example because it is derived from an expression that can
only be evaluated later. Distinct from `None`, which means the value was not set at all.
"""

ConfigValue = Union[str, None, Literal[_Unknown.UNKNOWN]]

ENV_PREFIX = "K8S"


@dataclass
class ProviderConfigModel:
    """
    The provider configuration block as supplied by the user. Any value that is `None` falls back to the
    corresponding `<PREFIX>_<NAME>` environment variable.
    """

    host: ConfigValue = None
    """
    The address of the API server host to connect to.
    """

    token: ConfigValue = None
    """
    The bearer token to use in order to authenticate against the API server; if not specified, a username and
    password combination should be provided instead.
    """

    username: ConfigValue = None
    """
    The username to use, in combination with a password, in order to authenticate against the API server. If a bearer
    token has been provided, it will take precedence over username and password basic authentication.
    """

    password: ConfigValue = None
    """
    The password to use, in combination with a username, in order to authenticate against the API server.
    """


@dataclass(frozen=True)
class ProviderConfiguration:
    """
    The resolved, validated provider configuration. It is constructed once when the provider is configured and
    shared read-only by every resource operation.
    """

    host: str
    token: str = field(default="", repr=False)
    username: str = ""
    password: str = field(default="", repr=False)

    @property
    def uses_token(self) -> bool:
        return self.token != ""


@dataclass
class ConfigurationError(ProviderError):
    """
    Raised when the provider configuration can not be resolved. Carries every violation that was found.
    """

    diagnostics: Diagnostics

    kind = "ConfigurationError"
    summary = "Invalid provider configuration"

    @property
    def kinds(self) -> set[str]:
        """
        The kinds of the violations, any of `UnknownConfiguration`, `MissingHost` and `MissingCredentials`.
        """

        return {_KIND_BY_SUMMARY.get(d.summary, self.kind) for d in self.diagnostics}

    @property
    def is_unknown(self) -> bool:
        """
        True if the configuration could not be resolved because values are not yet known. The caller should defer
        the configuration instead of treating it as a permanent failure.
        """

        return "UnknownConfiguration" in self.kinds

    def __str__(self) -> str:
        return "; ".join(d.summary for d in self.diagnostics)

    def to_diagnostic(self) -> Diagnostic:
        return self.diagnostics[0]


UNKNOWN_HOST = "Unknown Kubernetes API Server host"
UNKNOWN_CREDENTIALS = "Unknown Kubernetes API Server credentials"
MISSING_HOST = "Missing Kubernetes API Server host"
MISSING_CREDENTIALS = "Missing Kubernetes API Server credentials"

_KIND_BY_SUMMARY = {
    UNKNOWN_HOST: "UnknownConfiguration",
    UNKNOWN_CREDENTIALS: "UnknownConfiguration",
    MISSING_HOST: "MissingHost",
    MISSING_CREDENTIALS: "MissingCredentials",
}


def resolve_configuration(
    model: ProviderConfigModel,
    environ: Mapping[str, str] | None = None,
    prefix: str = ENV_PREFIX,
) -> ProviderConfiguration:
    """
    Resolve the provider configuration. Values are layered: environment variables first, then every statically
    configured value on top.

    Raises:
        ConfigurationError: If a value is not yet known, or if the host or credentials are missing. All applicable
            violations are reported at once.
    """

    if environ is None:
        environ = os.environ

    diagnostics = Diagnostics()

    if model.host is UNKNOWN:
        diagnostics.add_error(
            UNKNOWN_HOST,
            "The provider cannot create the Kubernetes API client as there is an unknown configuration value for "
            f"the API Server endpoint. Set the value statically in the configuration, or use the {prefix}_HOST "
            "environment variable.",
            attribute="host",
        )

    if model.token is UNKNOWN and (model.username is UNKNOWN or model.password is UNKNOWN):
        diagnostics.add_error(
            UNKNOWN_CREDENTIALS,
            "The provider cannot create the Kubernetes API client as there are no valid credentials specified. "
            "Statically set the value of either the token, or the username and password combination, in the "
            f"configuration, or use the {prefix}_TOKEN, {prefix}_USERNAME and {prefix}_PASSWORD environment "
            "variables.",
        )

    if diagnostics:
        raise ConfigurationError(diagnostics)

    values = _merge_layers(_environment_layer(environ, prefix), _static_layer(model))

    if not values["host"]:
        diagnostics.add_error(
            MISSING_HOST,
            "The provider cannot create the Kubernetes API client as there is a missing or empty value for the API "
            f"Server host. Set the host value in the configuration or use the {prefix}_HOST environment variable. "
            "If either is already set, ensure the value is not empty.",
            attribute="host",
        )

    if not values["token"] and not (values["username"] and values["password"]):
        diagnostics.add_error(
            MISSING_CREDENTIALS,
            "The provider cannot create the Kubernetes API client as there is a missing or empty value for the API "
            "Server credentials. Set the token value, or a valid username/password combination in the configuration "
            f"or use the {prefix}_TOKEN, {prefix}_USERNAME and {prefix}_PASSWORD environment variables. If either "
            "is already set, ensure the values are not empty.",
        )

    if diagnostics:
        raise ConfigurationError(diagnostics)

    configuration = ProviderConfiguration(**values)
    logger.debug(
        "Resolved provider configuration for host '{}' using {} authentication",
        configuration.host,
        "token" if configuration.uses_token else "basic",
    )
    return configuration


def _field_names() -> list[str]:
    return [f.name for f in fields(ProviderConfigModel)]


def _environment_layer(environ: Mapping[str, str], prefix: str) -> dict[str, str]:
    layer = {}
    for name in _field_names():
        key = f"{prefix}_{name.upper()}"
        if key in environ:
            layer[name] = environ[key]
    return layer


def _static_layer(model: ProviderConfigModel) -> dict[str, str]:
    layer = {}
    for name in _field_names():
        value = getattr(model, name)
        if value is not None and value is not UNKNOWN:
            layer[name] = value
    return layer


def _merge_layers(*layers: dict[str, str]) -> dict[str, str]:
    """
    Merge the given layers into a full set of values; later layers take precedence over earlier ones.
    """

    values = {name: "" for name in _field_names()}
    for index, layer in enumerate(layers):
        for name, value in layer.items():
            logger.trace("Configuration value '{}' supplied by layer {}", name, index)
            values[name] = value
    return values

"""
The provider ties together the configuration of the connection to the Kubernetes API server and the resource types
that are applied with it.
"""

from dataclasses import dataclass, field
import os
from typing import TYPE_CHECKING, Mapping

from loguru import logger

from k8scrd.diagnostics import Diagnostics
from k8scrd.provider.config import (
    ConfigurationError,
    ProviderConfigModel,
    ProviderConfiguration,
    resolve_configuration,
)
from k8scrd.provider.schema import Attribute, Schema

if TYPE_CHECKING:
    from k8scrd.resources import ResourceController


@dataclass
class ConfigureResult:
    configuration: ProviderConfiguration | None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


class Provider:
    """
    The `custom-resource` provider.
    """

    TYPE_NAME = "custom-resource"

    def __init__(self, version: str) -> None:
        # "dev" when run from a source checkout, "test" in tests.
        self.version = version

    def metadata(self) -> tuple[str, str]:
        """
        Return the provider type name and version.
        """

        return self.TYPE_NAME, self.version

    def schema(self) -> Schema:
        return Schema(
            description="Applies templated Kubernetes resources with kubectl.",
            attributes={
                "host": Attribute("The address of the API server host to connect to.", required=True),
                "token": Attribute(
                    "The bearer token to use in order to authenticate against the API server; if not specified, a "
                    "username and password combination should be provided instead.",
                    optional=True,
                    sensitive=True,
                ),
                "username": Attribute(
                    "The username to use, in combination with a password, in order to authenticate against the API "
                    "server. If a bearer token has been provided, it will take precedence over username and password "
                    "basic authentication.",
                    optional=True,
                ),
                "password": Attribute(
                    "The password to use, in combination with a username, in order to authenticate against the API "
                    "server. If a bearer token has been provided, it will take precedence over username and password "
                    "basic authentication.",
                    optional=True,
                    sensitive=True,
                ),
            },
        )

    def configure(self, model: ProviderConfigModel, environ: Mapping[str, str] | None = None) -> ConfigureResult:
        """
        Resolve the provider configuration that is shared by all resources.
        """

        logger.trace("Configuring Kubernetes custom resource provider (kubectl)...")
        try:
            configuration = resolve_configuration(model, os.environ if environ is None else environ)
        except ConfigurationError as exc:
            return ConfigureResult(None, exc.diagnostics)
        return ConfigureResult(configuration)

    def resources(self) -> "dict[str, type[ResourceController]]":
        """
        Return the resource types of the provider, keyed by their type name.
        """

        from k8scrd.resources import resource_types

        return {cls.type_name(self.TYPE_NAME): cls for cls in resource_types()}

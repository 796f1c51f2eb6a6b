"""
This package contains the resource types of the provider. Every resource type renders its template and converges
the cluster to the rendered document with `kubectl apply`.
"""

from dataclasses import dataclass, field, replace
from typing import ClassVar

from loguru import logger

from k8scrd.diagnostics import Diagnostics, ProviderError
from k8scrd.provider.config import ProviderConfiguration
from k8scrd.provider.schema import Attribute, Schema
from k8scrd.templating import TemplateRenderer
from k8scrd.tools.kubectl import Kubectl

PLACEHOLDER_ID = "example-id"
"""
The identifier assigned to every created resource. It is not derived from the output of `kubectl apply`.
"""


@dataclass
class ResourceModel:
    """
    The persisted record of a managed resource.
    """

    template: str | None = None
    """ The template to use to define the custom resource. """

    attributes: dict[str, str] | None = None
    """ Template attributes. """

    applied: str | None = None
    """ The actual YAML used to create the resource(s). Computed. """

    id: str | None = None
    """ Identifier for the resource. Computed, and kept stable across updates. """


@dataclass
class Result:
    """
    The outcome of a resource operation. A result never carries both a new state and an error diagnostic.
    """

    state: ResourceModel | None
    """ The state to store for the resource, or `None` if there is nothing to store. """

    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def ok(self) -> bool:
        return not self.diagnostics.has_error()


class ResourceController:
    """
    Base class for the resource types. Implements the create/read/update/delete lifecycle for a #ResourceModel.
    """

    TYPE_SUFFIX: ClassVar[str]
    """ Appended to the provider type name to form the resource type name, e.g. `_instance`. """

    DESCRIPTION: ClassVar[str] = ""

    def __init_subclass__(cls, type_suffix: str, **kwargs) -> None:
        cls.TYPE_SUFFIX = type_suffix
        super().__init_subclass__(**kwargs)

    def __init__(
        self,
        configuration: ProviderConfiguration | None,
        kubectl: Kubectl | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.configuration = configuration
        self.kubectl = kubectl or Kubectl()
        self.renderer = renderer or TemplateRenderer()

    @classmethod
    def type_name(cls, provider_type_name: str) -> str:
        return provider_type_name + cls.TYPE_SUFFIX

    @classmethod
    def schema(cls) -> Schema:
        return Schema(
            description=cls.DESCRIPTION,
            attributes={
                "attributes": Attribute("Template attributes", optional=True),
                "template": Attribute("The template to use to define the custom resource", required=True),
                "applied": Attribute("The actual YAML used to create the resource(s)", computed=True),
                "id": Attribute("Identifier for the resource", computed=True),
            },
        )

    def create(self, plan: ResourceModel) -> Result:
        """
        Create the resource by running `kubectl apply` with the rendered template.
        """

        logger.debug("Creating {} resource", type(self).__name__)
        return self._create_or_update(plan, PLACEHOLDER_ID)

    def read(self, state: ResourceModel) -> Result:
        """
        Return the stored state unchanged. The live state in the cluster is not consulted.
        """

        return Result(state)

    def update(self, plan: ResourceModel) -> Result:
        """
        Re-run `kubectl apply` with the whole rendered template and rely on Kubernetes to converge to it. The
        identifier of the resource is kept.
        """

        logger.debug("Updating {} resource '{}'", type(self).__name__, plan.id)
        return self._create_or_update(plan, plan.id or PLACEHOLDER_ID)

    def delete(self, state: ResourceModel) -> Result:
        """
        Stop tracking the resource. Nothing is removed from the cluster.
        """

        logger.debug("Forgetting {} resource '{}'; nothing is deleted from the cluster", type(self).__name__, state.id)
        return Result(None)

    def _create_or_update(self, plan: ResourceModel, id: str) -> Result:
        diagnostics = Diagnostics()

        if plan.template is None:
            diagnostics.add_error(
                "Invalid argument.",
                "The 'template' attribute is required but was not set.",
                attribute="template",
            )
            return Result(None, diagnostics)

        if self.configuration is None:
            diagnostics.add_error(
                "Unconfigured provider.",
                "The resource cannot be applied because the provider has not been configured.",
            )
            return Result(None, diagnostics)

        try:
            document = self.renderer.render(plan.template, plan.attributes)
            output = self.kubectl.apply(self.configuration, document)
        except ProviderError as exc:
            logger.debug("{} failed: {}", exc.kind, exc)
            diagnostics.append(exc.to_diagnostic())
            return Result(None, diagnostics)

        logger.trace("kubectl apply produced {} byte(s) of output", len(output))
        return Result(replace(plan, applied=document, id=id), diagnostics)


def resource_types() -> list[type[ResourceController]]:
    """
    Return all resource types implemented by the provider.
    """

    from k8scrd.resources.definition import CustomResourceDefinition
    from k8scrd.resources.instance import CustomResourceInstance

    return [CustomResourceDefinition, CustomResourceInstance]

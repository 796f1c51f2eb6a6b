from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, overload

from loguru import logger

from k8scrd.provider.config import ProviderConfigModel
from k8scrd.resources import ResourceModel


@dataclass
class ProviderBlock:
    """
    Static provider configuration. Values that are not set fall back to the `K8S_HOST`, `K8S_TOKEN`, `K8S_USERNAME`
    and `K8S_PASSWORD` environment variables.
    """

    host: str | None = None
    token: str | None = None
    username: str | None = None
    password: str | None = None

    def to_model(self) -> ProviderConfigModel:
        return ProviderConfigModel(host=self.host, token=self.token, username=self.username, password=self.password)


@dataclass
class ResourceSpec:
    """
    Declares a resource managed by the project.
    """

    type: str = "custom-resource_instance"
    """ The resource type name, e.g. `custom-resource_instance` or `custom-resource_definition`. """

    template: str | None = None
    """ The template to render. """

    template_file: Path | None = None
    """ A file to read the template from instead, relative to the configuration file. """

    attributes: dict[str, Any] | None = None
    """ Template attributes. Values are converted to strings. """

    def to_model(self) -> ResourceModel:
        attributes = None if self.attributes is None else {k: str(v) for k, v in self.attributes.items()}
        template = self.template
        if template is None and self.template_file is not None:
            template = self.template_file.read_text()
        return ResourceModel(template=template, attributes=attributes)


@dataclass
class Project:
    """
    The contents of a `k8scrd.yaml` file.
    """

    provider: ProviderBlock = field(default_factory=ProviderBlock)

    kubectl: str | None = None
    """ Path to, or name of, the `kubectl` executable. Defaults to `kubectl` in the `PATH`. """

    resources: dict[str, ResourceSpec] = field(default_factory=dict)


@dataclass
class ProjectConfig:
    """
    Wrapper for the project configuration file.
    """

    FILENAME = "k8scrd.yaml"
    STATE_DIRNAME = ".k8scrd"

    file: Path | None
    config: Project

    @property
    def state_file(self) -> Path:
        base = self.file.parent if self.file is not None else Path.cwd()
        return base / self.STATE_DIRNAME / "state.json"

    @staticmethod
    def load(file: Path | None = None, /) -> "ProjectConfig":
        """
        Load the project configuration from the given file, or from `k8scrd.yaml` in the current directory or any of
        its parents. If no file is found, an empty project is returned.
        """

        from databind.json import load as deser
        from yaml import safe_load

        if file is None:
            file = find_config_file(ProjectConfig.FILENAME, required=False)
        if file is None:
            logger.debug("No '{}' found, using an empty project", ProjectConfig.FILENAME)
            return ProjectConfig(None, Project())

        logger.debug("Loading project configuration from '{}'", file)
        project = deser(safe_load(file.read_text()) or {}, Project, filename=str(file))

        for name, spec in project.resources.items():
            if spec.template_file is not None and not spec.template_file.is_absolute():
                spec.template_file = file.parent / spec.template_file
            if spec.template is not None and spec.template_file is not None:
                logger.warning("Resource '{}' sets both 'template' and 'template_file'; using 'template'", name)

        return ProjectConfig(file, project)


@overload
def find_config_file(filename: str, cwd: Path | None = None, required: Literal[False] = False) -> Path | None: ...


@overload
def find_config_file(filename: str, cwd: Path | None = None, required: Literal[True] = True) -> Path: ...


def find_config_file(filename: str, cwd: Path | None = None, required: bool = True) -> Path | None:
    """
    Look for *filename* in *cwd* (defaults to the current directory) and then in each of its parents.
    """

    start = cwd or Path.cwd()
    for directory in (start, *start.parents):
        candidate = directory / filename
        if candidate.is_file():
            return candidate

    if required:
        raise FileNotFoundError(f"'{filename}' not found in '{start}' or any of its parent directories.")
    return None

"""
k8scrd renders templated Kubernetes resources and applies them to a cluster with `kubectl apply`, keeping track of
what was applied in a local state file.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import sys
from typing import Any, Iterable, NoReturn

from loguru import logger
from typer import Option, Typer

from k8scrd import __version__
from k8scrd.diagnostics import Diagnostic, Severity
from k8scrd.project.config import ProjectConfig
from k8scrd.provider import Provider
from k8scrd.provider.config import ProviderConfiguration
from k8scrd.resources import ResourceController, ResourceModel
from k8scrd.tools.kubectl import ExecutableNotFound, Kubectl
from k8scrd.tools.kvstore import JsonFileKvStore, SerializingStore


def new_typer(**kwargs: Any) -> Typer:
    return Typer(no_args_is_help=True, pretty_exceptions_enable=False, **kwargs)


app = new_typer(help=__doc__)


def config_option() -> Any:
    return Option(
        None,
        "--config",
        "-c",
        envvar="K8SCRD_CONFIG",
        help="The `k8scrd.yaml` to use. If not set, it is searched in the current directory and its parents.",
    )


def report(diagnostics: Iterable[Diagnostic], subject: str | None = None) -> None:
    """
    Log the given diagnostics for the user.
    """

    for diagnostic in diagnostics:
        prefix = f"[{subject}] " if subject else ""
        if diagnostic.severity == Severity.ERROR:
            logger.error("{}{}", prefix, diagnostic)
        else:
            logger.warning("{}{}", prefix, diagnostic)


def fail(diagnostics: Iterable[Diagnostic], subject: str | None = None) -> NoReturn:
    report(diagnostics, subject)
    sys.exit(1)


@dataclass
class Session:
    """
    Everything a command needs to operate on the resources of a project.
    """

    project: ProjectConfig
    provider: Provider
    configuration: ProviderConfiguration
    kubectl: Kubectl

    @staticmethod
    def load(config: Path | None) -> "Session":
        """
        Load the project and configure the provider. Exits with an error if the provider configuration is invalid
        or `kubectl` can not be found.
        """

        project = ProjectConfig.load(config)
        provider = Provider(__version__)
        configured = provider.configure(project.config.provider.to_model())
        if configured.configuration is None:
            fail(configured.diagnostics, "provider")

        kubectl = Kubectl(project.config.kubectl)
        try:
            kubectl.locate()
        except ExecutableNotFound as exc:
            fail([exc.to_diagnostic()], "provider")

        return Session(project, provider, configured.configuration, kubectl)

    def store(self) -> SerializingStore[ResourceModel]:
        return SerializingStore(ResourceModel, JsonFileKvStore(self.project.state_file))

    def controller(self, name: str) -> ResourceController | None:
        """
        Return the controller for the resource *name* declared in the project. Logs an error and returns `None` if
        the resource is not declared or has an unknown type.
        """

        spec = self.project.config.resources.get(name)
        if spec is None:
            logger.error("Resource '{}' is not declared in '{}'", name, self.project.file)
            return None

        resource_types = self.provider.resources()
        if spec.type not in resource_types:
            logger.error(
                "Resource '{}' has unknown type '{}', expected one of: {}",
                name,
                spec.type,
                ", ".join(sorted(resource_types)),
            )
            return None

        return resource_types[spec.type](self.configuration, self.kubectl)


from . import apply  # noqa: F401,E402
from . import render  # noqa: F401,E402
from . import schema  # noqa: F401,E402
from . import state  # noqa: E402

app.add_typer(state.app)


class LogLevel(str, Enum):
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@app.callback()
def _callback(
    log_level: LogLevel = Option(LogLevel.INFO, "--log-level", "-l", help="The log level to use."),
) -> None:
    logger.remove()
    logger.add(sys.stderr, level=log_level.name)


def main() -> None:
    app()

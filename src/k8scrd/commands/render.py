from pathlib import Path
import sys
from typing import Optional

from loguru import logger
from typer import Argument

from k8scrd.commands import app, config_option, fail
from k8scrd.diagnostics import ProviderError
from k8scrd.project.config import ProjectConfig
from k8scrd.templating import TemplateRenderer


@app.command()
def render(
    name: str = Argument(..., help="The resource to render."),
    config: Optional[Path] = config_option(),
) -> None:
    """
    Print the rendered template of a resource without applying it.
    """

    project = ProjectConfig.load(config)
    spec = project.config.resources.get(name)
    if spec is None:
        logger.error("Resource '{}' is not declared in '{}'", name, project.file)
        sys.exit(1)

    model = spec.to_model()
    if model.template is None:
        logger.error("Resource '{}' has no template", name)
        sys.exit(1)

    try:
        document = TemplateRenderer().render(model.template, model.attributes)
    except ProviderError as exc:
        fail([exc.to_diagnostic()], name)

    print(document, end="")

from pathlib import Path
import sys
from typing import Optional

from loguru import logger
from typer import Argument

from k8scrd.commands import Session, app, config_option, report
from k8scrd.resources import ResourceController


@app.command()
def apply(
    names: Optional[list[str]] = Argument(
        None, help="The resources to apply. Defaults to all resources in the project."
    ),
    config: Optional[Path] = config_option(),
) -> None:
    """
    Render and apply resources. Resources that are not yet tracked in the state are created, all others are updated.
    """

    session = Session.load(config)
    names = names or list(session.project.config.resources)
    failed = 0

    with session.store() as store:
        for name in names:
            controller = session.controller(name)
            if controller is None:
                failed += 1
                continue

            plan = session.project.config.resources[name].to_model()
            prior = store.get_or_none(name)

            if prior is None:
                logger.info("Creating resource '{}'", name)
                result = controller.create(plan)
            else:
                logger.info("Updating resource '{}' ({})", name, prior.id)
                plan.id = prior.id
                result = controller.update(plan)

            report(result.diagnostics, name)
            if result.state is None:
                failed += 1
                continue

            store.set(name, result.state)

    if failed:
        logger.error("{} of {} resource(s) failed to apply", failed, len(names))
        sys.exit(1)


@app.command()
def delete(
    name: str = Argument(..., help="The resource to stop tracking."),
    config: Optional[Path] = config_option(),
) -> None:
    """
    Remove a resource from the state. The objects in the cluster are left untouched.
    """

    session = Session.load(config)
    with session.store() as store:
        prior = store.get_or_none(name)
        if prior is None:
            logger.warning("Resource '{}' is not tracked in the state", name)
            return

        if name in session.project.config.resources:
            controller = session.controller(name)
            if controller is None:
                sys.exit(1)
        else:
            logger.warning("Resource '{}' is no longer declared in '{}'", name, session.project.file)
            controller = ResourceController(session.configuration, session.kubectl)

        result = controller.delete(prior)
        report(result.diagnostics, name)
        if result.state is None:
            store.delete(name)
            logger.info("Resource '{}' removed from the state", name)

"""
Inspect the resources tracked in the state.
"""

from pathlib import Path
import sys
from typing import Optional

from loguru import logger
from typer import Argument

from k8scrd.commands import config_option, new_typer
from k8scrd.project.config import ProjectConfig
from k8scrd.resources import ResourceModel
from k8scrd.tools.kvstore import JsonFileKvStore, SerializingStore

app = new_typer(name="state", help=__doc__)


def _store(config: Path | None) -> SerializingStore[ResourceModel]:
    return SerializingStore(ResourceModel, JsonFileKvStore(ProjectConfig.load(config).state_file))


@app.command()
def list(config: Optional[Path] = config_option()) -> None:
    """
    List the names of all tracked resources.
    """

    with _store(config) as store:
        for key in store.keys():
            print(key)


@app.command()
def show(
    name: str = Argument(..., help="The resource to show."),
    config: Optional[Path] = config_option(),
) -> None:
    """
    Print the identifier and the applied document of a tracked resource.
    """

    with _store(config) as store:
        state = store.get_or_none(name)

    if state is None:
        logger.error("Resource '{}' is not tracked in the state", name)
        sys.exit(1)

    print(f"# id: {state.id}")
    print(state.applied or "", end="")

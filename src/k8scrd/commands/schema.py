from k8scrd import __version__
from k8scrd.commands import app
from k8scrd.provider import Provider
from k8scrd.provider.schema import Schema


@app.command()
def schema() -> None:
    """
    Describe the provider configuration and the resource types.
    """

    provider = Provider(__version__)
    type_name, version = provider.metadata()
    print(f"provider {type_name} ({version})")
    _print_schema(provider.schema())

    for name, resource_type in provider.resources().items():
        print()
        print(f"resource {name}")
        _print_schema(resource_type.schema())


def _print_schema(schema: Schema) -> None:
    if schema.description:
        print(f"  {schema.description}")
    for name, attribute in schema.attributes.items():
        print(f"  {name} [{', '.join(attribute.flags())}]")
        print(f"      {attribute.description}")

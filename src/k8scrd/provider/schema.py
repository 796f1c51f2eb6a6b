from dataclasses import dataclass, field


@dataclass(frozen=True)
class Attribute:
    """
    Describes an attribute of the provider configuration or of a resource type.
    """

    description: str
    required: bool = False
    optional: bool = False
    computed: bool = False
    sensitive: bool = False

    def flags(self) -> list[str]:
        return [name for name in ("required", "optional", "computed", "sensitive") if getattr(self, name)]


@dataclass(frozen=True)
class Schema:
    description: str = ""
    attributes: dict[str, Attribute] = field(default_factory=dict)

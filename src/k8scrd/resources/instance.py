from k8scrd.resources import ResourceController


class CustomResourceInstance(ResourceController, type_suffix="_instance"):
    """
    Creates an instance of a registered Custom Resource Definition from a template.
    """

    DESCRIPTION = "Resource instance created according to a registered Custom Resource Definition (CRD)"

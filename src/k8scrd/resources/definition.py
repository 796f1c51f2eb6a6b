from k8scrd.resources import ResourceController


class CustomResourceDefinition(ResourceController, type_suffix="_definition"):
    """
    Registers a Custom Resource Definition (CRD) in the cluster from a template.
    """

    DESCRIPTION = "Custom Resource Definition (CRD) created from a template"

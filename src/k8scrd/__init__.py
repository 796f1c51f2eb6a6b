"""
Render templated Kubernetes resources and converge a cluster to them with `kubectl apply`.
"""

__version__ = "0.1.0"

from .helm import HelmClient
from .k3d import K3dClient
from .kube import KubeClient, PodStatus

__all__ = [
    "HelmClient",
    "K3dClient",
    "KubeClient",
    "PodStatus",
]

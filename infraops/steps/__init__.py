from __future__ import annotations

# Step catalog for the bootstrap workflow. The declared order is a flattened
# dependency chain: each step assumes every earlier one succeeded.

from typing import List

from ..step import Step
from .argocd import ArgoCDInstall
from .cluster import ClusterSetup
from .crossplane import CrossplaneInstall
from .prerequisites import PrerequisiteCheck
from .self_management import SelfManagementSetup
from .validation import Validation


def default_steps() -> List[Step]:
    return [
        PrerequisiteCheck(),
        ClusterSetup(),
        ArgoCDInstall(),
        CrossplaneInstall(),
        SelfManagementSetup(),
        Validation(),
    ]


__all__ = [
    "ArgoCDInstall",
    "ClusterSetup",
    "CrossplaneInstall",
    "PrerequisiteCheck",
    "SelfManagementSetup",
    "Validation",
    "default_steps",
]

"""Launch configuration loading.

Responsibility: Loads and validates launch configuration files with dotted
``key=value`` override support using Pydantic.
"""

from .loader import build_config, load_config, save_run_config
from .schema import (
    ConfigBlockConfig,
    CredentialConfig,
    DistributedInputConfig,
    LaunchConfig,
    LauncherConfig,
    TrainerConfig,
)

__all__ = [
    "ConfigBlockConfig",
    "CredentialConfig",
    "DistributedInputConfig",
    "LaunchConfig",
    "LauncherConfig",
    "TrainerConfig",
    "build_config",
    "load_config",
    "save_run_config",
]

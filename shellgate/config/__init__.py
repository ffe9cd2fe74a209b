from shellgate.config.loader import (
    GatewayConfig,
    GlobalPolicy,
    ShellDefinition,
    ShellKind,
    create_default_config,
    get_config,
)

__all__ = [
    "GatewayConfig",
    "GlobalPolicy",
    "ShellDefinition",
    "ShellKind",
    "create_default_config",
    "get_config",
]

"""Builders for policies, shells, contexts and gateway configs used across tests."""

from shellgate.config.loader import (
    DEFAULT_SHELLS,
    GatewayConfig,
    GlobalPolicy,
    PathsPolicy,
    RestrictionsPolicy,
    SecurityPolicy,
    ShellDefinition,
    ShellKind,
    ShellsConfig,
)
from shellgate.core.resolver import resolve_shell_config
from shellgate.security.context import ValidationContext


def make_policy(
    allowed=("C:\\work",),
    restrict=True,
    blocked_commands=None,
    blocked_arguments=None,
    blocked_operators=None,
    initial_dir=None,
    **security,
) -> GlobalPolicy:
    restrictions = {}
    if blocked_commands is not None:
        restrictions["blocked_commands"] = list(blocked_commands)
    if blocked_arguments is not None:
        restrictions["blocked_arguments"] = list(blocked_arguments)
    if blocked_operators is not None:
        restrictions["blocked_operators"] = list(blocked_operators)
    return GlobalPolicy(
        security=SecurityPolicy(restrict_working_directory=restrict, **security),
        restrictions=RestrictionsPolicy(**restrictions),
        paths=PathsPolicy(allowed_paths=list(allowed), initial_dir=initial_dir),
    )


def make_shell(kind: ShellKind, **changes) -> ShellDefinition:
    data = dict(DEFAULT_SHELLS[kind.value])
    data.update(changes)
    return ShellDefinition.model_validate(data)


def make_context(kind: ShellKind, policy=None, **shell_changes) -> ValidationContext:
    policy = policy or make_policy()
    resolved = resolve_shell_config(policy, kind, make_shell(kind, **shell_changes))
    return ValidationContext.create(resolved)


def make_config(policy=None, **shells) -> GatewayConfig:
    definitions = {kind.value: make_shell(kind) for kind in ShellKind}
    definitions.update(shells)
    return GatewayConfig(global_policy=policy or make_policy(), shells=ShellsConfig(**definitions))

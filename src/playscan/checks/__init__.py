"""Check registry: every rule implementation shipped with playscan."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from playscan.checks.base import (
    HOOK_NAMES,
    Check,
    CheckContext,
    FileContext,
    Finding,
    Scope,
)
from playscan.checks.commands import (
    CommandArgsFormCheck,
    CommandChangedWhenCheck,
    CommandNotShellWhenPossibleCheck,
    EnvBlockNotInlineCheck,
    ShellPipeSafeCheck,
    UseModuleNotCommandCheck,
)
from playscan.checks.includes import IncludesResolveCheck
from playscan.checks.plays import (
    BecomeWithUserCheck,
    BlockTaskLimitCheck,
    GroupTasksInBlockCheck,
    LimitTasksPerPlayCheck,
    NoVarsPromptCheck,
    PlayHasTagsCheck,
    SecretsNotInVarsCheck,
    UniqueTasksCheck,
    VariableNameFormatCheck,
)
from playscan.checks.role_meta import (
    RoleDirLayoutCheck,
    RoleGalaxyDepsCheck,
    RoleMetaFormatCheck,
    RoleMetaRuntimeCheck,
    RoleMetaTagsCheck,
    RoleMetaVideoLinksCheck,
    RoleNameFormatCheck,
)
from playscan.checks.security import (
    AbsoluteOrRolePathsCheck,
    ExplicitModeOwnerCheck,
    ExplicitOwnerGroupCheck,
    NoLogSecretsCheck,
    NumericFileModeCheck,
    PinPackageVersionCheck,
    PinVersionNotLatestCheck,
    RequireHttpsCheck,
    RestrictWorldWriteCheck,
    SudoNopasswdLimitCheck,
)
from playscan.checks.tasks import (
    AvoidLiteralBoolCompareCheck,
    BecomeNonRootUserCheck,
    BuiltinModulesOnlyCheck,
    CheckLengthNotEmptyCheck,
    DelegateToLocalhostCheck,
    ExplicitErrorHandlingCheck,
    FactNameFormatCheck,
    FullModuleNameCheck,
    HandlerForNotifyCheck,
    HandlerHasNameCheck,
    ImportVersusIncludeCheck,
    JinjaFormatCheck,
    LimitTaskAttributesCheck,
    PrefixLoopVarCheck,
    ReplaceDeprecatedModuleCheck,
    ReplaceDeprecatedParamCheck,
    RunOnceDocumentedCheck,
    TaskHasNameCheck,
    TaskNameFirstCheck,
    TaskNameMinCharsCheck,
    WhenBareVariableCheck,
)
from playscan.checks.text import (
    EvenSpacesIndentCheck,
    FileEndsNewlineCheck,
    LimitPlaysCheck,
    MaxLineLengthCheck,
    SpacesNotTabsCheck,
    StripTrailingWhitespaceCheck,
    ValidYamlCheck,
    YmlExtensionCheck,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)

ALL_CHECKS: tuple[type[Any], ...] = (
    # text
    ValidYamlCheck,
    SpacesNotTabsCheck,
    StripTrailingWhitespaceCheck,
    FileEndsNewlineCheck,
    MaxLineLengthCheck,
    EvenSpacesIndentCheck,
    YmlExtensionCheck,
    NumericFileModeCheck,
    LimitPlaysCheck,
    # plays and blocks
    PlayHasTagsCheck,
    NoVarsPromptCheck,
    LimitTasksPerPlayCheck,
    VariableNameFormatCheck,
    SecretsNotInVarsCheck,
    BecomeWithUserCheck,
    UniqueTasksCheck,
    GroupTasksInBlockCheck,
    BlockTaskLimitCheck,
    # tasks
    TaskHasNameCheck,
    TaskNameFirstCheck,
    TaskNameMinCharsCheck,
    FullModuleNameCheck,
    BuiltinModulesOnlyCheck,
    DelegateToLocalhostCheck,
    ReplaceDeprecatedModuleCheck,
    ReplaceDeprecatedParamCheck,
    ImportVersusIncludeCheck,
    ExplicitErrorHandlingCheck,
    LimitTaskAttributesCheck,
    WhenBareVariableCheck,
    AvoidLiteralBoolCompareCheck,
    CheckLengthNotEmptyCheck,
    JinjaFormatCheck,
    PrefixLoopVarCheck,
    FactNameFormatCheck,
    HandlerHasNameCheck,
    HandlerForNotifyCheck,
    BecomeNonRootUserCheck,
    RunOnceDocumentedCheck,
    # commands
    UseModuleNotCommandCheck,
    CommandNotShellWhenPossibleCheck,
    CommandChangedWhenCheck,
    CommandArgsFormCheck,
    EnvBlockNotInlineCheck,
    ShellPipeSafeCheck,
    # security
    NoLogSecretsCheck,
    RequireHttpsCheck,
    RestrictWorldWriteCheck,
    ExplicitModeOwnerCheck,
    ExplicitOwnerGroupCheck,
    PinVersionNotLatestCheck,
    PinPackageVersionCheck,
    AbsoluteOrRolePathsCheck,
    SudoNopasswdLimitCheck,
    # includes
    IncludesResolveCheck,
    # role metadata
    RoleMetaFormatCheck,
    RoleMetaTagsCheck,
    RoleMetaRuntimeCheck,
    RoleMetaVideoLinksCheck,
    RoleGalaxyDepsCheck,
    RoleNameFormatCheck,
    RoleDirLayoutCheck,
)

CHECKS_BY_KEY: dict[str, type[Any]] = {cls.key: cls for cls in ALL_CHECKS}


def create_checks(
    keys: Iterable[str],
    parameters: Mapping[str, Mapping[str, Any]] | None = None,
) -> list[Check]:
    """Instantiate the checks for *keys*, in order.

    *parameters* maps a rule key to keyword arguments for its constructor.
    Unknown keys and invalid parameters are logged and skipped.
    """
    parameters = parameters or {}
    checks: list[Check] = []
    for key in keys:
        cls = CHECKS_BY_KEY.get(key)
        if cls is None:
            logger.warning("No check registered for rule '%s'; skipping", key)
            continue
        kwargs = dict(parameters.get(key, {}))
        try:
            checks.append(cls(**kwargs))
        except TypeError as exc:
            logger.warning("Invalid parameters for rule '%s' (%s); using defaults", key, exc)
            checks.append(cls())
    return checks


__all__ = [
    "ALL_CHECKS",
    "CHECKS_BY_KEY",
    "HOOK_NAMES",
    "Check",
    "CheckContext",
    "FileContext",
    "Finding",
    "Scope",
    "create_checks",
]

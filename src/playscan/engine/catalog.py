"""Rule catalog: rule key -> metadata, plus the built-in quality profiles.

The catalog is built once (usually at CLI start-up) from the static
tables below and the registered check classes, then passed to whoever
needs it.  It is read-only after construction.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

# ---------------------------------------------------------------------------
# Enums & data classes
# ---------------------------------------------------------------------------


class Severity(IntEnum):
    """Rule severity, ordered from least to most severe."""

    INFO = 0
    MINOR = 1
    MAJOR = 2
    CRITICAL = 3
    BLOCKER = 4


class RuleType(Enum):
    VULNERABILITY = "VULNERABILITY"
    BUG = "BUG"
    CODE_SMELL = "CODE_SMELL"


@dataclass(frozen=True)
class RuleMetadata:
    """Descriptive metadata of one rule."""

    key: str
    name: str
    severity: Severity
    tags: frozenset[str]
    type: RuleType
    description: str | None = None


class CatalogError(ValueError):
    """Raised when the static rule tables disagree with the registered checks."""


class UnknownProfileError(ValueError):
    """Raised when a quality profile name is not registered."""


# ---------------------------------------------------------------------------
# Static tables
# ---------------------------------------------------------------------------

DOMAIN_TAG = "ansible"
DEFAULT_SEVERITY = Severity.MINOR
DEFAULT_TYPE = RuleType.CODE_SMELL

DEFAULT_PROFILE = "default"
CURATED_PROFILE = "curated"

RULE_DISPLAY_NAMES: dict[str, str] = {
    "absolute-or-role-paths": "Avoid relative paths in critical arguments",
    "avoid-literal-bool-compare": 'Prefer when: var over when: var == "yes"',
    "become-non-root-user": "Become user must not be root",
    "become-with-user": "Apply become consistently",
    "block-task-limit": "Limit number of tasks in block",
    "builtin-modules-only": "Restrict to ansible.builtin modules",
    "check-length-not-empty": "Prefer length or presence over empty string compare",
    "command-args-form": "Avoid templated free-form command or shell",
    "command-changed-when": "Declare changed_when for commands",
    "command-not-shell-when-possible": "Prefer shell module over command for shell features",
    "delegate-to-localhost": "Use delegate_to localhost instead of local_action",
    "env-block-not-inline": "Avoid inline environment variables",
    "even-spaces-indent": "Use consistent indentation",
    "explicit-error-handling": "Avoid ignore_errors for control flow",
    "explicit-mode-owner": "Avoid implicit file mode",
    "explicit-owner-group": "Set owner and group explicitly",
    "fact-name-format": "Follow fact naming conventions",
    "file-ends-newline": "End file with newline",
    "full-module-name": "Use fully qualified collection names",
    "group-tasks-in-block": "Prefer block for grouping tasks",
    "handler-for-notify": "Define handler when notified",
    "handler-has-name": "Handler must have a name",
    "import-versus-include": "Prefer import_tasks over include_tasks when appropriate",
    "includes-resolve": "Included files must exist",
    "jinja-format": "Fix Jinja2 template spacing",
    "limit-plays": "Limit number of plays per playbook",
    "limit-task-attributes": "Reduce task complexity",
    "limit-tasks-per-play": "Limit number of tasks per play",
    "max-line-length": "Limit line length",
    "no-log-secrets": "Do not log sensitive data",
    "no-vars-prompt": "Avoid prompting for input",
    "numeric-file-mode": "Avoid risky octal modes",
    "pin-package-version": "Pin package versions",
    "pin-version-not-latest": "Avoid unversioned latest in package installs",
    "play-has-tags": "Include required tags",
    "prefix-loop-var": "Prefix loop variable names",
    "replace-deprecated-module": "Avoid deprecated module usage",
    "replace-deprecated-param": "Avoid deprecated task keywords",
    "require-https": "Use HTTPS instead of HTTP",
    "restrict-world-write": "Avoid world-writable permissions",
    "role-dir-layout": "Follow role directory structure",
    "role-galaxy-deps": "Fix Galaxy role dependencies",
    "role-meta-format": "Fix meta/main.yml content",
    "role-meta-runtime": "Fix meta runtime configuration",
    "role-meta-tags": "Add tags to meta/main.yml",
    "role-meta-video-links": "Remove or fix meta video links",
    "role-name-format": "Follow role naming conventions",
    "run-once-documented": "Use run_once with care",
    "secrets-not-in-vars": "Do not store secrets in plain vars",
    "shell-pipe-safe": "Avoid risky shell piping",
    "spaces-not-tabs": "Disallow tab characters",
    "strip-trailing-whitespace": "Remove trailing whitespace",
    "sudo-nopasswd-limit": "Restrict sudo NOPASSWD usage",
    "task-has-name": "Task must have a name",
    "task-name-first": "Task name before module key",
    "task-name-min-chars": "Use sufficiently long task names",
    "unique-tasks": "Remove duplicate task definitions",
    "use-module-not-command": "Use Ansible module instead of command",
    "valid-yaml": "Valid YAML structure required",
    "variable-name-format": "Follow variable naming conventions",
    "when-bare-variable": "Use bare variable in when not {{ var }}",
    "yml-extension": "Follow file naming conventions",
}

# Rules not listed default to MINOR.
RULE_SEVERITIES: dict[str, Severity] = {
    # secrets / sensitive data exposure
    "no-log-secrets": Severity.BLOCKER,
    "secrets-not-in-vars": Severity.BLOCKER,
    "require-https": Severity.CRITICAL,
    "restrict-world-write": Severity.CRITICAL,
    "become-non-root-user": Severity.CRITICAL,
    "numeric-file-mode": Severity.CRITICAL,
    "shell-pipe-safe": Severity.CRITICAL,
    "sudo-nopasswd-limit": Severity.CRITICAL,
    "no-vars-prompt": Severity.CRITICAL,
    "valid-yaml": Severity.MAJOR,
    "explicit-error-handling": Severity.MAJOR,
    "command-changed-when": Severity.MAJOR,
    "includes-resolve": Severity.MAJOR,
    "replace-deprecated-module": Severity.MAJOR,
    "replace-deprecated-param": Severity.MAJOR,
    "handler-for-notify": Severity.MAJOR,
    "absolute-or-role-paths": Severity.MAJOR,
    "command-args-form": Severity.MAJOR,
    "use-module-not-command": Severity.MAJOR,
    "become-with-user": Severity.MAJOR,
    "delegate-to-localhost": Severity.MAJOR,
    "explicit-owner-group": Severity.MAJOR,
    "task-name-first": Severity.MINOR,
    "task-has-name": Severity.MINOR,
    "even-spaces-indent": Severity.MINOR,
    "full-module-name": Severity.MINOR,
    "command-not-shell-when-possible": Severity.MINOR,
    "when-bare-variable": Severity.MINOR,
    "prefix-loop-var": Severity.MINOR,
    "avoid-literal-bool-compare": Severity.MINOR,
    "limit-tasks-per-play": Severity.MINOR,
    "limit-plays": Severity.MINOR,
    "unique-tasks": Severity.MINOR,
    "play-has-tags": Severity.MINOR,
    "variable-name-format": Severity.MINOR,
    "handler-has-name": Severity.MINOR,
    "role-name-format": Severity.MINOR,
    "import-versus-include": Severity.MINOR,
    "limit-task-attributes": Severity.MINOR,
    "check-length-not-empty": Severity.MINOR,
    "group-tasks-in-block": Severity.MINOR,
    "jinja-format": Severity.MINOR,
    "explicit-mode-owner": Severity.MINOR,
    "block-task-limit": Severity.MINOR,
    "pin-version-not-latest": Severity.MINOR,
    "pin-package-version": Severity.MINOR,
    "yml-extension": Severity.MINOR,
    "fact-name-format": Severity.MINOR,
    "env-block-not-inline": Severity.MINOR,
    "builtin-modules-only": Severity.MINOR,
    "role-dir-layout": Severity.MINOR,
    "run-once-documented": Severity.MINOR,
    "spaces-not-tabs": Severity.INFO,
    "file-ends-newline": Severity.INFO,
    "strip-trailing-whitespace": Severity.INFO,
    "max-line-length": Severity.INFO,
    "task-name-min-chars": Severity.INFO,
    "role-meta-format": Severity.INFO,
    "role-meta-tags": Severity.INFO,
    "role-meta-runtime": Severity.INFO,
    "role-meta-video-links": Severity.INFO,
    "role-galaxy-deps": Severity.INFO,
}

SECURITY_RULES: tuple[str, ...] = (
    "no-log-secrets",
    "secrets-not-in-vars",
    "require-https",
    "restrict-world-write",
    "become-non-root-user",
    "numeric-file-mode",
    "shell-pipe-safe",
    "sudo-nopasswd-limit",
    "no-vars-prompt",
    "command-args-form",
    "use-module-not-command",
    "become-with-user",
    "absolute-or-role-paths",
    "explicit-owner-group",
)

CONVENTION_RULES: tuple[str, ...] = (
    "spaces-not-tabs",
    "strip-trailing-whitespace",
    "even-spaces-indent",
    "file-ends-newline",
    "max-line-length",
    "task-name-first",
    "task-has-name",
    "task-name-min-chars",
    "variable-name-format",
    "handler-has-name",
    "role-name-format",
    "fact-name-format",
    "yml-extension",
    "valid-yaml",
)

# Rules without explicit tags get {DOMAIN_TAG} only.
RULE_TAGS: dict[str, frozenset[str]] = {
    **{key: frozenset({DOMAIN_TAG, "security", "cwe"}) for key in SECURITY_RULES},
    **{key: frozenset({DOMAIN_TAG, "convention"}) for key in CONVENTION_RULES},
}

# Rules not listed default to CODE_SMELL.
RULE_TYPES: dict[str, RuleType] = {
    **{key: RuleType.VULNERABILITY for key in SECURITY_RULES},
    "valid-yaml": RuleType.BUG,
    "includes-resolve": RuleType.BUG,
    "handler-for-notify": RuleType.BUG,
    "explicit-error-handling": RuleType.BUG,
    "command-changed-when": RuleType.BUG,
}

# Registered but only active when enabled explicitly.
OPT_IN_RULES: frozenset[str] = frozenset({"builtin-modules-only", "limit-task-attributes"})

CURATED_RULES: tuple[str, ...] = (
    "valid-yaml",
    "spaces-not-tabs",
    "strip-trailing-whitespace",
    "file-ends-newline",
    "task-has-name",
    "full-module-name",
    "play-has-tags",
    "includes-resolve",
    "handler-for-notify",
    "explicit-error-handling",
    "command-changed-when",
    "command-args-form",
    "use-module-not-command",
    "shell-pipe-safe",
    "replace-deprecated-module",
    "replace-deprecated-param",
    "no-log-secrets",
    "secrets-not-in-vars",
    "require-https",
    "restrict-world-write",
    "numeric-file-mode",
    "sudo-nopasswd-limit",
    "no-vars-prompt",
    "pin-version-not-latest",
    "role-meta-format",
    "role-galaxy-deps",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def rule_key_to_name(key: str) -> str:
    """Turn a kebab-case rule key into a Title Case display name.

    >>> rule_key_to_name("task-has-name")
    'Task Has Name'
    """
    return " ".join(segment[:1].upper() + segment[1:] for segment in key.split("-"))


def _fallback_metadata(key: str) -> RuleMetadata:
    return RuleMetadata(
        key=key,
        name=rule_key_to_name(key),
        severity=DEFAULT_SEVERITY,
        tags=frozenset({DOMAIN_TAG}),
        type=DEFAULT_TYPE,
    )


def _check_table(table_name: str, keys: Iterable[str], registered: set[str]) -> None:
    unknown = sorted(set(keys) - registered)
    if unknown:
        msg = f"{table_name} references rules with no registered check: {', '.join(unknown)}"
        raise CatalogError(msg)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class RuleCatalog:
    """Immutable mapping of rule keys to metadata and of profiles to rule keys."""

    __slots__ = ("_profiles", "_rules")

    def __init__(
        self,
        rules: Mapping[str, RuleMetadata],
        profiles: Mapping[str, tuple[str, ...]],
    ) -> None:
        self._rules = MappingProxyType(dict(rules))
        self._profiles = MappingProxyType(dict(profiles))

    @classmethod
    def build(
        cls,
        check_classes: Iterable[type[Any]] | None = None,
        *,
        display_names: Mapping[str, str] = RULE_DISPLAY_NAMES,
        severities: Mapping[str, Severity] = RULE_SEVERITIES,
        tags: Mapping[str, frozenset[str]] = RULE_TAGS,
        types: Mapping[str, RuleType] = RULE_TYPES,
        profiles: Mapping[str, tuple[str, ...]] | None = None,
    ) -> RuleCatalog:
        """Build the catalog and verify it against the registered checks.

        Raises
        ------
        CatalogError
            If any table or profile names a rule key that no check
            class declares.
        """
        if check_classes is None:
            from playscan.checks import ALL_CHECKS

            check_classes = ALL_CHECKS

        classes = list(check_classes)
        ordered_keys: list[str] = []
        for check_cls in classes:
            key = str(check_cls.key)
            if key in ordered_keys:
                msg = f"Duplicate check registered for rule '{key}'"
                raise CatalogError(msg)
            ordered_keys.append(key)
        registered = set(ordered_keys)

        _check_table("Display name table", display_names, registered)
        _check_table("Severity table", severities, registered)
        _check_table("Tag table", tags, registered)
        _check_table("Type table", types, registered)

        if profiles is None:
            profiles = {
                DEFAULT_PROFILE: tuple(k for k in ordered_keys if k not in OPT_IN_RULES),
                CURATED_PROFILE: tuple(k for k in CURATED_RULES),
            }
        for profile_name, profile_keys in profiles.items():
            _check_table(f"Profile '{profile_name}'", profile_keys, registered)

        rules: dict[str, RuleMetadata] = {}
        for check_cls in classes:
            key = str(check_cls.key)
            rules[key] = RuleMetadata(
                key=key,
                name=display_names.get(key) or rule_key_to_name(key),
                severity=severities.get(key, DEFAULT_SEVERITY),
                tags=tags.get(key) or frozenset({DOMAIN_TAG}),
                type=types.get(key, DEFAULT_TYPE),
                description=inspect.getdoc(check_cls),
            )
        return cls(rules, {name: tuple(keys) for name, keys in profiles.items()})

    def __contains__(self, key: object) -> bool:
        return key in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def rule_keys(self) -> tuple[str, ...]:
        return tuple(self._rules)

    @property
    def profiles(self) -> tuple[str, ...]:
        return tuple(self._profiles)

    def metadata_for(self, key: str) -> RuleMetadata:
        """Return metadata for *key*; unknown keys get generated defaults."""
        metadata = self._rules.get(key)
        return metadata if metadata is not None else _fallback_metadata(key)

    def active_rule_keys(self, profile: str) -> tuple[str, ...]:
        """Return the ordered rule keys of *profile*.

        Raises
        ------
        UnknownProfileError
            If *profile* is not registered.
        """
        keys = self._profiles.get(profile)
        if keys is None:
            msg = f"Unknown quality profile '{profile}', expected one of {sorted(self._profiles)}"
            raise UnknownProfileError(msg)
        return keys

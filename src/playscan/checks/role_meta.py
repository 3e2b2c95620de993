"""Checks on role ``meta/main.yml`` files."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from playscan.checks.base import role_meta_line

if TYPE_CHECKING:
    from playscan.checks.base import CheckContext
    from playscan.model.nodes import RoleMeta

_ROLE_NAME_RE = re.compile(r"^[a-z][a-z0-9_]*$")
_GALAXY_TAG_RE = re.compile(r"^[a-z0-9]+$")
_ROLE_ENTRY_POINTS = ("../tasks/main.yml", "../tasks/main.yaml")
_REQUIRED_GALAXY_FIELDS: tuple[str, ...] = (
    "author",
    "description",
    "license",
    "min_ansible_version",
)


class RoleMetaFormatCheck:
    """``meta/main.yml`` must be a valid mapping with a ``galaxy_info`` section."""

    key = "role-meta-format"

    def visit_role_meta(self, meta: RoleMeta, ctx: CheckContext) -> None:
        # syntax errors belong to valid-yaml
        if meta.parse_error is not None:
            return
        info = meta.galaxy_info
        if info is None:
            ctx.report(
                "Add a 'galaxy_info' mapping to this role metadata.", meta.line_of("galaxy_info")
            )
            return
        missing = [name for name in _REQUIRED_GALAXY_FIELDS if not info.get(name)]
        if missing:
            ctx.report(
                f"Add the missing galaxy_info field(s): {', '.join(missing)}.",
                meta.line_of("galaxy_info"),
            )


class RoleMetaTagsCheck:
    """Galaxy tags make roles discoverable; they must be lowercase alphanumeric."""

    key = "role-meta-tags"

    def visit_role_meta(self, meta: RoleMeta, ctx: CheckContext) -> None:
        info = meta.galaxy_info
        if info is None:
            return
        tags = info.get("galaxy_tags")
        if not tags:
            ctx.report("Add 'galaxy_tags' to galaxy_info.", meta.line_of("galaxy_info"))
            return
        if not isinstance(tags, list):
            ctx.report("Make 'galaxy_tags' a list.", meta.line_of("galaxy_info.galaxy_tags"))
            return
        for tag in tags:
            if not _GALAXY_TAG_RE.match(str(tag)):
                ctx.report(
                    f"Use only lowercase letters and digits in galaxy tag '{tag}'.",
                    meta.line_of("galaxy_info.galaxy_tags"),
                )


class RoleMetaRuntimeCheck:
    """``min_ansible_version`` must be a quoted version string."""

    key = "role-meta-runtime"

    def visit_role_meta(self, meta: RoleMeta, ctx: CheckContext) -> None:
        info = meta.galaxy_info
        if info is None or "min_ansible_version" not in info:
            return
        if not isinstance(info["min_ansible_version"], str):
            ctx.report(
                "Quote 'min_ansible_version' so it is read as a string.",
                meta.line_of("galaxy_info.min_ansible_version"),
            )


class RoleMetaVideoLinksCheck:
    """Each entry of ``video_links`` needs a ``url`` and a ``title``."""

    key = "role-meta-video-links"

    def visit_role_meta(self, meta: RoleMeta, ctx: CheckContext) -> None:
        info = meta.galaxy_info
        links = info.get("video_links") if info is not None else None
        if links is None:
            return
        line = meta.line_of("galaxy_info.video_links")
        if not isinstance(links, list):
            ctx.report("Make 'video_links' a list of {url, title} mappings.", line)
            return
        for link in links:
            if not isinstance(link, dict) or not link.get("url") or not link.get("title"):
                ctx.report("Give every video link both a 'url' and a 'title'.", line)
                return


class RoleGalaxyDepsCheck:
    """Role dependencies must be role names or mappings naming the role."""

    key = "role-galaxy-deps"

    def visit_role_meta(self, meta: RoleMeta, ctx: CheckContext) -> None:
        deps = meta.data.get("dependencies")
        if deps is None:
            return
        line = meta.line_of("dependencies")
        if not isinstance(deps, list):
            ctx.report("Make 'dependencies' a list.", line)
            return
        for dep in deps:
            if isinstance(dep, str) and dep.strip():
                continue
            if isinstance(dep, dict) and any(dep.get(key) for key in ("role", "name", "src")):
                continue
            ctx.report(f"Fix role dependency {dep!r}: name the role with 'role' or 'src'.", line)


class RoleNameFormatCheck:
    """Role names should be lowercase snake_case, as required by Galaxy."""

    key = "role-name-format"

    def visit_role_meta(self, meta: RoleMeta, ctx: CheckContext) -> None:
        info = meta.galaxy_info
        name = info.get("role_name") if info is not None else None
        line = role_meta_line(meta, "galaxy_info.role_name", "galaxy_info")
        if name is None:
            name = ctx.file.role_name
            line = None
        if name is not None and not _ROLE_NAME_RE.match(str(name)):
            ctx.report(f"Rename role '{name}' to match {_ROLE_NAME_RE.pattern}.", line)


class RoleDirLayoutCheck:
    """A role needs ``tasks/main.yml`` beside its ``meta`` directory.

    Roles that only pull in dependencies may omit their own tasks.
    """

    key = "role-dir-layout"

    def visit_role_meta(self, meta: RoleMeta, ctx: CheckContext) -> None:
        resolver = ctx.resolver
        if resolver is None or ctx.file.role_name is None or meta.parse_error is not None:
            return
        if meta.data.get("dependencies"):
            return
        if any(resolver.exists_in_project(ref) for ref in _ROLE_ENTRY_POINTS):
            return
        ctx.report(f"Add tasks/main.yml to role '{ctx.file.role_name}'.")

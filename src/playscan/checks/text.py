"""Line-oriented checks on the raw file text."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from playscan.checks.base import CheckContext
    from playscan.model.nodes import PlaybookFile, RoleMeta

_FILE_NAME_RE = re.compile(r"^[a-z0-9_.-]+\.ya?ml$")


class SpacesNotTabsCheck:
    """Tab characters are not valid YAML indentation and render differently
    across editors. Use spaces only."""

    key = "spaces-not-tabs"

    def visit_file(self, playbook: PlaybookFile, ctx: CheckContext) -> None:
        for number, line in enumerate(ctx.file.lines, start=1):
            if "\t" in line:
                ctx.report("Replace this tab character with spaces.", number)


class StripTrailingWhitespaceCheck:
    """Trailing whitespace adds noise to diffs."""

    key = "strip-trailing-whitespace"

    def visit_file(self, playbook: PlaybookFile, ctx: CheckContext) -> None:
        for number, line in enumerate(ctx.file.lines, start=1):
            if line != line.rstrip(" \t"):
                ctx.report("Remove the trailing whitespace at the end of this line.", number)


class FileEndsNewlineCheck:
    """Files should end with a single newline character."""

    key = "file-ends-newline"

    def visit_file(self, playbook: PlaybookFile, ctx: CheckContext) -> None:
        content = ctx.file.content
        if content and not content.endswith("\n"):
            ctx.report("Add a newline at the end of this file.", len(ctx.file.lines))


class MaxLineLengthCheck:
    """Long lines are hard to read and review."""

    key = "max-line-length"

    def __init__(self, max_length: int = 160) -> None:
        self.max_length = max_length

    def visit_file(self, playbook: PlaybookFile, ctx: CheckContext) -> None:
        for number, line in enumerate(ctx.file.lines, start=1):
            if len(line) > self.max_length:
                ctx.report(
                    f"Split this line: {len(line)} characters, "
                    f"maximum allowed is {self.max_length}.",
                    number,
                )


class EvenSpacesIndentCheck:
    """Indent with a consistent, even number of spaces."""

    key = "even-spaces-indent"

    def visit_file(self, playbook: PlaybookFile, ctx: CheckContext) -> None:
        in_block_scalar = False
        block_indent = 0
        for number, line in enumerate(ctx.file.lines, start=1):
            stripped = line.lstrip(" ")
            if not stripped or stripped.startswith("#"):
                continue
            indent = len(line) - len(stripped)
            if in_block_scalar:
                if indent > block_indent:
                    continue
                in_block_scalar = False
            if indent % 2:
                ctx.report(
                    f"Use an even number of spaces for indentation (found {indent}).", number
                )
            if re.search(r":\s*[|>][-+0-9]*\s*$", line):
                in_block_scalar = True
                block_indent = indent


class YmlExtensionCheck:
    """File names should be lowercase with ``.yml`` or ``.yaml`` extension
    and no spaces."""

    key = "yml-extension"

    def visit_file(self, playbook: PlaybookFile, ctx: CheckContext) -> None:
        name = ctx.file.relative_path.rsplit("/", 1)[-1]
        if not _FILE_NAME_RE.match(name):
            ctx.report(
                f"Rename '{name}' to use lowercase letters, digits, '_', '-' or '.' only."
            )


class ValidYamlCheck:
    """The file must be well-formed YAML; otherwise nothing else can be analysed."""

    key = "valid-yaml"

    def visit_file(self, playbook: PlaybookFile, ctx: CheckContext) -> None:
        error = playbook.parse_error
        if error is not None:
            ctx.report(f"Fix this YAML syntax error: {error.message}", error.line)

    def visit_role_meta(self, meta: RoleMeta, ctx: CheckContext) -> None:
        error = meta.parse_error
        if error is not None:
            ctx.report(f"Fix this YAML syntax error: {error.message}", error.line)


class LimitPlaysCheck:
    """Very long playbooks are hard to maintain; split them with import_playbook."""

    key = "limit-plays"

    def __init__(self, max_plays: int = 20) -> None:
        self.max_plays = max_plays

    def visit_file(self, playbook: PlaybookFile, ctx: CheckContext) -> None:
        plays = [play for play in playbook.plays if not play.implicit]
        if len(plays) > self.max_plays:
            ctx.report(
                f"Split this playbook: {len(plays)} plays, maximum allowed is {self.max_plays}.",
                plays[self.max_plays].line,
            )

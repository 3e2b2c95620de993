"""Tests for playscan.checks.commands: command, shell and raw tasks."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from playscan.checks.commands import (
    CommandArgsFormCheck,
    CommandChangedWhenCheck,
    CommandNotShellWhenPossibleCheck,
    EnvBlockNotInlineCheck,
    ShellPipeSafeCheck,
    UseModuleNotCommandCheck,
    command_text,
)
from playscan.model.nodes import Task
from playscan.model.parser import parse_playbook

if TYPE_CHECKING:
    from collections.abc import Callable

    from playscan.checks.base import Finding

    ScanText = Callable[..., list[Finding]]

_PATH = "tasks/main.yml"


def _task(module: str, command: str, extra: str = "") -> str:
    return f"- name: Run it\n  {module}: {command}\n{extra}"


def _first_task(content: str) -> Task:
    node = parse_playbook(_PATH, content).plays[0].tasks[0]
    assert isinstance(node, Task)
    return node


class TestCommandText:
    def test_free_form(self) -> None:
        assert command_text(_first_task(_task("ansible.builtin.shell", "ls -l"))) == "ls -l"

    def test_cmd_and_argv(self) -> None:
        cmd = "- name: Run\n  ansible.builtin.command:\n    cmd: make all\n"
        argv = "- name: Run\n  ansible.builtin.command:\n    argv: [make, all]\n"
        assert command_text(_first_task(cmd)) == "make all"
        assert command_text(_first_task(argv)) == "make all"

    def test_other_modules(self) -> None:
        assert command_text(_first_task(_task("ansible.builtin.debug", "msg=hi"))) is None


class TestUseModuleNotCommand:
    @pytest.mark.parametrize(
        ("command", "module"),
        [
            ("apt-get install -y nginx", "ansible.builtin.apt"),
            ("/usr/bin/curl -O https://example.com/a", "get_url"),
            ("LANG=C systemctl restart web", "ansible.builtin.systemd"),
        ],
    )
    def test_command_with_module_equivalent(
        self, scan_text: ScanText, command: str, module: str
    ) -> None:
        content = _task("ansible.builtin.command", command, "  changed_when: false\n")
        findings = scan_text(content, UseModuleNotCommandCheck(), path=_PATH)
        assert [f.line for f in findings] == [2]
        assert module in findings[0].message

    def test_plain_command(self, scan_text: ScanText) -> None:
        content = _task("ansible.builtin.command", "/opt/app/bin/migrate")
        assert scan_text(content, UseModuleNotCommandCheck(), path=_PATH) == []


def test_command_not_shell_when_possible(scan_text: ScanText) -> None:
    piped = _task("ansible.builtin.command", "cat /etc/hosts | grep web")
    findings = scan_text(piped, CommandNotShellWhenPossibleCheck(), path=_PATH)
    assert [f.line for f in findings] == [2]
    shell = _task("ansible.builtin.shell", "cat /etc/hosts | grep web")
    assert scan_text(shell, CommandNotShellWhenPossibleCheck(), path=_PATH) == []


class TestCommandChangedWhen:
    def test_missing_changed_when(self, scan_text: ScanText) -> None:
        content = _task("ansible.builtin.command", "whoami")
        findings = scan_text(content, CommandChangedWhenCheck(), path=_PATH)
        assert [f.line for f in findings] == [2]

    @pytest.mark.parametrize(
        "content",
        [
            _task("ansible.builtin.command", "whoami", "  changed_when: false\n"),
            _task("ansible.builtin.command", "tar xf a.tgz", "  args:\n    creates: /opt/a\n"),
            _task("ansible.builtin.debug", "msg=hi"),
        ],
    )
    def test_declared_or_not_a_command(self, scan_text: ScanText, content: str) -> None:
        assert scan_text(content, CommandChangedWhenCheck(), path=_PATH) == []


def test_command_args_form(scan_text: ScanText) -> None:
    templated = _task("ansible.builtin.shell", '"rm -rf {{ target }}"')
    findings = scan_text(templated, CommandArgsFormCheck(), path=_PATH)
    assert [f.line for f in findings] == [2]
    argv = '- name: Remove\n  ansible.builtin.command:\n    argv: [rm, -rf, "{{ target }}"]\n'
    assert scan_text(argv, CommandArgsFormCheck(), path=_PATH) == []


def test_env_block_not_inline(scan_text: ScanText) -> None:
    inline = _task("ansible.builtin.command", "LANG=C make")
    assert len(scan_text(inline, EnvBlockNotInlineCheck(), path=_PATH)) == 1
    trailing = _task("ansible.builtin.command", "make LANG=C")
    assert scan_text(trailing, EnvBlockNotInlineCheck(), path=_PATH) == []


@pytest.mark.parametrize(
    ("module", "command", "expected"),
    [
        ("ansible.builtin.shell", "cat a | grep b", 1),
        ("ansible.builtin.shell", "set -o pipefail && cat a | grep b", 0),
        ("ansible.builtin.shell", "test -f a || touch a", 0),
        ("ansible.builtin.command", "cat a | grep b", 0),
    ],
)
def test_shell_pipe_safe(scan_text: ScanText, module: str, command: str, expected: int) -> None:
    findings = scan_text(_task(module, command), ShellPipeSafeCheck(), path=_PATH)
    assert len(findings) == expected

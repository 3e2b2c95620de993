"""Tests for playscan.model: YAML parsers, node helpers and file classifier."""

from __future__ import annotations

import pytest

from playscan.model import (
    Block,
    FileKind,
    Task,
    classify,
    flatten,
    is_role_meta_file,
    parse_playbook,
    parse_role_meta,
)

# ---------------------------------------------------------------------------
# Playbooks
# ---------------------------------------------------------------------------

_PLAYBOOK = (
    "- name: Web servers\n"           # 1
    "  hosts: web\n"                  # 2
    "  tags: [web]\n"                 # 3
    "  tasks:\n"                      # 4
    "    - name: Install nginx\n"     # 5
    "      ansible.builtin.apt:\n"    # 6
    "        name: nginx\n"           # 7
    "        state: present\n"        # 8
    "    - name: Guarded\n"           # 9
    "      block:\n"                  # 10
    "        - name: Inner\n"         # 11
    "          ansible.builtin.command: whoami\n"  # 12
    "      rescue:\n"                 # 13
    "        - name: Recover\n"       # 14
    "          ansible.builtin.debug:\n"  # 15
    "      always:\n"                 # 16
    "        - name: Cleanup\n"       # 17
    "          ansible.builtin.debug:\n"  # 18
    "  handlers:\n"                   # 19
    "    - name: restart nginx\n"     # 20
    "      listen: web restart\n"     # 21
    "      ansible.builtin.service:\n"  # 22
    "        name: nginx\n"           # 23
    "        state: restarted\n"      # 24
)


class TestParsePlaybook:
    def test_play_structure(self) -> None:
        playbook = parse_playbook("site.yml", _PLAYBOOK)
        assert playbook.parse_error is None
        assert len(playbook.plays) == 1
        play = playbook.plays[0]
        assert play.name == "Web servers"
        assert play.line == 1
        assert play.line_of("tags") == 3
        assert play.implicit is False
        assert len(play.tasks) == 2
        assert len(play.handlers) == 1

    def test_task_fields(self) -> None:
        task = parse_playbook("site.yml", _PLAYBOOK).plays[0].tasks[0]
        assert isinstance(task, Task)
        assert task.line == 5
        assert task.name == "Install nginx"
        assert task.module == "ansible.builtin.apt"
        assert task.short_module == "apt"
        assert task.module_args == {"name": "nginx", "state": "present"}
        assert task.line_of("ansible.builtin.apt") == 6
        assert task.line_of("missing") == 5

    def test_block_sections(self) -> None:
        block = parse_playbook("site.yml", _PLAYBOOK).plays[0].tasks[1]
        assert isinstance(block, Block)
        assert block.name == "Guarded"
        assert block.line == 9
        assert [t.name for t in flatten(block.children())] == ["Inner", "Recover", "Cleanup"]
        inner = block.tasks[0]
        assert isinstance(inner, Task)
        assert inner.module_args == {"_raw_params": "whoami"}

    def test_handlers(self) -> None:
        play = parse_playbook("site.yml", _PLAYBOOK).plays[0]
        handler = play.handlers[0]
        assert isinstance(handler, Task)
        assert handler.kind == "handler"
        assert play.handler_names() == {"restart nginx", "web restart"}

    def test_all_tasks_flattens_blocks(self) -> None:
        play = parse_playbook("site.yml", _PLAYBOOK).plays[0]
        names = [task.name for task in play.all_tasks()]
        assert names == ["Install nginx", "Inner", "Recover", "Cleanup"]

    def test_task_file_becomes_implicit_play(self) -> None:
        content = "- name: Show\n  ansible.builtin.debug:\n    msg: hi\n"
        playbook = parse_playbook("roles/web/tasks/main.yml", content)
        assert len(playbook.plays) == 1
        play = playbook.plays[0]
        assert play.implicit is True
        assert len(play.tasks) == 1
        assert play.handlers == ()

    def test_handler_file_becomes_implicit_handlers(self) -> None:
        content = "- name: restart web\n  ansible.builtin.service:\n    name: web\n"
        play = parse_playbook("roles/web/handlers/main.yml", content).plays[0]
        assert play.implicit is True
        assert play.tasks == ()
        assert len(play.handlers) == 1

    def test_import_playbook_entry_is_a_play(self) -> None:
        playbook = parse_playbook("site.yml", "- import_playbook: web.yml\n")
        assert playbook.plays[0].is_import is True

    @pytest.mark.parametrize(
        "content",
        ["", "---\n", "# just a comment\n", "key: value\n", "just a string\n", "- 1\n- 2\n"],
    )
    def test_documents_without_plays(self, content: str) -> None:
        playbook = parse_playbook("file.yml", content)
        assert playbook.plays == ()
        assert playbook.parse_error is None

    def test_parse_error(self) -> None:
        content = '- hosts: all\n  tasks:\n  - name: Bad\n    copy: "src=foo\n'
        playbook = parse_playbook("bad.yml", content)
        assert playbook.plays == ()
        assert playbook.parse_error is not None
        assert playbook.parse_error.message
        assert playbook.parse_error.line is not None

    def test_tab_indentation_is_a_parse_error(self) -> None:
        content = "- hosts: all\n\t  tasks:\n  - name: Ping\n    ping:\n"
        playbook = parse_playbook("tabs.yml", content)
        assert playbook.parse_error is not None


class TestTaskModule:
    def _task(self, content: str) -> Task:
        play = parse_playbook("tasks/main.yml", content).plays[0]
        task = play.tasks[0]
        assert isinstance(task, Task)
        return task

    def test_action_string(self) -> None:
        task = self._task("- name: Run\n  action: shell echo hi\n")
        assert task.module == "shell"
        assert task.module_key == "action"
        assert task.module_args == {"_raw_params": "echo hi"}

    def test_args_are_merged(self) -> None:
        task = self._task(
            "- name: Run\n"
            "  ansible.builtin.command: make\n"
            "  args:\n"
            "    chdir: /src\n"
        )
        assert task.module_args == {"_raw_params": "make", "chdir": "/src"}

    def test_keywords_are_not_modules(self) -> None:
        task = self._task("- name: Only keywords\n  when: x\n  tags: [a]\n")
        assert task.module is None
        assert task.module_key is None
        assert task.module_args == {}


# ---------------------------------------------------------------------------
# Role metadata
# ---------------------------------------------------------------------------


class TestParseRoleMeta:
    def test_data_and_dotted_lines(self) -> None:
        content = (
            "galaxy_info:\n"
            "  author: ops\n"
            "  galaxy_tags:\n"
            "    - web\n"
            "dependencies: []\n"
        )
        meta = parse_role_meta("roles/web/meta/main.yml", content)
        assert meta.parse_error is None
        assert meta.galaxy_info == {"author": "ops", "galaxy_tags": ["web"]}
        assert meta.line_of("galaxy_info") == 1
        assert meta.line_of("galaxy_info.galaxy_tags") == 3
        assert meta.line_of("dependencies") == 5
        assert meta.line_of("nope") is None

    def test_non_mapping(self) -> None:
        meta = parse_role_meta("roles/web/meta/main.yml", "- a\n")
        assert meta.data == {}
        assert meta.galaxy_info is None

    def test_parse_error(self) -> None:
        meta = parse_role_meta("roles/web/meta/main.yml", "galaxy_info: [\n")
        assert meta.parse_error is not None


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------


class TestClassifier:
    @pytest.mark.parametrize(
        ("path", "kind"),
        [
            ("site.yml", FileKind.PLAYBOOK),
            ("playbooks/deploy.yaml", FileKind.PLAYBOOK),
            ("roles/web/meta/main.yml", FileKind.ROLE_META),
            ("roles/web/meta/main.yaml", FileKind.ROLE_META),
            ("meta/main.yml", FileKind.ROLE_META),
            ("roles/web/meta/argument_specs.yml", FileKind.PLAYBOOK),
            ("README.md", FileKind.SKIPPED),
            ("templates/nginx.conf.j2", FileKind.SKIPPED),
        ],
    )
    def test_classify(self, path: str, kind: FileKind) -> None:
        assert classify(path) is kind

    def test_windows_separators(self) -> None:
        assert is_role_meta_file("roles\\web\\meta\\main.yml") is True

"""Module name tables shared by task checks."""

from __future__ import annotations

BUILTIN_MODULES: frozenset[str] = frozenset(
    {
        "add_host", "apt", "apt_key", "apt_repository", "assemble", "assert",
        "async_status", "blockinfile", "command", "copy", "cron", "debconf",
        "debug", "dnf", "dpkg_selections", "expect", "fail", "fetch", "file",
        "find", "gather_facts", "get_url", "getent", "git", "group", "group_by",
        "hostname", "import_playbook", "import_role", "import_tasks",
        "include_role", "include_tasks", "include_vars", "iptables",
        "known_hosts", "lineinfile", "meta", "mount_facts", "package",
        "package_facts", "pause", "ping", "pip", "raw", "reboot", "replace",
        "rpm_key", "script", "service", "service_facts", "set_fact",
        "set_stats", "setup", "shell", "slurp", "stat", "subversion",
        "systemd", "systemd_service", "sysvinit", "tempfile", "template",
        "unarchive", "uri", "user", "validate_argument_spec", "wait_for",
        "wait_for_connection", "yum", "yum_repository",
    }
)

BUILTIN_PREFIXES: tuple[str, ...] = ("ansible.builtin.", "ansible.legacy.")

DEPRECATED_MODULES: dict[str, str] = {
    "include": "ansible.builtin.include_tasks or ansible.builtin.import_tasks",
    "docker": "community.docker.docker_container",
    "docker_image_facts": "community.docker.docker_image_info",
    "easy_install": "ansible.builtin.pip",
    "ec2": "amazon.aws.ec2_instance",
    "ec2_facts": "amazon.aws.ec2_metadata_facts",
    "win_msi": "ansible.windows.win_package",
    "yum_repository_facts": "ansible.builtin.yum_repository",
}

DEPRECATED_TASK_KEYS: dict[str, str] = {
    "sudo": "become",
    "sudo_user": "become_user",
    "su": "become",
    "su_user": "become_user",
    "always_run": "check_mode: false",
}

COMMAND_MODULES: frozenset[str] = frozenset({"command", "shell", "raw"})

PACKAGE_MODULES: frozenset[str] = frozenset(
    {"apt", "dnf", "yum", "package", "pip", "zypper", "apk", "pacman", "homebrew", "gem", "npm"}
)

FILE_MODULES: frozenset[str] = frozenset(
    {"file", "copy", "template", "assemble", "get_url", "unarchive", "lineinfile", "blockinfile"}
)

# Commands that have a dedicated module.
COMMAND_TO_MODULE: dict[str, str] = {
    "apt-get": "ansible.builtin.apt",
    "apt": "ansible.builtin.apt",
    "yum": "ansible.builtin.yum",
    "dnf": "ansible.builtin.dnf",
    "curl": "ansible.builtin.get_url or ansible.builtin.uri",
    "wget": "ansible.builtin.get_url",
    "git": "ansible.builtin.git",
    "systemctl": "ansible.builtin.systemd",
    "service": "ansible.builtin.service",
    "chmod": "ansible.builtin.file",
    "chown": "ansible.builtin.file",
    "mkdir": "ansible.builtin.file",
    "rm": "ansible.builtin.file",
    "ln": "ansible.builtin.file",
    "tar": "ansible.builtin.unarchive",
    "unzip": "ansible.builtin.unarchive",
    "useradd": "ansible.builtin.user",
    "groupadd": "ansible.builtin.group",
    "crontab": "ansible.builtin.cron",
    "pip": "ansible.builtin.pip",
    "sed": "ansible.builtin.replace or ansible.builtin.lineinfile",
}


def is_builtin(module: str) -> bool:
    if "." in module:
        return module.startswith(BUILTIN_PREFIXES)
    return module in BUILTIN_MODULES

"""Structured model: nodes, YAML parsers and file classifier."""

from playscan.model.classifier import FileKind, classify, is_role_meta_file, is_yaml_file
from playscan.model.nodes import (
    TASK_KEYWORDS,
    Block,
    ParseError,
    Play,
    PlaybookFile,
    RoleMeta,
    Task,
    flatten,
)
from playscan.model.parser import parse_playbook, parse_role_meta

__all__ = [
    "TASK_KEYWORDS",
    "Block",
    "FileKind",
    "ParseError",
    "Play",
    "PlaybookFile",
    "RoleMeta",
    "Task",
    "classify",
    "flatten",
    "is_role_meta_file",
    "is_yaml_file",
    "parse_playbook",
    "parse_role_meta",
]

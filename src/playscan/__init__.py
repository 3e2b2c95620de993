"""Playscan - rule-based static analysis for Ansible playbooks."""

__version__ = "0.4.0"

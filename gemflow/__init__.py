"""Composable async workflow steps with tracing and metrics, checkpoints, interactive sessions, tool registries and JSON schema helpers."""

__version__ = "0.1.0"
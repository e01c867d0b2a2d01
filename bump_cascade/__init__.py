"""Semantic-version propagation for uv workspaces."""

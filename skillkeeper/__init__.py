"""Local manager for AI agent skills: manifests, symlinks, a store index and a JSON HTTP API."""

__version__ = "0.1.0"
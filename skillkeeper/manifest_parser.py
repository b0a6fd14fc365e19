"""Normalisation of skill manifests and the timestamp format they use."""

from __future__ import annotations

import dataclasses
import time

from skillkeeper.domain import SkillManifest

DEFAULT_ENTRY = "main"


def now_rfc3339() -> str:
    """Return the current time as whole seconds since the Unix epoch."""
    seconds = int(time.time())
    return str(seconds) if seconds >= 0 else "0"


def normalize_manifest(manifest: SkillManifest) -> SkillManifest:
    """Return a copy with a default entry point and timestamp filled in where blank."""
    changes = {}
    if not manifest.entry.strip():
        changes["entry"] = DEFAULT_ENTRY
    if not manifest.updated_at.strip():
        changes["updated_at"] = now_rfc3339()
    return dataclasses.replace(manifest, **changes)
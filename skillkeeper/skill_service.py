"""Operations on locally installed skills."""

from __future__ import annotations

import dataclasses

from skillkeeper.domain import (
    AgentAppDTO,
    AgentSettingsDTO,
    InstallStateKind,
    SkillDTO,
    SkillInstallState,
    SkillManifest,
)
from skillkeeper.local_fs_repo import LocalRepository
from skillkeeper.manifest_parser import normalize_manifest, now_rfc3339
from skillkeeper.store_service import StoreService

DEFAULT_VERSION = "0.1.0"


class SkillError(Exception):
    """Raised when a skill operation is refused."""


def version_is_newer(current: str, latest: str) -> bool:
    """Report whether ``latest`` should be treated as an update of ``current``."""
    return current != latest


def _installed() -> SkillInstallState:
    return SkillInstallState(InstallStateKind.INSTALLED)


class SkillService:
    """Installs, edits and lists skills, and manages agent links."""

    def __init__(self, repository: LocalRepository, store: StoreService | None = None):
        self.repository = repository
        self.store = store if store is not None else StoreService(repository)

    def list_local_skills(self) -> list[SkillDTO]:
        """Return installed skills with their store versions where known."""
        self.repository.synchronize_skill_links()
        manifests = self.repository.list_skill_manifests()
        try:
            store_index = self.store.get_index()
        except OSError:
            store_index = []
        latest_by_id: dict[str, str] = {}
        for item in store_index:
            latest_by_id.setdefault(item.skill_id, item.latest_version)

        skills = []
        for manifest in manifests:
            remote = latest_by_id.get(manifest.id)
            if remote is not None and version_is_newer(manifest.version, remote):
                state = SkillInstallState(InstallStateKind.UPDATING)
            else:
                state = _installed()
            skills.append(SkillDTO(manifest=manifest, local_state=state, remote_latest_version=remote))
        return skills

    def get_local_skill(self, skill_id: str) -> SkillDTO | None:
        """Return the skill ``skill_id``, or None if it is not installed."""
        manifest = self.repository.get_skill_manifest(skill_id)
        if manifest is None:
            return None
        return SkillDTO(manifest=manifest, local_state=_installed())

    def install_skill(self, skill_id: str, requested_version: str | None = None) -> SkillDTO:
        """Create a managed skill with a default manifest."""
        manifest = normalize_manifest(
            SkillManifest(
                id=skill_id,
                name=skill_id.replace("-", " "),
                version=requested_version if requested_version is not None else DEFAULT_VERSION,
                entry="main",
                prompts=["default_prompt"],
                required_capabilities=["filesystem"],
                enabled=True,
                updated_at=now_rfc3339(),
            )
        )
        self.repository.save_skill_manifest(manifest)
        self.repository.synchronize_skill_links()
        return SkillDTO(manifest=manifest, local_state=_installed(), sync_status="local_saved")

    def uninstall_skill(self, skill_id: str) -> None:
        """Remove a skill and every link to it."""
        self.repository.remove_skill_manifest(skill_id)
        self.repository.synchronize_skill_links()

    def set_skill_enabled(self, skill_id: str, enabled: bool) -> SkillDTO:
        """Switch a skill on or off."""
        existing = self.repository.get_skill_manifest(skill_id)
        if existing is None:
            raise SkillError(f"skill_not_found: {skill_id}")
        manifest = dataclasses.replace(existing, enabled=enabled, updated_at=now_rfc3339())
        self.repository.save_skill_manifest(manifest)
        self.repository.synchronize_skill_links()
        return SkillDTO(manifest=manifest, local_state=_installed(), sync_status="toggled")

    def update_skill_manifest(self, skill_id: str, manifest: SkillManifest) -> SkillDTO:
        """Replace the manifest of ``skill_id``; the ids must agree."""
        if skill_id != manifest.id:
            raise SkillError("skill_id_mismatch")
        normalized = normalize_manifest(dataclasses.replace(manifest, updated_at=now_rfc3339()))
        self.repository.save_skill_manifest(normalized)
        self.repository.synchronize_skill_links()
        return SkillDTO(manifest=normalized, local_state=_installed(), sync_status="manifest_updated")

    def list_agent_apps(self) -> list[AgentAppDTO]:
        return self.repository.list_agent_apps()

    def rebuild_skill_links(self) -> None:
        self.repository.synchronize_skill_links()

    def rebuild_skill_links_for_app(self, app_name: str) -> None:
        self.repository.synchronize_skill_links(app_name)

    def get_agent_settings(self) -> AgentSettingsDTO:
        return self.repository.get_agent_settings()

    def save_agent_settings(self, settings: AgentSettingsDTO) -> None:
        self.repository.save_agent_settings(settings)
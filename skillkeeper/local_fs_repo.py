"""Skill storage under ``~/.aiman`` with symlinks into agent skill directories."""

from __future__ import annotations

import json
import os
import shutil
import stat
from pathlib import Path
from typing import Any

from skillkeeper.domain import AgentAppDTO, AgentSettingsDTO, SkillManifest, SkillRemoteIndex

AIMAN_DIR = ".aiman"
SKILLS_DIR_NAME = "skills"
MANAGED_DIR_NAME = "_aiman_managed"
STORE_CACHE_FILE_NAME = "store_index_cache.json"
STORE_REMOTE_FILE_NAME = "store_remote_index.json"
AGENTS_REGISTRY_FILE_NAME = "agents.json"
AGENTS_SETTINGS_FILE_NAME = "agents_settings.json"
MANIFEST_FILE_NAME = "manifest.json"


class RepositoryError(OSError):
    """Raised when the repository cannot be located or holds unreadable data."""


def default_store_index() -> list[SkillRemoteIndex]:
    """The built-in store index used when no remote index file is present."""
    return [
        SkillRemoteIndex(
            skill_id="summarizer",
            latest_version="0.1.0",
            download_url="builtin://summarizer",
            checksum="local-dev",
            published_at="2026-01-01T00:00:00Z",
        ),
        SkillRemoteIndex(
            skill_id="translator",
            latest_version="0.1.0",
            download_url="builtin://translator",
            checksum="local-dev",
            published_at="2026-01-01T00:00:00Z",
        ),
    ]


def _pretty(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def _read_json(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except ValueError as exc:
        raise RepositoryError(f"{path}: {exc}") from exc


def _remove_entry(path: Path) -> None:
    """Remove a real directory tree, or a file or symlink, at ``path``."""
    mode = os.lstat(path).st_mode
    if stat.S_ISDIR(mode):
        shutil.rmtree(path)
    else:
        path.unlink()


def _create_or_replace_symlink(src: Path, dst: Path) -> None:
    if os.name != "posix":
        return
    if os.path.lexists(dst):
        _remove_entry(dst)
    dst.parent.mkdir(parents=True, exist_ok=True)
    os.symlink(src, dst)


def _canonical(path: Path) -> Path:
    try:
        return path.resolve(strict=True)
    except OSError:
        return path


def _parse_str_list(value: Any) -> list[str] | None:
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    return None


class _DiscoverySettings:
    __slots__ = ("whitelist", "blacklist")

    def __init__(self, whitelist: list[str] | None = None, blacklist: list[str] | None = None):
        self.whitelist = whitelist or []
        self.blacklist = blacklist or []

    @classmethod
    def parse(cls, text: str) -> "_DiscoverySettings":
        """Parse settings text; anything malformed yields empty settings."""
        try:
            data = json.loads(text)
        except ValueError:
            return cls()
        if not isinstance(data, dict) or "whitelist" not in data or "blacklist" not in data:
            return cls()
        whitelist = _parse_str_list(data["whitelist"])
        blacklist = _parse_str_list(data["blacklist"])
        if whitelist is None or blacklist is None:
            return cls()
        return cls(whitelist, blacklist)

    def allows(self, app_name: str) -> bool:
        if app_name in self.blacklist:
            return False
        return not self.whitelist or app_name in self.whitelist


class LocalRepository:
    """Filesystem store of skills rooted at a user's home directory."""

    def __init__(self, home: str | os.PathLike[str] | None = None):
        if home is None:
            env_home = os.environ.get("HOME")
            if env_home is None:
                raise RepositoryError("HOME is not set")
            home = env_home
        self.home = Path(home)
        self.root_dir = self.home / AIMAN_DIR
        self.skills_dir = self.root_dir / SKILLS_DIR_NAME
        self.managed_dir = self.skills_dir / MANAGED_DIR_NAME
        self._store_cache_file = self.root_dir / STORE_CACHE_FILE_NAME
        self._store_remote_file = self.root_dir / STORE_REMOTE_FILE_NAME
        self._registry_file = self.root_dir / AGENTS_REGISTRY_FILE_NAME
        self._settings_file = self.root_dir / AGENTS_SETTINGS_FILE_NAME

    # -- agent discovery -------------------------------------------------

    def _load_discovery_settings(self) -> _DiscoverySettings:
        if not self._settings_file.exists():
            return _DiscoverySettings()
        return _DiscoverySettings.parse(self._settings_file.read_text(encoding="utf-8"))

    def _discover_agents(self) -> list[AgentAppDTO]:
        try:
            settings = self._load_discovery_settings()
        except OSError:
            settings = _DiscoverySettings()
        apps: list[AgentAppDTO] = []

        if self._registry_file.exists():
            payload = self._registry_file.read_text(encoding="utf-8")
            try:
                registered = [AgentAppDTO.from_dict(item) for item in json.loads(payload)]
            except (ValueError, TypeError):
                registered = []
            apps.extend(app for app in registered if settings.allows(app.app_name))

        # Hidden application folders such as ~/.opencode/skills.
        for path in self.home.iterdir():
            name = path.name
            if not path.is_dir() or not name.startswith(".") or name == AIMAN_DIR:
                continue
            app_name = name.lstrip(".")
            if not app_name or not settings.allows(app_name):
                continue
            skills_dir = path / SKILLS_DIR_NAME
            if skills_dir.is_dir():
                apps.append(AgentAppDTO(app_name=app_name, skills_dir=str(skills_dir)))

        apps.sort(key=lambda app: app.app_name)
        unique: list[AgentAppDTO] = []
        for app in apps:
            if not unique or unique[-1] != app:
                unique.append(app)
        return unique

    def get_agent_settings(self) -> AgentSettingsDTO:
        """Return the registry text and discovery lists."""
        settings = self._load_discovery_settings()
        if self._registry_file.exists():
            registry_json = self._registry_file.read_text(encoding="utf-8")
        else:
            registry_json = "[]"
        return AgentSettingsDTO(
            agents_registry_json=registry_json,
            whitelist=settings.whitelist,
            blacklist=settings.blacklist,
        )

    def save_agent_settings(self, settings: AgentSettingsDTO) -> None:
        """Store the registry text verbatim and the discovery lists as JSON."""
        self.root_dir.mkdir(parents=True, exist_ok=True)
        self._registry_file.write_text(settings.agents_registry_json, encoding="utf-8")
        payload = {"whitelist": list(settings.whitelist), "blacklist": list(settings.blacklist)}
        self._settings_file.write_text(_pretty(payload), encoding="utf-8")

    def list_agent_apps(self) -> list[AgentAppDTO]:
        """Return registered and auto-discovered agent apps, sorted by name."""
        return self._discover_agents()

    # -- links -----------------------------------------------------------

    def _managed_skill_ids(self) -> list[str]:
        self.managed_dir.mkdir(parents=True, exist_ok=True)
        return sorted(
            entry.name
            for entry in self.managed_dir.iterdir()
            if (entry / MANIFEST_FILE_NAME).exists()
        )

    def _central_link(self, skill_id: str) -> Path:
        return self.skills_dir / skill_id

    def _managed_manifest(self, skill_id: str) -> Path:
        return self.managed_dir / skill_id / MANIFEST_FILE_NAME

    def synchronize_skill_links(self, app_name: str | None = None) -> None:
        """Rebuild symlinks between managed skills, the central directory and agents.

        With ``app_name`` only that agent's directory is touched.
        """
        self.skills_dir.mkdir(parents=True, exist_ok=True)
        self.managed_dir.mkdir(parents=True, exist_ok=True)

        for skill_id in self._managed_skill_ids():
            _create_or_replace_symlink(self.managed_dir / skill_id, self._central_link(skill_id))

        managed_ids = self._managed_skill_ids()
        for app in self._discover_agents():
            if app_name is not None and app.app_name != app_name:
                continue
            agent_dir = Path(app.skills_dir)
            agent_dir.mkdir(parents=True, exist_ok=True)
            for skill_id in managed_ids:
                _create_or_replace_symlink(self.managed_dir / skill_id, agent_dir / skill_id)

        # Skills owned by an agent get a prefixed link in the central directory.
        skills_root = _canonical(self.skills_dir)
        for app in self._discover_agents():
            if app_name is not None and app.app_name != app_name:
                continue
            agent_dir = Path(app.skills_dir)
            if not agent_dir.exists():
                continue
            for source in sorted(agent_dir.iterdir()):
                if _canonical(source).is_relative_to(skills_root):
                    continue
                if not source.is_dir() or not (source / MANIFEST_FILE_NAME).exists():
                    continue
                target = self.skills_dir / f"{app.app_name}-{source.name}"
                _create_or_replace_symlink(source, target)

    # -- manifests -------------------------------------------------------

    def list_skill_manifests(self) -> list[SkillManifest]:
        """Return every readable manifest in the central directory, sorted by name."""
        self.synchronize_skill_links()
        self.skills_dir.mkdir(parents=True, exist_ok=True)
        manifests = []
        for entry in sorted(self.skills_dir.iterdir()):
            if entry.name.startswith("_"):
                continue
            manifest_path = entry / MANIFEST_FILE_NAME
            if not manifest_path.exists():
                continue
            payload = manifest_path.read_text(encoding="utf-8")
            try:
                manifests.append(SkillManifest.from_dict(json.loads(payload)))
            except ValueError:
                continue
        manifests.sort(key=lambda manifest: manifest.name)
        return manifests

    def get_skill_manifest(self, skill_id: str) -> SkillManifest | None:
        """Return the manifest of ``skill_id``, or None if it is not present."""
        managed = self._managed_manifest(skill_id)
        candidate = managed if managed.exists() else self._central_link(skill_id) / MANIFEST_FILE_NAME
        if not candidate.exists():
            return None
        data = _read_json(candidate)
        try:
            return SkillManifest.from_dict(data)
        except ValueError as exc:
            raise RepositoryError(f"{candidate}: {exc}") from exc

    def save_skill_manifest(self, manifest: SkillManifest) -> None:
        """Write a managed manifest and refresh all links."""
        path = self._managed_manifest(manifest.id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(_pretty(manifest.to_dict()), encoding="utf-8")
        _create_or_replace_symlink(self.managed_dir / manifest.id, self._central_link(manifest.id))
        self.synchronize_skill_links()

    def remove_skill_manifest(self, skill_id: str) -> None:
        """Delete a managed skill, its central link and its links in agent directories."""
        folder = self.managed_dir / skill_id
        if folder.exists():
            shutil.rmtree(folder)
        central = self._central_link(skill_id)
        if os.path.lexists(central):
            _remove_entry(central)
        for app in self._discover_agents():
            link = Path(app.skills_dir) / skill_id
            if os.path.lexists(link):
                _remove_entry(link)

    # -- store index -----------------------------------------------------

    def refresh_store_index_cache(self) -> list[SkillRemoteIndex]:
        """Reload the store index from the remote file (or defaults) into the cache."""
        self.root_dir.mkdir(parents=True, exist_ok=True)
        if self._store_remote_file.exists():
            entries = self._parse_index(self._store_remote_file)
        else:
            entries = default_store_index()
        payload = _pretty([entry.to_dict() for entry in entries])
        self._store_cache_file.write_text(payload, encoding="utf-8")
        return entries

    def get_store_index_cache(self) -> list[SkillRemoteIndex]:
        """Return the cached store index, building it first if absent."""
        if not self._store_cache_file.exists():
            return self.refresh_store_index_cache()
        return self._parse_index(self._store_cache_file)

    @staticmethod
    def _parse_index(path: Path) -> list[SkillRemoteIndex]:
        data = _read_json(path)
        if not isinstance(data, list):
            raise RepositoryError(f"{path}: expected a list of index entries")
        try:
            return [SkillRemoteIndex.from_dict(item) for item in data]
        except ValueError as exc:
            raise RepositoryError(f"{path}: {exc}") from exc
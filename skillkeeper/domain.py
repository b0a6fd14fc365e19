"""Data types describing skills, their manifests, sync records and agent apps."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Mapping


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"invalid type: expected {what} object")
    return data


def _required(data: Mapping[str, Any], name: str) -> Any:
    if name not in data:
        raise ValueError(f"missing field `{name}`")
    return data[name]


def _str(data: Mapping[str, Any], name: str) -> str:
    value = _required(data, name)
    if not isinstance(value, str):
        raise ValueError(f"invalid type for `{name}`: expected a string")
    return value


def _optional_str(data: Mapping[str, Any], name: str) -> str | None:
    value = data.get(name)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"invalid type for `{name}`: expected a string or null")
    return value


def _bool(data: Mapping[str, Any], name: str) -> bool:
    value = _required(data, name)
    if not isinstance(value, bool):
        raise ValueError(f"invalid type for `{name}`: expected a boolean")
    return value


def _int(data: Mapping[str, Any], name: str) -> int:
    value = _required(data, name)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"invalid type for `{name}`: expected an integer")
    return value


def _str_list(data: Mapping[str, Any], name: str) -> list[str]:
    value = _required(data, name)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"invalid type for `{name}`: expected a list of strings")
    return list(value)


class InstallStateKind(enum.Enum):
    """The kinds of state a skill installation can be in."""

    NOT_INSTALLED = "NotInstalled"
    INSTALLING = "Installing"
    INSTALLED = "Installed"
    UPDATING = "Updating"
    ERROR = "Error"


@dataclass(frozen=True)
class SkillInstallState:
    """Installation state; only the error state carries a message."""

    kind: InstallStateKind
    message: str | None = None

    def __post_init__(self) -> None:
        if (self.kind is InstallStateKind.ERROR) != (self.message is not None):
            raise ValueError("only the Error state carries a message, and it must have one")

    def to_json(self) -> Any:
        """Encode as a bare variant name, or ``{"Error": message}``."""
        if self.kind is InstallStateKind.ERROR:
            return {InstallStateKind.ERROR.value: self.message}
        return self.kind.value

    @classmethod
    def from_json(cls, data: Any) -> "SkillInstallState":
        """Decode the form produced by :meth:`to_json`."""
        if isinstance(data, str):
            try:
                kind = InstallStateKind(data)
            except ValueError:
                raise ValueError(f"unknown variant `{data}`") from None
            if kind is InstallStateKind.ERROR:
                raise ValueError("the Error state needs a message")
            return cls(kind)
        if isinstance(data, Mapping) and len(data) == 1:
            ((tag, value),) = data.items()
            if tag == InstallStateKind.ERROR.value and isinstance(value, str):
                return cls(InstallStateKind.ERROR, value)
        raise ValueError(f"invalid install state: {data!r}")


@dataclass
class SkillManifest:
    """The manifest stored alongside each skill."""

    id: str
    name: str
    version: str
    entry: str
    prompts: list[str]
    required_capabilities: list[str]
    enabled: bool
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "entry": self.entry,
            "prompts": list(self.prompts),
            "required_capabilities": list(self.required_capabilities),
            "enabled": self.enabled,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SkillManifest":
        data = _mapping(data, "manifest")
        return cls(
            id=_str(data, "id"),
            name=_str(data, "name"),
            version=_str(data, "version"),
            entry=_str(data, "entry"),
            prompts=_str_list(data, "prompts"),
            required_capabilities=_str_list(data, "required_capabilities"),
            enabled=_bool(data, "enabled"),
            updated_at=_str(data, "updated_at"),
        )


@dataclass
class SkillRemoteIndex:
    """One entry of the skill store index."""

    skill_id: str
    latest_version: str
    download_url: str
    checksum: str
    published_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "skill_id": self.skill_id,
            "latest_version": self.latest_version,
            "download_url": self.download_url,
            "checksum": self.checksum,
            "published_at": self.published_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SkillRemoteIndex":
        data = _mapping(data, "store index entry")
        return cls(
            skill_id=_str(data, "skill_id"),
            latest_version=_str(data, "latest_version"),
            download_url=_str(data, "download_url"),
            checksum=_str(data, "checksum"),
            published_at=_str(data, "published_at"),
        )


@dataclass
class SkillInstallRecord:
    """A user's installation of a skill, as synchronised to a backend."""

    user_id: str
    skill_id: str
    installed_version: str
    install_state: SkillInstallState
    sync_version: int
    last_synced_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "skill_id": self.skill_id,
            "installed_version": self.installed_version,
            "install_state": self.install_state.to_json(),
            "sync_version": self.sync_version,
            "last_synced_at": self.last_synced_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SkillInstallRecord":
        data = _mapping(data, "install record")
        return cls(
            user_id=_str(data, "user_id"),
            skill_id=_str(data, "skill_id"),
            installed_version=_str(data, "installed_version"),
            install_state=SkillInstallState.from_json(_required(data, "install_state")),
            sync_version=_int(data, "sync_version"),
            last_synced_at=_str(data, "last_synced_at"),
        )


@dataclass
class SkillDTO:
    """A skill as presented to clients: manifest plus derived state."""

    manifest: SkillManifest
    local_state: SkillInstallState
    remote_latest_version: str | None = None
    sync_status: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "manifest": self.manifest.to_dict(),
            "local_state": self.local_state.to_json(),
            "remote_latest_version": self.remote_latest_version,
            "sync_status": self.sync_status,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SkillDTO":
        data = _mapping(data, "skill")
        return cls(
            manifest=SkillManifest.from_dict(_required(data, "manifest")),
            local_state=SkillInstallState.from_json(_required(data, "local_state")),
            remote_latest_version=_optional_str(data, "remote_latest_version"),
            sync_status=_optional_str(data, "sync_status"),
        )


@dataclass
class AgentAppDTO:
    """An agent application and the directory it loads skills from."""

    app_name: str
    skills_dir: str

    def to_dict(self) -> dict[str, Any]:
        return {"app_name": self.app_name, "skills_dir": self.skills_dir}

    @classmethod
    def from_dict(cls, data: Any) -> "AgentAppDTO":
        data = _mapping(data, "agent app")
        return cls(app_name=_str(data, "app_name"), skills_dir=_str(data, "skills_dir"))


@dataclass
class AgentSettingsDTO:
    """Agent registry text together with the discovery white and black lists."""

    agents_registry_json: str
    whitelist: list[str]
    blacklist: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "agents_registry_json": self.agents_registry_json,
            "whitelist": list(self.whitelist),
            "blacklist": list(self.blacklist),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "AgentSettingsDTO":
        data = _mapping(data, "agent settings")
        return cls(
            agents_registry_json=_str(data, "agents_registry_json"),
            whitelist=_str_list(data, "whitelist"),
            blacklist=_str_list(data, "blacklist"),
        )
import json
import os

import pytest

from skillkeeper.domain import AgentAppDTO, AgentSettingsDTO, SkillManifest, SkillRemoteIndex
from skillkeeper.local_fs_repo import LocalRepository, RepositoryError, default_store_index


def make_manifest(skill_id, name=None):
    return SkillManifest(
        id=skill_id,
        name=name or skill_id,
        version="0.1.0",
        entry="main",
        prompts=["default_prompt"],
        required_capabilities=["filesystem"],
        enabled=True,
        updated_at="1700000000",
    )


def add_agent(home, app):
    skills = home / f".{app}" / "skills"
    skills.mkdir(parents=True)
    return skills


def write_manifest(directory, manifest):
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "manifest.json").write_text(json.dumps(manifest.to_dict()), encoding="utf-8")


@pytest.fixture
def repo(tmp_path):
    return LocalRepository(tmp_path)


def managed(tmp_path):
    return tmp_path / ".aiman" / "skills" / "_aiman_managed"


def test_missing_home_raises(monkeypatch):
    monkeypatch.delenv("HOME", raising=False)
    with pytest.raises(RepositoryError, match="HOME is not set"):
        LocalRepository()


def test_home_taken_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    manifest = make_manifest("alpha")
    repository = LocalRepository()
    repository.save_skill_manifest(manifest)
    assert (managed(tmp_path) / "alpha" / "manifest.json").is_file()
    assert LocalRepository(tmp_path).get_skill_manifest("alpha") == manifest


def test_save_and_get_round_trip(repo):
    manifest = make_manifest("alpha")
    repo.save_skill_manifest(manifest)
    assert repo.get_skill_manifest("alpha") == manifest


def test_saved_manifest_is_pretty_json(repo, tmp_path):
    manifest = make_manifest("alpha")
    repo.save_skill_manifest(manifest)
    text = (managed(tmp_path) / "alpha" / "manifest.json").read_text(encoding="utf-8")
    assert json.loads(text) == manifest.to_dict()
    assert text.startswith("{\n  ")


def test_central_link_points_to_managed_dir(repo, tmp_path):
    manifest = make_manifest("alpha")
    repo.save_skill_manifest(manifest)
    central = tmp_path / ".aiman" / "skills" / "alpha"
    assert central.is_symlink()
    assert central.resolve() == (managed(tmp_path) / "alpha").resolve()
    assert repo.list_skill_manifests() == [manifest]


def test_get_missing_returns_none(repo):
    assert repo.get_skill_manifest("nothing") is None


def test_get_corrupt_manifest_raises(repo, tmp_path):
    folder = managed(tmp_path) / "bad"
    folder.mkdir(parents=True)
    (folder / "manifest.json").write_text("not json", encoding="utf-8")
    with pytest.raises(RepositoryError):
        repo.get_skill_manifest("bad")


def test_list_sorted_by_name(repo):
    repo.save_skill_manifest(make_manifest("b-skill", name="Zeta"))
    repo.save_skill_manifest(make_manifest("a-skill", name="Alpha"))
    assert [m.name for m in repo.list_skill_manifests()] == ["Alpha", "Zeta"]


def test_list_skips_invalid_manifests(repo, tmp_path):
    repo.save_skill_manifest(make_manifest("good"))
    broken = tmp_path / ".aiman" / "skills" / "broken"
    broken.mkdir(parents=True)
    (broken / "manifest.json").write_text("{}", encoding="utf-8")
    assert [m.id for m in repo.list_skill_manifests()] == ["good"]


def test_remove_deletes_folder_and_links(repo, tmp_path):
    agent_dir = add_agent(tmp_path, "opencode")
    repo.save_skill_manifest(make_manifest("alpha"))
    assert (agent_dir / "alpha").is_symlink()
    repo.remove_skill_manifest("alpha")
    assert repo.get_skill_manifest("alpha") is None
    assert not os.path.lexists(tmp_path / ".aiman" / "skills" / "alpha")
    assert not os.path.lexists(agent_dir / "alpha")
    assert not (managed(tmp_path) / "alpha").exists()
    assert repo.list_skill_manifests() == []


def test_discovers_hidden_app_dirs(repo, tmp_path):
    skills = add_agent(tmp_path, "opencode")
    (tmp_path / ".cline").mkdir()
    (tmp_path / ".aiman" / "skills").mkdir(parents=True)
    (tmp_path / "visible" / "skills").mkdir(parents=True)
    assert repo.list_agent_apps() == [AgentAppDTO(app_name="opencode", skills_dir=str(skills))]


def test_blacklist_excludes_app(repo, tmp_path):
    add_agent(tmp_path, "opencode")
    cline = add_agent(tmp_path, "cline")
    repo.save_agent_settings(AgentSettingsDTO("[]", [], ["opencode"]))
    assert repo.list_agent_apps() == [AgentAppDTO("cline", str(cline))]


def test_whitelist_restricts_apps(repo, tmp_path):
    opencode = add_agent(tmp_path, "opencode")
    add_agent(tmp_path, "cline")
    repo.save_agent_settings(AgentSettingsDTO("[]", ["opencode"], []))
    assert repo.list_agent_apps() == [AgentAppDTO("opencode", str(opencode))]


def test_registry_entries_are_listed_sorted(repo, tmp_path):
    opencode = add_agent(tmp_path, "opencode")
    elsewhere = tmp_path / "elsewhere"
    registry = json.dumps([{"app_name": "aardvark", "skills_dir": str(elsewhere)}])
    repo.save_agent_settings(AgentSettingsDTO(registry, [], []))
    assert repo.list_agent_apps() == [
        AgentAppDTO("aardvark", str(elsewhere)),
        AgentAppDTO("opencode", str(opencode)),
    ]


def test_invalid_registry_is_ignored(repo, tmp_path):
    opencode = add_agent(tmp_path, "opencode")
    repo.save_agent_settings(AgentSettingsDTO("not json", [], []))
    assert repo.list_agent_apps() == [AgentAppDTO("opencode", str(opencode))]


def test_agent_settings_defaults(repo):
    settings = repo.get_agent_settings()
    assert settings == AgentSettingsDTO("[]", [], [])


def test_agent_settings_round_trip(repo):
    settings = AgentSettingsDTO('[{"app_name":"x","skills_dir":"/tmp/x"}]', ["opencode"], ["example_agent"])
    repo.save_agent_settings(settings)
    assert repo.get_agent_settings() == settings


def test_malformed_settings_file_falls_back_to_defaults(repo, tmp_path):
    opencode = add_agent(tmp_path, "opencode")
    root = tmp_path / ".aiman"
    root.mkdir()
    (root / "agents_settings.json").write_text('{"whitelist": ["cline"]}', encoding="utf-8")
    assert repo.get_agent_settings().whitelist == []
    assert repo.list_agent_apps() == [AgentAppDTO("opencode", str(opencode))]


def test_managed_skills_linked_into_agent_dir(repo, tmp_path):
    agent_dir = add_agent(tmp_path, "opencode")
    manifest = make_manifest("alpha")
    repo.save_skill_manifest(manifest)
    link = agent_dir / "alpha"
    assert link.is_symlink()
    assert link.resolve() == (managed(tmp_path) / "alpha").resolve()
    assert repo.list_agent_apps() == [AgentAppDTO("opencode", str(agent_dir))]
    assert repo.list_skill_manifests() == [manifest]


def test_agent_owned_skill_gets_prefixed_central_link(repo, tmp_path):
    agent_dir = add_agent(tmp_path, "opencode")
    owned = make_manifest("create-skill")
    write_manifest(agent_dir / "create-skill", owned)
    (agent_dir / "no-manifest").mkdir()
    repo.synchronize_skill_links()
    central = tmp_path / ".aiman" / "skills"
    assert (central / "opencode-create-skill").is_symlink()
    assert not os.path.lexists(central / "opencode-no-manifest")
    assert repo.list_skill_manifests() == [owned]


def test_links_for_single_app_only(repo, tmp_path):
    opencode = add_agent(tmp_path, "opencode")
    cline = add_agent(tmp_path, "cline")
    manifest = make_manifest("alpha")
    write_manifest(managed(tmp_path) / "alpha", manifest)
    repo.synchronize_skill_links("opencode")
    assert (opencode / "alpha").is_symlink()
    assert not os.path.lexists(cline / "alpha")
    assert (tmp_path / ".aiman" / "skills" / "alpha").is_symlink()
    assert repo.get_skill_manifest("alpha") == manifest


def test_get_manifest_falls_back_to_central_link(repo, tmp_path):
    agent_dir = add_agent(tmp_path, "opencode")
    owned = make_manifest("create-skill")
    write_manifest(agent_dir / "create-skill", owned)
    repo.synchronize_skill_links()
    assert repo.get_skill_manifest("opencode-create-skill") == owned


def test_store_cache_defaults(repo, tmp_path):
    entries = repo.get_store_index_cache()
    assert entries == default_store_index()
    assert [e.skill_id for e in entries] == ["summarizer", "translator"]
    assert (tmp_path / ".aiman" / "store_index_cache.json").is_file()


def test_default_store_entries():
    first = default_store_index()[0]
    assert first.download_url == "builtin://summarizer"
    assert first.checksum == "local-dev"
    assert first.published_at == "2026-01-01T00:00:00Z"


def test_refresh_reads_remote_file(repo, tmp_path):
    entry = SkillRemoteIndex("custom", "2.0.0", "builtin://custom", "abc", "2026-01-01T00:00:00Z")
    root = tmp_path / ".aiman"
    root.mkdir()
    (root / "store_remote_index.json").write_text(json.dumps([entry.to_dict()]), encoding="utf-8")
    assert repo.refresh_store_index_cache() == [entry]
    assert repo.get_store_index_cache() == [entry]


def test_get_uses_cache_until_refreshed(repo, tmp_path):
    assert repo.get_store_index_cache() == default_store_index()
    entry = SkillRemoteIndex("custom", "2.0.0", "builtin://custom", "abc", "2026-01-01T00:00:00Z")
    (tmp_path / ".aiman" / "store_remote_index.json").write_text(
        json.dumps([entry.to_dict()]), encoding="utf-8"
    )
    assert repo.get_store_index_cache() == default_store_index()
    repo.refresh_store_index_cache()
    assert repo.get_store_index_cache() == [entry]


def test_corrupt_remote_index_raises(repo, tmp_path):
    root = tmp_path / ".aiman"
    root.mkdir()
    (root / "store_remote_index.json").write_text("[{}]", encoding="utf-8")
    with pytest.raises(RepositoryError):
        repo.refresh_store_index_cache()
# skillkeeper

skillkeeper keeps the skills used by your AI agent apps in one place. Skills
live under `~/.aiman/skills`; each one is a folder holding a `manifest.json`.
Skills that skillkeeper manages are kept in `~/.aiman/skills/_aiman_managed`
and symlinked into the central directory and into the skill directory of every
agent app it finds. Skills that belong to an agent app are linked back into
the central directory with the app's name as a prefix (for example
`opencode-create-skill`).

Symlinks are only created on POSIX systems; elsewhere the link steps do
nothing.

## Agent discovery

Agent apps are found in two ways:

* entries in `~/.aiman/agents.json`, a JSON list of
  `{"app_name": ..., "skills_dir": ...}` objects;
* hidden folders in your home directory (other than `.aiman`) that contain a
  `skills` folder, such as `~/.opencode/skills`; the app name is the folder
  name without its leading dots.

A whitelist and a blacklist of app names, kept in
`~/.aiman/agents_settings.json`, narrow down which apps are used. The blacklist
always wins; an empty whitelist allows every app. A settings file that cannot
be read as such lists counts as empty settings.

## Store index

The store index is read from `~/.aiman/store_remote_index.json` when present,
otherwise a built-in index with the skills `summarizer` and `translator`
(version `0.1.0`) is used; either way it is cached in
`~/.aiman/store_index_cache.json`. Installed skills whose version differs from
the store's latest version are reported with the state `Updating`, all others
as `Installed`.

## Installing

```
pip install .
```

## Running the HTTP API

```
skillkeeper
```

starts an HTTP server (by default on `127.0.0.1:8080`) exposing a JSON API.
Options:

* `--host` – address to listen on (default `127.0.0.1`)
* `--port` – port to listen on (default `8080`)
* `--home` – home directory holding the skill store (default `$HOME`)

Endpoints (POST bodies are JSON objects):

* `GET /api/skills/local/list` – installed skills
* `GET /api/skills/local/get/<skill_id>` – one skill, or `null`
* `POST /api/skills/local/install` – `{"skill_id": ..., "requested_version": ...}`;
  the version is optional and defaults to `0.1.0`
* `POST /api/skills/local/uninstall` – `{"skill_id": ...}`
* `POST /api/skills/local/set-enabled` – `{"skill_id": ..., "enabled": true}`
* `POST /api/skills/local/update-manifest` – `{"skill_id": ..., "manifest": {...}}`;
  the ids must agree
* `GET /api/skills/local/agent-apps` – discovered agent apps
* `POST /api/skills/local/rebuild-links` – rebuild all symlinks
* `POST /api/skills/local/rebuild-links-for-app` – `{"app_name": ...}`
* `GET /api/skills/local/agent-settings` – registry text and discovery lists
* `POST /api/skills/local/agent-settings` –
  `{"settings": {"agents_registry_json": ..., "whitelist": [...], "blacklist": [...]}}`
* `GET /api/skills/store/list` – the cached store index
* `POST /api/skills/store/refresh` – reload the store index

Malformed requests get status 400 and refused or failed operations status 500,
each with a body of the form `{"error": "..."}`.

Run `skillkeeper --help` for the options.

## Using it from Python

```python
from skillkeeper.local_fs_repo import LocalRepository
from skillkeeper.store_service import StoreService
from skillkeeper.skill_service import SkillService

repo = LocalRepository(None)          # uses $HOME
service = SkillService(repo, StoreService(repo))
service.install_skill("summarizer", None)
for skill in service.list_local_skills():
    print(skill.manifest.name, skill.local_state.kind.value)
```

The modules:

* `skillkeeper.domain` – the data types (`SkillManifest`, `SkillDTO`,
  `SkillInstallState`, `SkillRemoteIndex`, `SkillInstallRecord`,
  `AgentAppDTO`, `AgentSettingsDTO`) with their JSON forms.
* `skillkeeper.manifest_parser` – `normalize_manifest` and `now_rfc3339`.
* `skillkeeper.local_fs_repo` – `LocalRepository`, the filesystem store.
* `skillkeeper.store_service` – `StoreService`, the store index.
* `skillkeeper.skill_service` – `SkillService`, the skill operations;
  refusals raise `SkillError`.
* `skillkeeper.api` – `create_app` builds the WSGI application; `main` runs it.

## What it does not do

* There is no synchronisation of install records to a remote backend: the
  `SkillInstallRecord` type exists, but no endpoint pushes or lists records.
* Skills are not downloaded from the store; installing writes a default
  manifest for the given id and version.
* There is no graphical interface, only the JSON API.

## Running the tests

```
pip install ".[test]"
pytest
```
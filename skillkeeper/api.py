"""HTTP API over the skill and store services."""

from __future__ import annotations

import argparse
import json
from typing import Any, Callable

import bottle

from skillkeeper.domain import AgentSettingsDTO, SkillManifest
from skillkeeper.local_fs_repo import LocalRepository
from skillkeeper.skill_service import SkillError, SkillService
from skillkeeper.store_service import StoreService


def split_csv(text: str) -> list[str]:
    """Split comma separated text into trimmed, non-empty items."""
    return [item.strip() for item in text.split(",") if item.strip()]


def _json_response(data: Any, status: int = 200) -> bottle.HTTPResponse:
    return bottle.HTTPResponse(
        body=json.dumps(data, ensure_ascii=False),
        status=status,
        headers={"Content-Type": "application/json"},
    )


def _run(action: Callable[[], Any]) -> bottle.HTTPResponse:
    try:
        result = action()
    except ValueError as exc:
        return _json_response({"error": str(exc)}, 400)
    except (SkillError, OSError) as exc:
        return _json_response({"error": str(exc)}, 500)
    return _json_response(result)


def _body() -> dict[str, Any]:
    raw = bottle.request.body.read()
    if not raw.strip():
        return {}
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("request body must be a JSON object")
    return data


def _field(data: dict[str, Any], name: str) -> Any:
    if name not in data:
        raise ValueError(f"missing field `{name}`")
    return data[name]


def _str_field(data: dict[str, Any], name: str) -> str:
    value = _field(data, name)
    if not isinstance(value, str):
        raise ValueError(f"invalid type for `{name}`: expected a string")
    return value


def _bool_field(data: dict[str, Any], name: str) -> bool:
    value = _field(data, name)
    if not isinstance(value, bool):
        raise ValueError(f"invalid type for `{name}`: expected a boolean")
    return value


def _optional_str_field(data: dict[str, Any], name: str) -> str | None:
    value = data.get(name)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"invalid type for `{name}`: expected a string or null")
    return value


def create_app(service: SkillService, store: StoreService | None = None) -> bottle.Bottle:
    """Build the WSGI application serving the skill API."""
    store = store if store is not None else service.store
    app = bottle.Bottle()

    @app.get("/api/skills/local/list")
    def local_list():
        return _run(lambda: [skill.to_dict() for skill in service.list_local_skills()])

    @app.get("/api/skills/local/get/<skill_id>")
    def local_get(skill_id):
        def action():
            skill = service.get_local_skill(skill_id)
            return None if skill is None else skill.to_dict()

        return _run(action)

    @app.post("/api/skills/local/install")
    def local_install():
        def action():
            data = _body()
            skill = service.install_skill(
                _str_field(data, "skill_id"), _optional_str_field(data, "requested_version")
            )
            return skill.to_dict()

        return _run(action)

    @app.post("/api/skills/local/uninstall")
    def local_uninstall():
        return _run(lambda: service.uninstall_skill(_str_field(_body(), "skill_id")))

    @app.post("/api/skills/local/set-enabled")
    def local_set_enabled():
        def action():
            data = _body()
            skill = service.set_skill_enabled(_str_field(data, "skill_id"), _bool_field(data, "enabled"))
            return skill.to_dict()

        return _run(action)

    @app.post("/api/skills/local/update-manifest")
    def local_update_manifest():
        def action():
            data = _body()
            manifest = SkillManifest.from_dict(_field(data, "manifest"))
            return service.update_skill_manifest(_str_field(data, "skill_id"), manifest).to_dict()

        return _run(action)

    @app.get("/api/skills/local/agent-apps")
    def local_agent_apps():
        return _run(lambda: [agent.to_dict() for agent in service.list_agent_apps()])

    @app.post("/api/skills/local/rebuild-links")
    def local_rebuild_links():
        return _run(service.rebuild_skill_links)

    @app.post("/api/skills/local/rebuild-links-for-app")
    def local_rebuild_links_for_app():
        return _run(lambda: service.rebuild_skill_links_for_app(_str_field(_body(), "app_name")))

    @app.get("/api/skills/local/agent-settings")
    def local_agent_settings():
        return _run(lambda: service.get_agent_settings().to_dict())

    @app.post("/api/skills/local/agent-settings")
    def local_save_agent_settings():
        def action():
            settings = AgentSettingsDTO.from_dict(_field(_body(), "settings"))
            service.save_agent_settings(settings)

        return _run(action)

    @app.get("/api/skills/store/list")
    def store_list():
        return _run(lambda: [entry.to_dict() for entry in store.get_index()])

    @app.post("/api/skills/store/refresh")
    def store_refresh():
        return _run(lambda: [entry.to_dict() for entry in store.refresh_index()])

    return app


def main(argv: list[str] | None = None) -> int:
    """Serve the skill API over HTTP."""
    parser = argparse.ArgumentParser(prog="skillkeeper", description="Serve the skill manager API.")
    parser.add_argument("--host", default="127.0.0.1", help="address to listen on")
    parser.add_argument("--port", type=int, default=8080, help="port to listen on")
    parser.add_argument("--home", default=None, help="home directory holding the skill store")
    args = parser.parse_args(argv)

    repository = LocalRepository(args.home)
    store = StoreService(repository)
    service = SkillService(repository, store)
    bottle.run(create_app(service, store), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
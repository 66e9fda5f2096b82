"""流水线项目 API Blueprint"""

from __future__ import annotations

from flask import Blueprint, Response, jsonify, request

from pipehub.web.responses import bad_request, ok

projects_bp = Blueprint("projects", __name__, url_prefix="/api/projects")


def _project_svc():  # type: ignore[no-untyped-def]
    from pipehub.services.container import get_container
    return get_container().projects


def _access_args() -> dict[str, str | None]:
    """平台名取自查询参数，凭据只从 Basic Authorization 头读取（查询串会进访问日志）"""
    auth = request.authorization
    return {
        "hub": request.args.get("hub"),
        "user": auth.username if auth else None,
        "password": auth.password if auth else None,
    }


@projects_bp.route("", methods=["GET"])
def list_all() -> Response:
    return jsonify(projects=_project_svc().list_projects())


@projects_bp.route("/dashboard", methods=["GET"])
def dashboard() -> Response:
    return jsonify(projects=_project_svc().dashboard())


@projects_bp.route("/<org>/<repo>/revisions", methods=["GET"])
def revisions(org: str, repo: str) -> Response:
    name = f"{org}/{repo}"
    return jsonify(project=name, revisions=_project_svc().revisions(name, **_access_args()))


@projects_bp.route("/<org>/<repo>/info", methods=["GET"])
def info(org: str, repo: str) -> Response:
    level = request.args.get("level", 0, type=int)
    check = request.args.get("check_updates", "") in ("1", "true", "yes")
    result = _project_svc().info(
        f"{org}/{repo}",
        level=level,
        check_updates=check,
        revision=request.args.get("revision") or None,
        **_access_args(),
    )
    return jsonify(result)


@projects_bp.route("/pull", methods=["POST"])
def pull() -> tuple[Response, int] | Response:
    body = request.get_json(silent=True) or {}
    project = body.get("project", "")
    if not project:
        return bad_request("需要提供 project")
    depth = body.get("depth")
    if depth is not None and (not isinstance(depth, int) or depth < 1):
        return bad_request("depth 必须为正整数")
    result = _project_svc().pull(
        project,
        revision=body.get("revision") or None,
        depth=depth,
        hub=body.get("hub") or None,
        user=body.get("user") or None,
        password=body.get("password") or None,
    )
    return ok(result)

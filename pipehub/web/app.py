"""轻量级 Web API（基于 Flask）

提供: 本地缓存项目列表、项目信息、已下载版本、触发拉取。

启动方式: pipehub dashboard --port 8888
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from pipehub import __version__
from pipehub.core.exceptions import PipeHubError
from pipehub.web.blueprints import projects_bp
from pipehub.web.responses import business_error

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.register_blueprint(projects_bp)


# =========================================================================
# 全局 JSON 错误处理
# =========================================================================


@app.errorhandler(PipeHubError)
def handle_business_error(exc):
    logger.info("请求失败: %s", exc)
    return business_error(exc)


@app.errorhandler(HTTPException)
def handle_http_exception(exc):
    """将所有 HTTP 异常统一返回 JSON"""
    return jsonify(error=exc.description), exc.code


@app.errorhandler(Exception)
def handle_generic_exception(exc):  # noqa: ARG001
    """捕获未处理异常，返回 500 JSON"""
    logger.exception("未处理的异常")
    return jsonify(error="服务器内部错误"), 500


@app.route("/")
def index():
    return jsonify(service="pipehub", version=__version__)


def run_server(port: int = 8888, debug: bool = False, host: str = "127.0.0.1") -> None:
    logger.info("pipehub 看板已启动: http://%s:%d", host, port)
    app.run(host=host, port=port, debug=debug)

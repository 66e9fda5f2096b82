"""Web 层统一响应辅助函数

消除各 Blueprint 和 app.py 中重复的 jsonify(error=...), 400 模式。
"""

from __future__ import annotations

from flask import Response, jsonify

from pipehub.core.exceptions import AmbiguousProjectNameError, PipeHubError, UnknownProviderError


def ok(data: dict, status: int = 200) -> tuple[Response, int] | Response:
    """成功响应"""
    if status == 200:
        return jsonify(data)
    return jsonify(data), status


def bad_request(message: str) -> tuple[Response, int]:
    """请求参数错误"""
    return jsonify(error=message), 400


def business_error(exc: PipeHubError) -> tuple[Response, int]:
    """业务异常 → 400，附带错误码与候选项"""
    body: dict = {"error": str(exc), "code": exc.code}
    if isinstance(exc, AmbiguousProjectNameError):
        body["candidates"] = exc.candidates
    if isinstance(exc, UnknownProviderError):
        body["suggestions"] = exc.suggestions
    return jsonify(body), 400

"""统一异常体系

所有业务异常继承 PipeHubError，替代散落的 ValueError / RuntimeError。
Web 层可据此自动映射 HTTP 状态码，CLI 层可据此输出友好提示。

解析链路上的异常（名称 / 提供方 / 版本）均为致命错误，直接中断当前操作；
RemoteStatusCheckError 只在内部使用，由状态检查自行捕获并记录日志。
"""

from __future__ import annotations


class PipeHubError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(PipeHubError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class InvalidProjectNameError(PipeHubError):
    """项目名称格式不合法（段数不对、相对路径前缀等）"""

    code = "INVALID_PROJECT_NAME"


class AmbiguousProjectNameError(PipeHubError):
    """短名称命中多个本地已缓存项目"""

    code = "AMBIGUOUS_PROJECT_NAME"

    def __init__(self, message: str, candidates: list[str] | None = None) -> None:
        super().__init__(message)
        self.candidates = candidates or []


class UnknownProviderError(PipeHubError):
    """请求的代码托管平台未配置"""

    code = "UNKNOWN_PROVIDER"

    def __init__(self, message: str, suggestions: list[str] | None = None) -> None:
        super().__init__(message)
        self.suggestions = suggestions or []


class ProviderMismatchError(PipeHubError):
    """本地镜像记录的托管平台与当前选择的不一致"""

    code = "PROVIDER_MISMATCH"


class RevisionNotFoundError(PipeHubError):
    """fetch 重试后仍无法解析的版本"""

    code = "REVISION_NOT_FOUND"


class MissingRemoteArtifactError(PipeHubError):
    """远程或本地缺少必需文件（主脚本等）"""

    code = "MISSING_REMOTE_ARTIFACT"


class RemoteStatusCheckError(PipeHubError):
    """远程版本比对失败（非致命）"""

    code = "REMOTE_STATUS_CHECK"


class ManifestError(PipeHubError):
    """项目清单文件存在但格式错误"""

    code = "MANIFEST_ERROR"


class RemoteAccessError(PipeHubError):
    """托管平台 API 访问失败（404 以外的错误）"""

    code = "REMOTE_ACCESS_ERROR"


class GitCommandError(PipeHubError):
    """git 命令执行失败"""

    code = "GIT_ERROR"

    def __init__(self, command: list[str], returncode: int, stderr: str | None = None) -> None:
        message = "git 命令执行失败"
        if command:
            message = f"git 命令执行失败 (rc={returncode}): {' '.join(command)}"
        if stderr:
            message = f"{message}\n{stderr.strip()[:500]}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr or ""

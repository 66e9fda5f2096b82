"""pipehub - 流水线项目仓库解析与本地缓存管理"""

__version__ = "0.3.0"

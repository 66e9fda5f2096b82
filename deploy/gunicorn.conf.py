"""Gunicorn 生产配置

用法:
  PIPEHUB_CONFIG=configs/default.yml \
  gunicorn --config deploy/gunicorn.conf.py pipehub.web.app:app

拉取与导出会阻塞在 git / HTTP 上，worker 用线程承载并发，超时按最慢的 clone 放宽。
同一 commit 的并发拉取由工作目录的 rename 收敛，多 worker 共享缓存目录是安全的。
"""

import os

bind = os.getenv("GUNICORN_BIND", "127.0.0.1:8888")

workers = int(os.getenv("GUNICORN_WORKERS", "2"))
threads = int(os.getenv("GUNICORN_THREADS", "8"))
worker_class = "gthread"
timeout = int(os.getenv("GUNICORN_TIMEOUT", "600"))
graceful_timeout = 60

accesslog = os.getenv("GUNICORN_ACCESS_LOG", "-")
errorlog = os.getenv("GUNICORN_ERROR_LOG", "-")
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")


def post_worker_init(worker):
    """每个 worker 按环境变量加载 pipehub 配置与日志"""
    from pipehub.core.config import init_config
    from pipehub.services.container import reset_container
    from pipehub.utils.logger import setup_logging

    setup_logging(
        level=os.getenv("PIPEHUB_LOG_LEVEL", "INFO"),
        json_output=os.getenv("PIPEHUB_LOG_JSON", "") == "1",
    )
    config_path = os.getenv("PIPEHUB_CONFIG")
    if config_path:
        init_config(config_path)
        reset_container()
    worker.log.info("pipehub worker 已初始化 (config=%s)", config_path or "默认")

"""Web API Blueprint 集合"""

from pipehub.web.blueprints.projects_bp import projects_bp

__all__ = ["projects_bp"]

"""Template rendering for the site content and the nginx server block"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
)

from staticdeploy.exceptions import TemplateRenderError
from staticdeploy.models.config import DeploymentConfig

PACKAGE_TEMPLATES = Path(__file__).resolve().parent.parent / "templates"

CONTENT_TEMPLATE = "index.html.j2"
SERVER_TEMPLATE = "nginx.conf.j2"


class TemplateRenderer:
    """
    Renders templates with StrictUndefined so a missing variable fails the run
    instead of producing an empty string.

    Project templates (if a directory is given) shadow the packaged defaults.
    """

    def __init__(self, override_dir: Optional[Path] = None):
        search: List[FileSystemLoader] = []
        if override_dir and Path(override_dir).is_dir():
            search.append(FileSystemLoader(str(override_dir)))
        search.append(FileSystemLoader(str(PACKAGE_TEMPLATES)))
        self.env = Environment(
            loader=ChoiceLoader(search),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )

    @staticmethod
    def context_for(config: DeploymentConfig) -> Dict[str, Any]:
        """Template variables (non-secret deployment values only)."""
        return {
            "domain": config.domain,
            "container_name": config.container_name,
            "container_port": config.container_port,
            "network_name": config.network_name,
            "expected_marker": config.expected_marker,
            "site_title": config.site_title or config.domain,
            "environment": config.environment,
            "deployed_at": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        }

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render one template.

        Raises:
            TemplateRenderError: Missing template, syntax error or undefined variable
        """
        try:
            template = self.env.get_template(template_name)
            return template.render(**context)
        except TemplateError as e:
            raise TemplateRenderError(
                f"Failed to render {template_name}",
                context=f"{type(e).__name__}: {e.message or e}",
            ) from None

    def render_site(self, config: DeploymentConfig) -> Dict[str, str]:
        """
        Render content and server configuration.

        Returns:
            Mapping of template name to rendered text
        """
        context = self.context_for(config)
        return {
            CONTENT_TEMPLATE: self.render(CONTENT_TEMPLATE, context),
            SERVER_TEMPLATE: self.render(SERVER_TEMPLATE, context),
        }

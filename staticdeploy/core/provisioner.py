"""
Provisioner

Desired-state application for the static web container: render files,
upload them, replace any container with the same name, start a new one
on the shared network with Traefik routing labels.
"""

from typing import Dict, Optional

from staticdeploy.constants import (
    DEFAULT_RESTART_POLICY,
    TRAEFIK_WEB_ENTRYPOINT,
)
from staticdeploy.core.templates import CONTENT_TEMPLATE, SERVER_TEMPLATE, TemplateRenderer
from staticdeploy.exceptions import ContainerCreateError
from staticdeploy.models.config import DeploymentConfig
from staticdeploy.models.container import ContainerSpec, ContainerState, ProvisionedContainer
from staticdeploy.services.docker_service import DockerService

NGINX_HTML_DIR = "/usr/share/nginx/html"
NGINX_CONF_PATH = "/etc/nginx/conf.d/default.conf"


def build_labels(config: DeploymentConfig) -> Dict[str, str]:
    """
    Labels the edge proxy discovers the container by.

    A secure router serves the domain with the certificate resolver; a plain
    HTTP router on the web entrypoint only redirects to HTTPS.
    """
    router = config.router_name
    redirect = f"{router}-https-redirect"
    host_rule = f"Host(`{config.domain}`)"
    return {
        "traefik.enable": "true",
        "traefik.docker.network": config.network_name,
        f"traefik.http.routers.{router}.rule": host_rule,
        f"traefik.http.routers.{router}.entrypoints": config.entrypoint,
        f"traefik.http.routers.{router}.tls": "true",
        f"traefik.http.routers.{router}.tls.certresolver": config.cert_resolver,
        f"traefik.http.routers.{router}.service": router,
        f"traefik.http.services.{router}.loadbalancer.server.port": str(config.container_port),
        f"traefik.http.routers.{router}-http.rule": host_rule,
        f"traefik.http.routers.{router}-http.entrypoints": TRAEFIK_WEB_ENTRYPOINT,
        f"traefik.http.routers.{router}-http.middlewares": redirect,
        f"traefik.http.middlewares.{redirect}.redirectscheme.scheme": "https",
        f"traefik.http.middlewares.{redirect}.redirectscheme.permanent": "true",
        "org.staticdeploy.domain": config.domain,
        "org.staticdeploy.environment": config.environment,
    }


class Provisioner:
    """Applies the container's desired state (replace, never merge)."""

    def __init__(
        self,
        docker: DockerService,
        config: DeploymentConfig,
        renderer: Optional[TemplateRenderer] = None,
        logger=None,
    ):
        self.docker = docker
        self.config = config
        self.renderer = renderer or TemplateRenderer()
        self.logger = logger

    @property
    def content_path(self) -> str:
        return f"{self.config.html_dir}/index.html"

    @property
    def server_config_path(self) -> str:
        return f"{self.config.deploy_dir}/nginx.conf"

    def build_spec(self, host_port: int) -> ContainerSpec:
        return ContainerSpec(
            name=self.config.container_name,
            image=self.config.image,
            network=self.config.network_name,
            host_port=host_port,
            container_port=self.config.container_port,
            labels=build_labels(self.config),
            volumes=[
                f"{self.config.html_dir}:{NGINX_HTML_DIR}:ro",
                f"{self.server_config_path}:{NGINX_CONF_PATH}:ro",
            ],
            restart_policy=DEFAULT_RESTART_POLICY,
            memory_limit=self.config.memory_limit,
            cpu_limit=self.config.cpu_limit,
        )

    def deploy_files(self, rendered: Dict[str, str]) -> None:
        """Upload rendered templates to the target."""
        self.docker.write_file(self.content_path, rendered[CONTENT_TEMPLATE])
        self.docker.write_file(self.server_config_path, rendered[SERVER_TEMPLATE])
        self._log(f"Rendered content to {self.config.deploy_dir}")

    def remove_existing(self) -> bool:
        removed = self.docker.remove_container(self.config.container_name)
        if removed:
            self._log(f"Removed existing container {self.config.container_name}")
        return removed

    def provision(self) -> ProvisionedContainer:
        """
        Render, upload, replace and start.

        Raises:
            TemplateRenderError: Template failed to render (nothing was changed)
            ContainerCreateError: docker run failed (after the optional
                alternate-port retry)
        """
        # Render before touching the target so a bad template changes nothing
        rendered = self.renderer.render_site(self.config)
        self.deploy_files(rendered)

        replaced = self.remove_existing()
        container = ProvisionedContainer(
            name=self.config.container_name,
            network=self.config.network_name,
            host_port=self.config.host_port,
            replaced_existing=replaced,
        )

        spec = self.build_spec(self.config.host_port)
        try:
            container_id = self.docker.run_container(spec)
        except ContainerCreateError as e:
            alternate = self.config.alternate_host_port
            if not (e.port_conflict and alternate and alternate != spec.host_port):
                raise
            self._warn(
                f"Host port {spec.host_port} in use, retrying once on {alternate}"
            )
            # docker run leaves a created-but-not-started container behind
            self.docker.remove_container(self.config.container_name)
            spec = self.build_spec(alternate)
            container_id = self.docker.run_container(spec)
            container.host_port = alternate

        container.container_id = container_id
        container.labels = spec.labels
        container.mark(ContainerState.CREATED)

        state = self._observed_state()
        container.mark(state)
        self._log(
            f"Container {container.name} {state.value} "
            f"({container.short_id or 'no id'}) on port {container.host_port}"
        )
        return container

    def _observed_state(self) -> ContainerState:
        data = self.docker.inspect_container(self.config.container_name) or {}
        if (data.get("State") or {}).get("Running"):
            return ContainerState.RUNNING
        return ContainerState.CREATED

    def _log(self, message: str) -> None:
        if self.logger:
            self.logger.success(message)

    def _warn(self, message: str) -> None:
        if self.logger:
            self.logger.warning(message)

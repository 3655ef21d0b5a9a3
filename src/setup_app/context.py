"""Server context wiring all setup app dependencies.

The context is built once at startup and stored on ``app.state``. Request
handlers read it from there; nothing is kept in module globals.
"""

from dataclasses import dataclass

from src.setup_app.config import SetupSettings
from src.setup_app.events.metrics import SetupMetrics
from src.setup_app.github.auth import GitHubAppAuth
from src.setup_app.github.client import GitHubClient
from src.setup_app.orchestrator import SetupOrchestrator
from src.setup_app.provisioner.secrets import SecretProvisioner
from src.setup_app.templates.files import default_template_files
from src.setup_app.templates.labels import default_labels


@dataclass
class ServerContext:
    """Everything a request handler needs.

    Attributes:
        settings: Validated configuration.
        github_client: Installation-scoped GitHub API client.
        orchestrator: Admits deliveries and runs setup.
        metrics: Prometheus metrics exposed at /metrics.
    """

    settings: SetupSettings
    github_client: GitHubClient
    orchestrator: SetupOrchestrator
    metrics: SetupMetrics

    async def close(self) -> None:
        await self.github_client.close()


def build_context(settings: SetupSettings) -> ServerContext:
    """Wire all dependencies into a ServerContext.

    Args:
        settings: Validated settings.

    Returns:
        Fully wired ServerContext.
    """
    auth = GitHubAppAuth(
        app_id=settings.github_app_id,
        private_key=settings.github_private_key,
        base_url=settings.github_base_url,
        timeout=settings.request_timeout_seconds,
    )
    github_client = GitHubClient(
        auth=auth,
        base_url=settings.github_base_url,
        timeout=settings.request_timeout_seconds,
    )
    metrics = SetupMetrics()

    orchestrator = SetupOrchestrator(
        provisioner=SecretProvisioner(client=github_client),
        client=github_client,
        webhook_secret=settings.webhook_secret,
        secrets=settings.provisioned_secrets(),
        template_files=default_template_files(),
        labels=default_labels(),
        sync_labels=settings.sync_labels,
        metrics=metrics,
    )

    return ServerContext(
        settings=settings,
        github_client=github_client,
        orchestrator=orchestrator,
        metrics=metrics,
    )

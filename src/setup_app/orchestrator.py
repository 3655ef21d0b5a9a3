"""Setup orchestrator driving a repository from webhook to bootstrapped.

Admits webhook deliveries and runs the setup steps for newly created
repositories:
    signature check → secrets → template files (workflow last) → [labels]

Admission is synchronous and side-effect free towards GitHub: a delivery
that fails signature verification is rejected before any forge call can be
made. Execution is best-effort: each step is independent and idempotent, a
failing step is logged and recorded, and the remaining steps still run.
Re-delivering the same event is the way to retry.

Source:
- src/setup_app/webhook/signature.py (verify_signature)
- src/setup_app/webhook/handler.py (WebhookHandler)
- src/setup_app/provisioner/secrets.py (SecretProvisioner)
- src/setup_app/github/protocol.py (ForgeClient)
- src/setup_app/state/models.py (SetupRun, SetupStage)
"""

import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

from src.setup_app.events.metrics import SetupMetrics
from src.setup_app.github.models import Label
from src.setup_app.github.protocol import ForgeClient
from src.setup_app.provisioner.secrets import SecretProvisioner
from src.setup_app.state.models import SetupRun, SetupStage
from src.setup_app.templates.files import SETUP_LABELS_WORKFLOW_PATH, TemplateFile
from src.setup_app.webhook.handler import WebhookHandler
from src.setup_app.webhook.models import REPOSITORY_EVENT, RepositoryRef
from src.setup_app.webhook.signature import verify_signature

logger = logging.getLogger(__name__)


class AuthenticationRejected(Exception):
    """Raised when a delivery fails webhook signature verification.

    Attributes:
        run: The rejected run record.
    """

    def __init__(self, run: SetupRun):
        self.run = run
        super().__init__("Webhook signature verification failed")


class InvalidPayloadError(Exception):
    """Raised when an authenticated ``created`` delivery cannot be parsed."""


class SetupOrchestrator:
    """Admits webhook deliveries and executes repository setup.

    Attributes:
        provisioner: Seals and upserts secrets.
        client: Forge API client for files and labels.
        webhook_secret: Shared secret for signature checks; empty disables.
        secrets: Secret name to plaintext value, provisioned in order.
        template_files: Files to create, in push order.
        labels: Label taxonomy used by the label sync step.
        sync_labels: Whether to apply labels directly after the files.
        metrics: Optional Prometheus metrics sink.
        webhook_handler: Payload decoder and parser.
    """

    def __init__(
        self,
        provisioner: SecretProvisioner,
        client: ForgeClient,
        webhook_secret: str,
        secrets: Mapping[str, str],
        template_files: Sequence[TemplateFile],
        labels: Sequence[Label] = (),
        sync_labels: bool = False,
        metrics: Optional[SetupMetrics] = None,
        webhook_handler: Optional[WebhookHandler] = None,
    ):
        self.provisioner = provisioner
        self.client = client
        self.webhook_secret = webhook_secret
        self.secrets = dict(secrets)
        self.template_files = list(template_files)
        self.labels = list(labels)
        self.sync_labels = sync_labels
        self.metrics = metrics
        self.webhook_handler = webhook_handler or WebhookHandler()

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def admit(
        self,
        raw_body: bytes,
        signature: Optional[str],
        event_type: Optional[str],
    ) -> Optional[SetupRun]:
        """Authenticate and filter a webhook delivery.

        Args:
            raw_body: The request body exactly as received.
            signature: The ``X-Hub-Signature-256`` header value.
            event_type: The ``X-GitHub-Event`` header value.

        Returns:
            An authenticated SetupRun bound to the target repository, or
            None if the delivery is not a ``repository.created`` event.

        Raises:
            AuthenticationRejected: If signature verification fails.
            InvalidPayloadError: If a ``created`` payload is malformed.
        """
        run = SetupRun()

        if not verify_signature(raw_body, signature, self.webhook_secret):
            run.reject()
            logger.warning(
                "Rejected webhook delivery with invalid signature",
                extra={
                    "run_id": run.run_id,
                    "event_type": event_type,
                    "signature_present": bool(signature),
                },
            )
            self._record_admission("rejected")
            raise AuthenticationRejected(run)

        run.stage = SetupStage.AUTHENTICATED

        if event_type != REPOSITORY_EVENT:
            logger.debug("Ignoring event type: %s", event_type)
            self._record_admission("ignored")
            return None

        payload = self.webhook_handler.decode_payload(raw_body)
        if payload is None:
            self._record_admission("invalid")
            raise InvalidPayloadError("Webhook body is not a JSON object")

        if not self.webhook_handler.is_created_event(payload):
            logger.debug("Ignoring repository action: %s", payload.get("action"))
            self._record_admission("ignored")
            return None

        repository = self.webhook_handler.parse_repository(payload)
        if repository is None:
            self._record_admission("invalid")
            raise InvalidPayloadError("Repository created payload is incomplete")

        run.repository = repository
        self._record_admission("accepted")

        logger.info(
            "Accepted repository setup",
            extra={"run_id": run.run_id, "repository": repository.full_name},
        )
        return run

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self, run: SetupRun) -> SetupRun:
        """Run every setup step for an admitted delivery.

        Steps run in a fixed order: secrets, then template files (the
        workflow that consumes the secrets is last), then the optional
        label sync. A failing step never stops the steps after it.

        Args:
            run: A run returned by :meth:`admit`.

        Returns:
            The same run, in COMPLETED or COMPLETED_WITH_ERRORS.

        Raises:
            ValueError: If the run was not authenticated or has no
                repository. Nothing is sent to GitHub in that case.
        """
        if run.stage != SetupStage.AUTHENTICATED or run.repository is None:
            raise ValueError(
                f"Run {run.run_id} is not an authenticated repository run "
                f"(stage={run.stage.value})"
            )

        repo = run.repository
        logger.info(
            "Setting up repository",
            extra={"run_id": run.run_id, "repository": repo.full_name},
        )

        for secret_name, secret_value in self.secrets.items():
            await self._run_step(
                run,
                f"secret:{secret_name}",
                self.provisioner.provision,
                repo,
                secret_name,
                secret_value,
            )
        run.stage = SetupStage.SECRETS_PROVISIONED

        for template in self.template_files:
            await self._run_step(
                run,
                f"file:{template.path}",
                self._create_file,
                repo,
                template,
            )
        run.stage = SetupStage.FILES_CREATED

        if self.sync_labels:
            await self._run_step(run, "labels", self.sync_repository_labels, repo)

        stage = run.finish()
        if self.metrics is not None:
            self.metrics.record_run(run)

        log = logger.warning if run.has_errors else logger.info
        log(
            "Repository setup finished",
            extra={
                "run_id": run.run_id,
                "repository": repo.full_name,
                "stage": stage.value,
                "failed_steps": run.failed_steps,
                "duration": run.duration_seconds,
            },
        )
        return run

    async def sync_repository_labels(self, repo: RepositoryRef) -> None:
        """Make the repository's labels match the configured taxonomy.

        Labels outside the taxonomy are deleted and missing ones created.
        Labels that already exist are left untouched.
        """
        existing = await self.client.list_labels(repo)
        desired = {label.name: label for label in self.labels}
        existing_names = {label.name for label in existing}

        for label in existing:
            if label.name not in desired:
                await self.client.delete_label(repo, label.name)

        for name, label in desired.items():
            if name not in existing_names:
                await self.client.create_label(repo, label)

    async def remove_setup_workflow(
        self,
        repo: RepositoryRef,
        path: str = SETUP_LABELS_WORKFLOW_PATH,
    ) -> None:
        """Delete the setup workflow file once it has done its job.

        Raises:
            GitHubAPIError: If the file cannot be found or deleted.
        """
        sha = await self.client.get_file_sha(repo, path)
        await self.client.delete_file(
            repo,
            path,
            sha,
            "Remove workflow file after setup completion",
        )
        logger.info(
            "Setup workflow removed",
            extra={"repository": repo.full_name, "path": path},
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _create_file(
        self,
        repo: RepositoryRef,
        template: TemplateFile,
    ) -> Optional[str]:
        created = await self.client.create_file(
            repo,
            template.path,
            template.encoded_content(),
            template.message,
        )
        return None if created else "already exists"

    async def _run_step(
        self,
        run: SetupRun,
        step_name: str,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
    ) -> bool:
        """Run one step and record its outcome; never raises.

        Returns:
            True if the step succeeded.
        """
        try:
            result = await func(*args)
        except Exception as exc:
            logger.exception(
                "Setup step failed",
                extra={
                    "run_id": run.run_id,
                    "repository": run.repository.full_name if run.repository else None,
                    "step": step_name,
                },
            )
            run.record_failure(step_name, str(exc))
            return False

        run.record_success(step_name, result if isinstance(result, str) else None)
        return True

    def _record_admission(self, result: str) -> None:
        if self.metrics is not None:
            self.metrics.record_admission(result)

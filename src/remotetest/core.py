import logging
import os
import shutil
import time
import uuid
from typing import Any, Dict, Iterable, List, Optional

from rich.console import Console
from rich.table import Table

from .constants import (
    DEFAULT_DISPATCHER,
    DEFAULT_DNS_HOSTNAME,
    DEFAULT_DNS_IP,
    DEFAULT_DRIVER_HOST,
    DEFAULT_KEY_FILE,
    DEFAULT_LOG_ARTIFACT,
    DEFAULT_MAIN_HOST,
    DEFAULT_REPOSITORY_URL,
    DEFAULT_SERVICE_UNIT,
    ROLE_COLLECT,
    ROLE_SETUP,
    ROLE_TEST,
)
from .errors import RunnerError
from .errors_catalog import actionable_error
from .models import RemoteStep, RunContext, RunResult, StepOutcome
from .services.command_runner import CommandRunner
from .services.dispatch import StackableDispatcher
from .services.manifest import ManifestService
from .services.plan import PlanService

console = Console()
logger = logging.getLogger("remotetest")


class RemoteTestRunner:
    """Runs the integration test suite on a remote test driver.

    Setup steps are best-effort, the test step decides the exit code and the
    service log is collected from the main host after every run.
    """

    def __init__(
        self,
        git_branch: Optional[str],
        dispatcher: str = DEFAULT_DISPATCHER,
        key_file: str = DEFAULT_KEY_FILE,
        driver_host: str = DEFAULT_DRIVER_HOST,
        main_host: str = DEFAULT_MAIN_HOST,
        log_artifact: str = DEFAULT_LOG_ARTIFACT,
        manifest_file: Optional[str] = None,
        step_timeout_minutes: Optional[float] = None,
        dry_run: bool = False,
        dns_ip: str = DEFAULT_DNS_IP,
        dns_hostname: str = DEFAULT_DNS_HOSTNAME,
        packages: Optional[Iterable[str]] = None,
        repository_url: str = DEFAULT_REPOSITORY_URL,
        service_unit: str = DEFAULT_SERVICE_UNIT,
    ):
        self.git_branch = git_branch or ""
        self.dry_run = dry_run
        self.step_timeout_minutes = step_timeout_minutes
        if step_timeout_minutes is not None and step_timeout_minutes <= 0:
            raise RunnerError("--step-timeout-minutes must be a positive number of minutes.")

        self.run_context = RunContext(
            run_id=uuid.uuid4().hex[:10],
            dispatcher=dispatcher,
            key_file=key_file,
            driver_host=driver_host,
            main_host=main_host,
            log_artifact=log_artifact,
        )
        self.manifest_file = manifest_file or os.path.join(
            os.path.dirname(log_artifact) or ".", "run-manifest.json"
        )

        timeout = step_timeout_minutes * 60 if step_timeout_minutes else None
        self.command_runner = CommandRunner(logger=logger)
        self.dispatcher = StackableDispatcher(
            dispatcher=dispatcher,
            command_runner=self.command_runner,
            logger=logger,
            timeout=timeout,
        )
        self.plan_service = PlanService(
            logger=logger,
            dns_ip=dns_ip,
            dns_hostname=dns_hostname,
            packages=packages,
            repository_url=repository_url,
            service_unit=service_unit,
        )
        self.manifest_service = ManifestService(manifest_file=self.manifest_file, logger=logger)
        self.outcomes: List[StepOutcome] = []

    def build_plan(self) -> List[RemoteStep]:
        return self.plan_service.build(self.run_context, self.git_branch)

    def _build_manifest_metadata(self) -> Dict[str, Any]:
        return {
            "git_branch": self.git_branch,
            "dispatcher": self.run_context.dispatcher,
            "driver_host": self.run_context.driver_host,
            "main_host": self.run_context.main_host,
            "repository_url": self.plan_service.repository_url,
        }

    def print_plan(self, plan: List[RemoteStep]):
        table = Table(title="Remote test plan")
        table.add_column("Step")
        table.add_column("Host")
        table.add_column("Command")
        for step in plan:
            command = step.command
            if step.output_path:
                command = f"{command} > {step.output_path}"
            table.add_row(step.name, step.host, command)
        console.print(table)

    def check_prerequisites(self):
        """Warns early about a missing dispatch tool or credential."""
        dispatcher = self.run_context.dispatcher
        if not os.path.exists(dispatcher) and shutil.which(dispatcher) is None:
            logger.warning(actionable_error("dispatcher_not_found", path=dispatcher))
        if not os.path.exists(self.run_context.key_file):
            logger.warning(actionable_error("credential_not_found", path=self.run_context.key_file))

    def _dispatch_step(self, step: RemoteStep) -> StepOutcome:
        self.manifest_service.step_started(step.name, step.host, step.role)
        logger.info("[%s] %s: %s", step.host, step.name, step.command)
        started = time.monotonic()

        exit_code: Optional[int] = None
        error: Optional[str] = None
        try:
            if step.output_path:
                exit_code = self.dispatcher.capture(
                    step.host,
                    self.run_context.key_file,
                    step.command,
                    step.output_path,
                )
            else:
                exit_code = self.dispatcher.execute(
                    step.host,
                    self.run_context.key_file,
                    step.command,
                )
        except RunnerError as exc:
            error = str(exc)

        outcome = StepOutcome(
            name=step.name,
            host=step.host,
            role=step.role,
            exit_code=exit_code,
            error=error,
            duration_seconds=time.monotonic() - started,
        )
        self.outcomes.append(outcome)
        self.manifest_service.step_finished(
            step.name,
            "success" if outcome.succeeded else "failed",
            exit_code=exit_code,
            error=error,
        )
        return outcome

    def run_setup_step(self, step: RemoteStep) -> StepOutcome:
        outcome = self._dispatch_step(step)
        if not outcome.succeeded:
            logger.warning(
                actionable_error(
                    "setup_step_failed",
                    step=step.name,
                    host=step.host,
                    exit_code=str(outcome.exit_code) if outcome.exit_code is not None else outcome.error,
                )
            )
        return outcome

    def run_test_step(self, step: RemoteStep) -> int:
        outcome = self._dispatch_step(step)
        if outcome.error:
            logger.error(outcome.error)
        exit_code = outcome.exit_code if outcome.exit_code is not None else 1

        if exit_code == 0:
            console.print("[green]Integration tests passed.[/green]")
        else:
            console.print(f"[bold red]Integration tests failed with exit code {exit_code}.[/bold red]")
            logger.error(
                actionable_error(
                    "test_suite_failed",
                    host=step.host,
                    exit_code=str(exit_code),
                    artifact=self.run_context.log_artifact,
                )
            )
        return exit_code

    def collect_service_log(self, step: RemoteStep) -> StepOutcome:
        outcome = self._dispatch_step(step)
        if not outcome.succeeded:
            reason = outcome.error or f"exit code {outcome.exit_code}"
            logger.warning(
                actionable_error(
                    "log_collection_failed",
                    host=step.host,
                    reason=reason,
                    artifact=step.output_path or "",
                )
            )
        if step.output_path and os.path.exists(step.output_path):
            self.manifest_service.add_artifact("service_log", step.output_path)
        return outcome

    def execute(self) -> RunResult:
        plan = self.build_plan()
        setup_steps = [step for step in plan if step.role == ROLE_SETUP]
        test_step = next(step for step in plan if step.role == ROLE_TEST)
        collect_step = next(step for step in plan if step.role == ROLE_COLLECT)

        exit_code = 1
        manifest_status = "failed"
        manifest_error: Optional[str] = None
        self.outcomes = []

        self.manifest_service.start_run(
            run_id=self.run_context.run_id,
            metadata=self._build_manifest_metadata(),
        )

        try:
            logger.info("Starting remote test run %s...", self.run_context.run_id)
            self.check_prerequisites()

            for step in setup_steps:
                self.run_setup_step(step)

            exit_code = self.run_test_step(test_step)
            manifest_status = "success" if exit_code == 0 else "failed"
            if exit_code != 0:
                manifest_error = f"Test step exited with {exit_code}."

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            manifest_status = "aborted"
            manifest_error = "Operation cancelled by user."
            exit_code = 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            manifest_status = "failed"
            manifest_error = str(exc)
            exit_code = 1
        finally:
            try:
                self.collect_service_log(collect_step)
            except KeyboardInterrupt:
                console.print("[bold red]Service log collection cancelled by user.[/bold red]")
                logger.info("Service log collection cancelled by user")
                manifest_status = "aborted"
                manifest_error = "Service log collection cancelled by user."
            self.manifest_service.finalize(manifest_status, exit_code=exit_code, error=manifest_error)

        return RunResult(exit_code=exit_code, outcomes=list(self.outcomes))

    def run(self) -> int:
        if self.dry_run:
            self.print_plan(self.build_plan())
            console.print("[yellow]Dry run: nothing was dispatched.[/yellow]")
            return 0

        return self.execute().exit_code

"""Builds the ordered remote steps of an integration test run."""

import re
from typing import Iterable, List, Optional

from remotetest.constants import (
    DEFAULT_DNS_HOSTNAME,
    DEFAULT_DNS_IP,
    DEFAULT_PACKAGES,
    DEFAULT_REPOSITORY_URL,
    DEFAULT_SERVICE_UNIT,
    ROLE_COLLECT,
    ROLE_SETUP,
    ROLE_TEST,
)
from remotetest.errors_catalog import actionable_error
from remotetest.models import RemoteStep, RunContext


class PlanService:
    """Turns run settings into dispatchable command strings."""

    RUSTUP_INSTALL_COMMAND = 'curl --proto "=https" --tlsv1.2 -sSf https://sh.rustup.rs | sh -s -- -y'
    TOOLCHAIN_VERSION_COMMAND = "cargo --version"
    TEST_COMMAND = "cargo test"
    SAFE_BRANCH_PATTERN = re.compile(r"^[A-Za-z0-9._/+-]+$")

    def __init__(
        self,
        logger,
        dns_ip: str = DEFAULT_DNS_IP,
        dns_hostname: str = DEFAULT_DNS_HOSTNAME,
        packages: Optional[Iterable[str]] = None,
        repository_url: str = DEFAULT_REPOSITORY_URL,
        service_unit: str = DEFAULT_SERVICE_UNIT,
    ):
        self.logger = logger
        self.dns_ip = dns_ip
        self.dns_hostname = dns_hostname
        self.packages = list(packages) if packages is not None else list(DEFAULT_PACKAGES)
        self.repository_url = repository_url
        self.service_unit = service_unit

    @property
    def repository_dir(self) -> str:
        name = self.repository_url.rstrip("/").rsplit("/", 1)[-1]
        if name.endswith(".git"):
            name = name[: -len(".git")]
        return name

    def hosts_entry_command(self) -> str:
        return f'sudo sh -c "echo \\"{self.dns_ip}     {self.dns_hostname}\\" >> /etc/hosts"'

    def install_packages_command(self) -> str:
        return f"sudo yum install {' '.join(self.packages)} -y"

    def clone_command(self, git_branch: str) -> str:
        # The branch is passed through verbatim, the remote shell interprets it.
        return f"git clone -b {git_branch} {self.repository_url}"

    def test_command(self) -> str:
        return f"cd {self.repository_dir}/ && {self.TEST_COMMAND}"

    def service_log_command(self) -> str:
        return f"journalctl -u {self.service_unit}"

    def check_branch(self, git_branch: str):
        if not git_branch:
            self.logger.warning(actionable_error("missing_branch"))
        elif not self.SAFE_BRANCH_PATTERN.match(git_branch):
            self.logger.warning(
                "GIT_BRANCH %r contains shell metacharacters and is sent unescaped to the remote shell.",
                git_branch,
            )

    def build(self, run_context: RunContext, git_branch: str) -> List[RemoteStep]:
        self.check_branch(git_branch)
        driver = run_context.driver_host
        return [
            RemoteStep("configure_dns", driver, self.hosts_entry_command(), ROLE_SETUP),
            RemoteStep("install_toolchain", driver, self.RUSTUP_INSTALL_COMMAND, ROLE_SETUP),
            RemoteStep("verify_toolchain", driver, self.TOOLCHAIN_VERSION_COMMAND, ROLE_SETUP),
            RemoteStep("install_packages", driver, self.install_packages_command(), ROLE_SETUP),
            RemoteStep("clone_repository", driver, self.clone_command(git_branch), ROLE_SETUP),
            RemoteStep("run_tests", driver, self.test_command(), ROLE_TEST),
            RemoteStep(
                "collect_service_log",
                run_context.main_host,
                self.service_log_command(),
                ROLE_COLLECT,
                output_path=run_context.log_artifact,
            ),
        ]

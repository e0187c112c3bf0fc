import logging
import os

import click
from rich.logging import RichHandler

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
)
from .core import RemoteTestRunner, RunnerError
from .services.config_loader import ConfigLoader


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option(
    "--git-branch",
    envvar="GIT_BRANCH",
    required=False,
    help="Branch of the integration test repository to clone (default: $GIT_BRANCH).",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help="Path to a YAML configuration file. Defaults to .remotetest.yml if present.",
)
@click.option(
    "--dispatcher",
    required=False,
    help=f"Remote dispatch script (default: {DEFAULT_DISPATCHER}).",
)
@click.option(
    "--key-file",
    required=False,
    help=f"Credential passed to the dispatch script (default: {DEFAULT_KEY_FILE}).",
)
@click.option(
    "--driver-host",
    required=False,
    help=f"Host that installs the toolchain and runs the tests (default: {DEFAULT_DRIVER_HOST}).",
)
@click.option(
    "--main-host",
    required=False,
    help=f"Host whose service log is collected (default: {DEFAULT_MAIN_HOST}).",
)
@click.option(
    "--log-artifact",
    required=False,
    type=click.Path(),
    help=f"Local path for the collected service log (default: {DEFAULT_LOG_ARTIFACT}).",
)
@click.option(
    "--manifest-file",
    required=False,
    type=click.Path(),
    help="Path for the run manifest JSON (default: run-manifest.json next to the log artifact).",
)
@click.option(
    "--step-timeout-minutes",
    required=False,
    type=int,
    default=None,
    help="Timeout for each remote step in minutes. No timeout by default.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.option(
    "--dry-run",
    is_flag=True,
    default=None,
    help="Print the remote commands without dispatching them.",
)
def main(
    git_branch,
    config,
    dispatcher,
    key_file,
    driver_host,
    main_host,
    log_artifact,
    manifest_file,
    step_timeout_minutes,
    verbose,
    log_file,
    dry_run,
):
    """Run the agent integration tests on a remote test driver."""
    logger = logging.getLogger("remotetest")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), ".remotetest.yml")
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except RunnerError as exc:
        raise click.ClickException(str(exc)) from exc

    git_branch = _resolve_option(git_branch, config_values, "git_branch", default="")
    dispatcher = _resolve_option(dispatcher, config_values, "dispatcher", default=DEFAULT_DISPATCHER)
    key_file = _resolve_option(key_file, config_values, "key_file", default=DEFAULT_KEY_FILE)
    driver_host = _resolve_option(driver_host, config_values, "driver_host", default=DEFAULT_DRIVER_HOST)
    main_host = _resolve_option(main_host, config_values, "main_host", default=DEFAULT_MAIN_HOST)
    log_artifact = _resolve_option(
        log_artifact, config_values, "log_artifact", default=DEFAULT_LOG_ARTIFACT
    )
    manifest_file = _resolve_option(manifest_file, config_values, "manifest_file")
    step_timeout_minutes = _resolve_option(step_timeout_minutes, config_values, "step_timeout_minutes")
    if step_timeout_minutes is not None:
        step_timeout_minutes = int(step_timeout_minutes)
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    dry_run = bool(_resolve_option(dry_run, config_values, "dry_run", default=False))

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    try:
        runner = RemoteTestRunner(
            git_branch=str(git_branch or ""),
            dispatcher=dispatcher,
            key_file=key_file,
            driver_host=driver_host,
            main_host=main_host,
            log_artifact=log_artifact,
            manifest_file=manifest_file,
            step_timeout_minutes=step_timeout_minutes,
            dry_run=dry_run,
            dns_ip=config_values.get("dns_ip", DEFAULT_DNS_IP),
            dns_hostname=config_values.get("dns_hostname", DEFAULT_DNS_HOSTNAME),
            packages=config_values.get("packages"),
            repository_url=config_values.get("repository_url", DEFAULT_REPOSITORY_URL),
            service_unit=config_values.get("service_unit", DEFAULT_SERVICE_UNIT),
        )
    except RunnerError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(runner.run())


if __name__ == "__main__":
    main()

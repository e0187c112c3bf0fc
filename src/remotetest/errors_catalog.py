"""Actionable error catalog for remotetest."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "dispatcher_not_found": {
        "what": "Dispatch tool not found: {path}",
        "next": "Check `--dispatcher` or make sure the cluster image ships the dispatch script.",
    },
    "credential_not_found": {
        "what": "Credential file not found: {path}",
        "next": "Provision the cluster key before running or point `--key-file` at it.",
    },
    "missing_branch": {
        "what": "GIT_BRANCH is empty, the clone command will be malformed.",
        "next": "Export GIT_BRANCH or pass `--git-branch`.",
    },
    "setup_step_failed": {
        "what": "Setup step '{step}' on {host} exited with {exit_code}.",
        "next": "Later steps will run anyway; inspect the output above if the tests fail.",
    },
    "test_suite_failed": {
        "what": "Test suite on {host} exited with {exit_code}.",
        "next": "Inspect the test output and the collected service log at {artifact}.",
    },
    "log_collection_failed": {
        "what": "Could not collect service log from {host}: {reason}",
        "next": "The artifact at {artifact} may be empty; check the service on the main host.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"

"""Defaults for the remote integration test run."""

DEFAULT_DISPATCHER = "/stackable.sh"
DEFAULT_KEY_FILE = "/.cluster/key"
DEFAULT_DRIVER_HOST = "testdriver-1"
DEFAULT_MAIN_HOST = "main-1"
DEFAULT_LOG_ARTIFACT = "/target/stackable-agent.log"

DEFAULT_DNS_IP = "13.32.25.75"
DEFAULT_DNS_HOSTNAME = "static.rust-lang.org"
DEFAULT_PACKAGES = (
    "vim",
    "procps",
    "curl",
    "gcc",
    "make",
    "pkgconfig",
    "openssl-devel",
    "systemd-devel",
    "python3-pip",
    "container-selinux",
    "selinux-policy-base",
    "git",
)
DEFAULT_REPOSITORY_URL = "https://github.com/stackabletech/agent-integration-tests.git"
DEFAULT_SERVICE_UNIT = "stackable-agent"

ROLE_SETUP = "setup"
ROLE_TEST = "test"
ROLE_COLLECT = "collect"

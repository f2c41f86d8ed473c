"""
staticdeploy Constants

Centralized constants for defaults, file layout and edge proxy conventions.
"""

# Container naming
CONTAINER_NAME_PREFIX = "static-web-"
CONTAINER_NAME_PATTERN = r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$"
HOSTNAME_LABEL_PATTERN = r"^[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$"
HOSTNAME_MAX_LENGTH = 253

# Default container configuration
DEFAULT_IMAGE = "nginx:alpine"
DEFAULT_NETWORK = "traefik-network"
DEFAULT_HOST_PORT = 8080
DEFAULT_CONTAINER_PORT = 80
DEFAULT_MEMORY_LIMIT = "128m"
DEFAULT_CPU_LIMIT = "0.5"
DEFAULT_RESTART_POLICY = "unless-stopped"
DEFAULT_DEPLOY_ROOT = "/opt/static-web"
DEFAULT_EXPECTED_MARKER = "static-web-ok"

# Default SSH Configuration
DEFAULT_SSH_USER = "docker"
DEFAULT_SSH_KEY_PATH = "~/.ssh/id_ed25519"
SSH_CONNECT_TIMEOUT = 10
SSH_COMMAND_TIMEOUT = 60
LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")

# Edge proxy (Traefik) conventions
TRAEFIK_SECURE_ENTRYPOINT = "websecure"
TRAEFIK_WEB_ENTRYPOINT = "web"
TRAEFIK_CERT_RESOLVER = "letsencrypt"
TRAEFIK_CONTAINER_HINTS = ("traefik",)

# Readiness polling
READINESS_TIMEOUT = 60
READINESS_INTERVAL = 2
READINESS_LOG_TAIL = 50
HTTP_PROBE_TIMEOUT = 5

# Integration checks
PROBE_IMAGE = "curlimages/curl:latest"
CERT_EXPIRY_WARNING_DAYS = 14
REDIRECT_STATUS_CODES = (301, 302, 307, 308)
LOG_ALARM_MARKERS = ("[emerg]", "[crit]", "[alert]")

# Project layout (relative to the project directory)
SECRETS_DIR = "secrets"
ENV_FILE = "secrets/.env"
VAULT_FILE = "secrets/vault.yml"
VAULT_EXAMPLE_FILE = "secrets/vault.example.yml"
VAULT_PASS_FILE = "secrets/.vault_pass"
INVENTORY_DIR = "inventory"
LOGS_DIR = "logs"
GLOBAL_LOG_SCOPE = "global"
TEMPLATES_DIR = "templates"
PROJECT_HOME_ENV = "STATICDEPLOY_HOME"

# Env file keys
ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_DEPLOY_ENVIRONMENT = "DEPLOY_ENV"
ENV_CONFIG_PREFIX = "STATIC_WEB_"

# Log Configuration
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"

# Remediation hints
HINT_SETUP_ENV = "Run: staticdeploy secrets:init"
HINT_VAULT_SETUP = "Run: staticdeploy secrets:status"

"""Built-in parameter defaults.

These are the lowest-precedence layer; anything set in the pipeline
manifest or in the credential defaults wins over them.
"""

from __future__ import annotations

CPU_REQUEST = "100m"
CPU_LIMIT = "125m"
MEMORY_REQUEST = "128Mi"
MEMORY_LIMIT = "128Mi"

SIDECAR_TYPE = "openresty"
SIDECAR_IMAGE = "estafette/openresty-sidecar:1.13.6.1-alpine"
SIDECAR_CPU_REQUEST = "10m"
SIDECAR_CPU_LIMIT = "50m"
SIDECAR_MEMORY_REQUEST = "10Mi"
SIDECAR_MEMORY_LIMIT = "50Mi"

CONTAINER_PORT = 5000

LIVENESS_PATH = "/liveness"
LIVENESS_INITIAL_DELAY_SECONDS = 30
LIVENESS_TIMEOUT_SECONDS = 1

READINESS_PATH = "/readiness"
READINESS_INITIAL_DELAY_SECONDS = 0
READINESS_TIMEOUT_SECONDS = 1

METRICS_SCRAPE = "true"
METRICS_PATH = "/metrics"

AUTOSCALE_MIN_REPLICAS = 3
AUTOSCALE_MAX_REPLICAS = 100
AUTOSCALE_CPU_PERCENTAGE = 80

ROLLING_UPDATE_MAX_SURGE = "25%"
ROLLING_UPDATE_MAX_UNAVAILABLE = "25%"

VISIBILITY = "private"
BASEPATH = "/"

CONFIGS_MOUNT_PATH = "/configs"
SECRETS_MOUNT_PATH = "/secrets"

CREDENTIALS_PREFIX = "gke-"

# Cloudflare IPv4 ranges (https://www.cloudflare.com/ips-v4)
CLOUDFLARE_IP_RANGES: tuple[str, ...] = (
    "103.21.244.0/22",
    "103.22.200.0/22",
    "103.31.4.0/22",
    "104.16.0.0/12",
    "108.162.192.0/18",
    "131.0.72.0/22",
    "141.101.64.0/18",
    "162.158.0.0/15",
    "172.64.0.0/13",
    "173.245.48.0/20",
    "188.114.96.0/20",
    "190.93.240.0/20",
    "197.234.240.0/22",
    "198.41.128.0/17",
)

"""
Project-wide constants for prompt2json
"""  # noqa: D200, D212, D415

# ==============================================================================
# Exit Codes
# ==============================================================================

EXIT_SUCCESS = 0
EXIT_USAGE_ERROR = 2
EXIT_INPUT_ERROR = 3
EXIT_VALIDATION_ERROR = 4
EXIT_API_ERROR = 5

# ==============================================================================
# API and Network Configuration
# ==============================================================================

DEFAULT_TIMEOUT = 60  # seconds, 0 disables the client-side timeout

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"

GENERATE_CONTENT_URL = (
    "https://{location}-aiplatform.googleapis.com/v1/projects/{project}"
    "/locations/{location}/publishers/google/models/{model}:generateContent"
)

FINISH_REASON_STOP = "STOP"
RESPONSE_MIME_TYPE = "application/json"

# Environment fallbacks, first non-empty value wins
PROJECT_ENV_VARS = ("GOOGLE_CLOUD_PROJECT", "CLOUDSDK_CORE_PROJECT")
LOCATION_ENV_VARS = (
    "GOOGLE_CLOUD_LOCATION",
    "GOOGLE_CLOUD_REGION",
    "CLOUDSDK_COMPUTE_REGION",
)

# ==============================================================================
# Attachment Limits
# ==============================================================================

_MB = 1024 * 1024

MAX_IMAGE_SIZE = 7 * _MB  # per image file, before base64 encoding
MAX_TOTAL_ENCODED_SIZE = 20 * _MB  # sum of base64-encoded attachments

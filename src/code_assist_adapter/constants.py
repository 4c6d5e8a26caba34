"""Constants shared by the Code Assist adapter."""

# Code Assist API endpoint and version
CODE_ASSIST_ENDPOINT = "https://cloudcode-pa.googleapis.com"
CODE_ASSIST_API_VERSION = "v1internal"
CODE_ASSIST_BASE_URL = f"{CODE_ASSIST_ENDPOINT}/{CODE_ASSIST_API_VERSION}"

# Method suffixes appended to the base URL
LOAD_CODE_ASSIST_METHOD = ":loadCodeAssist"
ONBOARD_USER_METHOD = ":onboardUser"
GENERATE_CONTENT_METHOD = ":generateContent"
STREAM_GENERATE_CONTENT_METHOD = ":streamGenerateContent"

RESOURCE_MANAGER_PROJECTS_URL = "https://cloudresourcemanager.googleapis.com/v1/projects"

DEFAULT_MODEL = "models/gemini-3-flash-preview"
MODEL_NAME_PREFIX = "models/"

FREE_TIER_ID = "free-tier"

# Onboarding long-running operation polling
ONBOARDING_POLL_INTERVAL_SECONDS = 2.0
ONBOARDING_MAX_RETRIES = 5

# Timeouts: connect is the time to establish a connection, read is the time
# between chunks of a streaming response
DEFAULT_CONNECTION_TIMEOUT = 60.0
DEFAULT_READ_TIMEOUT = 300.0

SSE_TERMINATOR = "[DONE]"
SSE_MEDIA_TYPE = "text/event-stream"

# Client metadata reported to loadCodeAssist / onboardUser
CLIENT_IDE_TYPE = "GEMINI_CLI"
CLIENT_IDE_VERSION = "0.21.0"
CLIENT_PLUGIN_VERSION = "0.21.0"
CLIENT_PLATFORM = "LINUX_AMD64"
CLIENT_PLUGIN_TYPE = "GEMINI"

# gemini-cli credential cache
GEMINI_CONFIG_DIR = ".gemini"
OAUTH_CREDENTIALS_FILE = "oauth_creds.json"
ACCESS_TOKEN_ENV_VAR = "GCLOUD_ACCESS_TOKEN"
PROJECT_ID_ENV_VAR = "GCLOUD_PROJECT_ID"

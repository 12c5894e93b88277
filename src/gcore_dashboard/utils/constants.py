"""Constants for API endpoints and configuration."""

# API endpoints
GCORE_API_BASE = "https://api.gcore.com"
GCORE_IAM_USERS_ENDPOINT = "/iam/users"
GCORE_CDN_STATISTICS_ENDPOINT = "/cdn/statistics/series"

# Statistics query defaults
TRAFFIC_SERVICE = "CDN"
TRAFFIC_GRANULARITY = "1d"
TRAFFIC_METRIC = "total_bytes"

# Monthly quota is not exposed by the API; dashboards show this placeholder.
MONTHLY_TRAFFIC_LIMIT_GB = 1000

# HTTP configuration
USER_AGENT = "gcore-dashboard/1.0"
DEFAULT_REQUEST_TIMEOUT = 30.0

# Key storage
STORAGE_KEY = "gcore_api_keys"
KEYS_FILE_NAME = "api_keys.json"
KEYCHAIN_SERVICE_NAME = "gcore-dashboard"
KEYCHAIN_ACCOUNT_NAME = "storage-encryption-key"

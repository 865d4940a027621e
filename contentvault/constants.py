APP_NAME = "ContentVault"
VERSION = "1.0.0"
SCHEMA_VERSION = "1"

DEFAULT_CATEGORY = "General"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 5000

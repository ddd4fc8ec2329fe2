from os import getenv

PORT: int = int(getenv("PORT", 8000))

# If we're starting in a development environment, we want to be accessible from everywhere
HOST: str = getenv("HOST", "0.0.0.0")  # nosec: B104

# Resource served for directories and missing paths, empty to disable
INDEX: str = getenv("TENDER_INDEX", "index.html")

MAX_AGE: float = float(getenv("TENDER_MAX_AGE", 0))

COMPRESS: bool = getenv("TENDER_COMPRESS", "1") == "1"

LOG_REQUESTS: bool = getenv("TENDER_LOG_REQUESTS", "1") == "1"

# EOF

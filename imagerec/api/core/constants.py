API_VERSION_HEADER = "X-ImageRec-Version"
REQUEST_ID_HEADER = "X-Request-ID"

# Prediction parameters
MIN_TOP_K = 1
MAX_TOP_K = 5
DEFAULT_TOP_K = 5

# Upload limits for the batch endpoint
MAX_BATCH_FILES = 16

# Model input defaults used when metadata.json is missing or unreadable
DEFAULT_INPUT_SHAPE = [224, 224, 3]
PLACEHOLDER_MODEL_ID = "dummy"
PLACEHOLDER_CLASS_COUNT = 50

# Preprocessed bytes handed downstream are re-encoded as JPEG
PREPROCESSED_JPEG_QUALITY = 95

SKIP_LOGGING_PATHS = {
    "/health",
    "/health/liveness",
}

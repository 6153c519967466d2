"""
API constants.

Names, limits and vocabularies shared by the routers and the service layer.
"""

PROJECT_NAME = "MortiScope"
API_V1_STR = "/api/v1"
API_VERSION = "0.1.0"
SCHEMA_VERSION = "v1"

# Uploads
ACCEPTED_IMAGE_TYPES: dict[str, tuple[str, ...]] = {
    "image/jpeg": (".jpeg", ".jpg"),
    "image/png": (".png",),
    "image/webp": (".webp",),
    "image/heic": (".heic",),
    "image/heif": (".heif",),
}
MAX_FILE_SIZE = 10 * 1024 * 1024
PRESIGNED_URL_EXPIRATION_SECONDS = 600
PRESIGNED_GET_EXPIRY_SECONDS = 24 * 60 * 60
EXPORT_DOWNLOAD_EXPIRY_SECONDS = 60 * 60

# Cases
CASE_NAME_MAX_LENGTH = 256
CASE_NOTES_MAX_LENGTH = 5000
MIN_TEMPERATURE_CELSIUS = -50.0
MAX_TEMPERATURE_CELSIUS = 60.0

# Exports
EXPORT_PASSWORD_MIN_LENGTH = 8
EXPORT_RESOLUTIONS: dict[str, tuple[int, int]] = {
    "1280x720": (1280, 720),
    "1920x1080": (1920, 1080),
    "3840x2160": (3840, 2160),
}
RECENT_EXPORTS_LIMIT = 10

# Annotation
ANNOTATION_HISTORY_LIMIT = 100

# Life stages, in canonical order. Adults are never used for PMI estimation.
LIFE_STAGES: tuple[str, ...] = ("instar_1", "instar_2", "instar_3", "pupa", "adult")
STAGE_HIERARCHY: dict[str, int] = {"instar_1": 1, "instar_2": 2, "instar_3": 3, "pupa": 4}
STAGE_DISPLAY_NAMES: dict[str, str] = {
    "instar_1": "First Instar",
    "instar_2": "Second Instar",
    "instar_3": "Third Instar",
    "pupa": "Pupa",
    "adult": "Adult",
}

# Dashboard buckets
CONFIDENCE_BUCKETS: tuple[str, ...] = tuple(f"{i * 10}-{(i + 1) * 10}%" for i in range(10))
PMI_BUCKETS: tuple[str, ...] = (
    "less_than_12h",
    "12_to_24h",
    "24_to_36h",
    "36_to_48h",
    "48_to_60h",
    "60_to_72h",
    "more_than_72h",
)
SAMPLING_DENSITY_BUCKETS: tuple[str, ...] = ("1_to_4", "5_to_8", "9_to_12", "13_to_16", "17_to_20")

# Analysis
NO_DETECTIONS_EXPLANATION = "Analysis complete. No insect evidence was detected in the provided images."
RETRYABLE_DETECTION_ERRORS: tuple[str, ...] = (
    "Database connection error",
    "SSL connection has been closed",
    "psycopg.OperationalError",
)

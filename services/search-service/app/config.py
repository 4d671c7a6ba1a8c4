import os

SERVICE_NAME = "search-service"

DATABASE_URL = os.getenv("SEARCH_DATABASE_URL")
REDIS_URL = os.getenv("REDIS_URL")  # optional; breakers are disabled without it

HANDYMAN_SERVICE_URL = os.getenv("HANDYMAN_SERVICE_URL") or "http://handyman-service:8000"
AVAILABILITY_SERVICE_URL = os.getenv("AVAILABILITY_SERVICE_URL") or "http://availability-service:8000"
IDE_UY_BASE_URL = os.getenv("IDE_UY_BASE_URL") or "https://direcciones.ide.uy"

HTTP_TIMEOUT = float(os.getenv("SEARCH_HTTP_TIMEOUT") or "2.0")
GEOCODING_TIMEOUT = float(os.getenv("SEARCH_GEOCODING_TIMEOUT") or "5.0")

# Geocoding is only available for Uruguay (IDE UY).
SUPPORTED_COUNTRY_CODE = "UY"
SEARCH_COUNTRY_CODE = (os.getenv("SEARCH_COUNTRY_CODE") or SUPPORTED_COUNTRY_CODE).upper()

DEFAULT_SERVICE_RADIUS_KM = 10.0

BREAKER_FAILURE_THRESHOLD = int(os.getenv("SEARCH_BREAKER_FAILURES") or "5")
BREAKER_RESET_SECONDS = int(os.getenv("SEARCH_BREAKER_RESET_SECONDS") or "10")

LOG_LEVEL = os.getenv("LOG_LEVEL") or "INFO"

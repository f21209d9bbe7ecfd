"""Internal constants shared across the library."""

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 4567
USER_AGENT = "pyagg/1"

#: Endpoint served by the aggregator for both submissions and queries.
WEATHER_ENDPOINT = "/weather.json"

#: Header carrying the sender's (request) or aggregator's (response) logical time.
CLOCK_HEADER = "Lamport-Clock"

#: Query-string keys accepted for the source-id filter. ``stationId`` is the
#: key older readers send.
SOURCE_ID_QUERY_KEYS: tuple[str, ...] = ("id", "stationId")

# ------------------------------------------------------------------
# Retention and expiry
# ------------------------------------------------------------------

MAX_RECORDS = 20
EXPIRY_SECONDS = 30.0
SWEEP_INTERVAL_SECONDS = 1.0

# ------------------------------------------------------------------
# On-disk layout
# ------------------------------------------------------------------

MAIN_STORE_FILENAME = "records.jsonl"
STAGING_DIRNAME = "staging"
STAGING_SUFFIX = ".json"

#: Response header naming the outcome, since several outcomes share a status.
OUTCOME_HEADER = "Aggregator-Outcome"

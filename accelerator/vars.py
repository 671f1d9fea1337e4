import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "cosmos-accelerator")

SERVER_PORT = os.environ.get("SERVER_PORT", "5384")
RPC_SERVER = os.environ.get("RPC_SERVER", "localhost:26657")
HEIGHT_CHECK_INTERVAL_MS = os.environ.get("HEIGHT_CHECK_INTERVAL_MS", "1000")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "info").lower()

# Seconds before an outstanding upstream call is abandoned
PROXY_TIMEOUT = float(os.getenv("PROXY_TIMEOUT", "30"))

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")

import os

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Server
HOST = os.getenv("BLEENKZ_HOST", "0.0.0.0")
PORT = int(os.getenv("BLEENKZ_PORT", "3000"))
LOG_LEVEL = os.getenv("BLEENKZ_LOG_LEVEL", "INFO").upper()

# Ollama text generation (empty URL disables it, callers fall back to canned lines)
OLLAMA_URL = os.getenv("OLLAMA_URL", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.1")
OLLAMA_TIMEOUT = float(os.getenv("OLLAMA_TIMEOUT", "5"))
OLLAMA_TEMPERATURE = float(os.getenv("OLLAMA_TEMPERATURE", "0.6"))

# Landmark model and session logs
FACE_LANDMARKER_MODEL = os.getenv(
    "FACE_LANDMARKER_MODEL",
    os.path.join(BASE_DIR, "models", "face_landmarker.task"),
)
LOG_DIR = os.getenv("BLEENKZ_LOG_DIR", os.path.join(BASE_DIR, "data", "logs"))

# Blink pattern classifier trailing window
PATTERN_WINDOW_MS = float(os.getenv("BLEENKZ_PATTERN_WINDOW_MS", "3000"))

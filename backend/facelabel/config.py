"""
Central configuration for the face label server.
Modify here (or in the environment / .env) rather than scattering constants through the code.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Static assets root; uploads and model weights live underneath it
PUBLIC_DIR = Path(os.getenv("FACELABEL_PUBLIC_DIR", Path(__file__).parent / "public"))
UPLOADS_DIR = Path(os.getenv("FACELABEL_UPLOADS_DIR", PUBLIC_DIR / "uploads"))
MODELS_DIR = Path(os.getenv("FACELABEL_MODELS_DIR", PUBLIC_DIR / "models"))

# DeepFace looks for its weights under $DEEPFACE_HOME/.deepface/weights
os.environ.setdefault("DEEPFACE_HOME", str(MODELS_DIR))

# Face-detector and recognition model (Facenet produces 128-d descriptors)
MODEL_NAME = os.getenv("FACELABEL_MODEL", "Facenet")
DETECTOR_BACKEND = os.getenv("FACELABEL_DETECTOR", "opencv")

# Accepted image extensions when scanning the upload tree
ALLOWED_EXT = (".jpg", ".jpeg", ".png", ".webp")

# Number of worker threads for descriptor extraction
MAX_WORKERS = max(1, int(os.getenv("FACELABEL_MAX_WORKERS", "2")))

# Drop the cached registry after every upload so new enrollments show up
REBUILD_ON_UPLOAD = os.getenv("FACELABEL_REBUILD_ON_UPLOAD", "false").lower() in ("1", "true", "yes")

PORT = int(os.getenv("PORT", "9000"))

# Twilio; missing values only break /send-sms
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")

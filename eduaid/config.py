import os
import logging

from dotenv import load_dotenv

load_dotenv()

# ========== CONFIGURATION ==========

CONFIG = {
    # Groq
    "groq_api_key": os.getenv("GROQ_API_KEY"),
    "groq_model": os.getenv("GROQ_MODEL", "meta-llama/llama-4-scout-17b-16e-instruct"),
    "ai_timeout_seconds": float(os.getenv("AI_TIMEOUT_SECONDS", "30")),
    "ai_temperature": 0.7,
    "ai_max_tokens": 8192,
    "chat_max_tokens": 2048,

    # Uploads
    "max_upload_mb": int(os.getenv("MAX_UPLOAD_MB", "10")),
    "allowed_extensions": [".csv", ".xlsx", ".xls", ".xlsm"],
    "csv_encodings": ["utf-8", "latin1", "iso-8859-1", "cp1252"],

    # CORS
    "allowed_origins": [
        origin.strip()
        for origin in os.getenv(
            "ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:5500,http://localhost:5000"
        ).split(",")
        if origin.strip()
    ],

    # Aggregation: "last" keeps the last row per (student, subject), "average" pools them
    "duplicate_subject_policy": os.getenv("DUPLICATE_SUBJECT_POLICY", "last"),

    # Analysis thresholds
    "strength_threshold": 70,
    "concern_threshold": 60,
    "strong_subject_threshold": 75,
    "weak_subject_threshold": 60,
    "max_strengths": 3,
    "recommendations_per_student": 3,

    # Mock auth
    "token_ttl_hours": 24,

    # Logging
    "log_level": os.getenv("LOG_LEVEL", "INFO").upper(),
}

MAX_UPLOAD_BYTES = CONFIG["max_upload_mb"] * 1024 * 1024

# Setup logging
logging.basicConfig(
    level=getattr(logging, CONFIG["log_level"], logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

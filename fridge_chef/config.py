import os


def _parse_cors_origins(raw: str) -> list[str]:
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
CORS_ORIGINS = _parse_cors_origins(os.getenv("CORS_ORIGINS", "*"))
ALLOW_ALL_ORIGINS = CORS_ORIGINS == ["*"]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# -----------------------------------
# Detector configuration
# -----------------------------------

# DETECTOR_MODEL_PATH: YOLOv8 ONNX export, output shape [1, 4 + classes, boxes]
DETECTOR_MODEL_PATH = os.getenv("DETECTOR_MODEL_PATH", "models/ingredients.onnx")

# LABELS_PATH: class-index -> ingredient name table (JSON list, JSON id2label
# mapping, or one name per line). Length must match the model's class count.
LABELS_PATH = os.getenv("LABELS_PATH", "models/labels.json")

# MODEL_INPUT_SIZE: side of the square input the detector was exported with
MODEL_INPUT_SIZE = int(os.getenv("MODEL_INPUT_SIZE", "640"))

# CONFIDENCE_THRESHOLD: a detection is kept only if its best class score is
# strictly greater than this value
CONFIDENCE_THRESHOLD = float(os.getenv("CONFIDENCE_THRESHOLD", "0.4"))

# PRELOAD_DETECTOR: load and warm up the ONNX session on startup
PRELOAD_DETECTOR = os.getenv("PRELOAD_DETECTOR", "true").lower() == "true"

# -----------------------------------
# GPT / recipes configuration
# -----------------------------------

# GPT_MODEL: chat model used for recipe suggestions
GPT_MODEL = os.getenv("GPT_MODEL", "gpt-4o-mini")

GPT_TEMPERATURE = float(os.getenv("GPT_TEMPERATURE", "0.7"))

# RECIPE_COUNT: how many recipes the prompt asks for
RECIPE_COUNT = int(os.getenv("RECIPE_COUNT", "3"))

# RECIPE_CUISINE: cuisine named in the recipe prompt
RECIPE_CUISINE = os.getenv("RECIPE_CUISINE", "Thai")

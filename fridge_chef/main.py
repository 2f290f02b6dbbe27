"""Main FastAPI application."""

import asyncio
import logging
import sys
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from fridge_chef.aggregator import IngredientAggregator
from fridge_chef.config import (
    ALLOW_ALL_ORIGINS,
    CONFIDENCE_THRESHOLD,
    CORS_ORIGINS,
    DETECTOR_MODEL_PATH,
    LABELS_PATH,
    LOG_LEVEL,
    MODEL_INPUT_SIZE,
    PRELOAD_DETECTOR,
)
from fridge_chef.openai_client import OpenAIGenerationService
from fridge_chef.recipes import Recipe, RecipePipeline
from fridge_chef.vision_pipeline.detector import load_engine
from fridge_chef.vision_pipeline.frame_processor import FrameProcessor, ProcessedImage
from fridge_chef.vision_pipeline.labels import load_labels
from fridge_chef.vision_pipeline.preprocess import ImageDecodeError
from fridge_chef.vision_pipeline.render import encode_jpeg

logging.basicConfig(
    level=LOG_LEVEL,
    stream=sys.stdout,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = ["image/jpeg", "image/png", "image/webp"]

# -----------------------------------
# Shared state
# -----------------------------------

aggregator = IngredientAggregator()

# Replaced wholesale by every POST /recipes
last_recipes: List[Recipe] = []

_FRAME_PROCESSOR: Optional[FrameProcessor] = None
_RECIPE_PIPELINE: Optional[RecipePipeline] = None


def get_frame_processor() -> Optional[FrameProcessor]:
    """
    Lazily build the frame processor.

    Returns:
        FrameProcessor, or None if the detector or label table could not be loaded.
    """
    global _FRAME_PROCESSOR
    if _FRAME_PROCESSOR is not None:
        return _FRAME_PROCESSOR

    engine = load_engine(DETECTOR_MODEL_PATH, MODEL_INPUT_SIZE)
    if engine is None:
        return None

    try:
        labels = load_labels(LABELS_PATH)
    except (OSError, ValueError) as e:
        logger.error("Failed to load label table from %s: %s", LABELS_PATH, e)
        return None

    _FRAME_PROCESSOR = FrameProcessor(
        engine,
        labels,
        confidence_threshold=CONFIDENCE_THRESHOLD,
        input_size=MODEL_INPUT_SIZE,
    )
    return _FRAME_PROCESSOR


def get_recipe_pipeline() -> Optional[RecipePipeline]:
    """Build the recipe pipeline; None when the OpenAI credential is missing."""
    global _RECIPE_PIPELINE
    if _RECIPE_PIPELINE is not None:
        return _RECIPE_PIPELINE

    try:
        _RECIPE_PIPELINE = RecipePipeline(OpenAIGenerationService())
    except RuntimeError as e:
        logger.error("Recipe pipeline unavailable: %s", e)
        return None
    return _RECIPE_PIPELINE


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if PRELOAD_DETECTOR:
        logger.info("Preloading detector (PRELOAD_DETECTOR=%s)", PRELOAD_DETECTOR)
        await asyncio.to_thread(get_frame_processor)
    else:
        logger.info("Detector preload disabled (PRELOAD_DETECTOR=%s)", PRELOAD_DETECTOR)
    yield


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=not ALLOW_ALL_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------------
# Response models
# -----------------------------------


class ImageSummary(BaseModel):
    id: str
    filename: Optional[str] = None
    labels: List[str]
    item_count: int
    created_at: datetime


class IngredientsResponse(BaseModel):
    ingredients: List[str]
    count: int


class RecipesResponse(BaseModel):
    recipes: List[Recipe]


def _summary(image: ProcessedImage) -> ImageSummary:
    return ImageSummary(
        id=image.id,
        filename=image.filename,
        labels=list(image.labels),
        item_count=len(image.labels),
        created_at=image.created_at,
    )


def _get_image_or_404(image_id: str) -> ProcessedImage:
    image = aggregator.get(image_id)
    if image is None:
        raise HTTPException(404, f"Image not found: {image_id}")
    return image


# -----------------------------------
# Service endpoints
# -----------------------------------


@app.get("/health")
def health():
    return {
        "status": "ok",
        "model_loaded": _FRAME_PROCESSOR is not None,
        "images": len(aggregator),
    }


# -----------------------------------
# Images
# -----------------------------------


@app.post("/images", response_model=List[ImageSummary])
async def upload_images(images: List[UploadFile] = File(None)):
    if not images:
        raise HTTPException(422, "Image field is required")

    for image in images:
        if image.content_type not in ALLOWED_CONTENT_TYPES:
            raise HTTPException(422, f"Unsupported format for {image.filename} (use jpeg/png/webp)")

    # Loading the ONNX session and warming it up blocks, keep it off the event loop
    processor = await asyncio.to_thread(get_frame_processor)
    if processor is None:
        raise HTTPException(503, "Detector model is not loaded")

    total_start = time.time()
    logger.info("[PIPELINE] Starting /images upload with %d files", len(images))

    added: List[ImageSummary] = []
    for image in images:
        content = await image.read()
        try:
            processed = await processor.process(content, filename=image.filename)
        except ImageDecodeError as e:
            logger.exception("Cannot decode upload %s", image.filename)
            raise HTTPException(422, f"Cannot decode {image.filename}: {e}")
        aggregator.add(processed)
        added.append(_summary(processed))

    logger.info(
        "[PIPELINE] /images completed: %d files in %sms, ingredients now %s",
        len(added),
        round((time.time() - total_start) * 1000, 2),
        aggregator.global_labels(),
    )
    return added


@app.get("/images", response_model=List[ImageSummary])
def list_images():
    return [_summary(img) for img in aggregator.images()]


@app.get("/images/{image_id}/annotated")
def get_annotated_image(image_id: str):
    image = _get_image_or_404(image_id)
    return Response(content=encode_jpeg(image.annotated_image), media_type="image/jpeg")


@app.get("/images/{image_id}/original")
def get_original_image(image_id: str):
    image = _get_image_or_404(image_id)
    return Response(content=encode_jpeg(image.original_image), media_type="image/jpeg")


@app.delete("/images/{image_id}", status_code=204)
def delete_image(image_id: str):
    if not aggregator.remove(image_id):
        raise HTTPException(404, f"Image not found: {image_id}")
    return Response(status_code=204)


@app.delete("/images", status_code=204)
def clear_images():
    aggregator.clear()
    return Response(status_code=204)


# -----------------------------------
# Ingredients / recipes
# -----------------------------------


@app.get("/ingredients", response_model=IngredientsResponse)
def get_ingredients():
    ingredients = aggregator.global_labels()
    return IngredientsResponse(ingredients=ingredients, count=len(ingredients))


@app.post("/recipes", response_model=RecipesResponse)
async def generate_recipes():
    global last_recipes

    ingredients = aggregator.global_labels()
    if not ingredients:
        raise HTTPException(400, "No ingredients detected yet, upload photos first")

    pipeline = get_recipe_pipeline()
    if pipeline is None:
        raise HTTPException(503, "Recipe generation is not configured (OPENAI_API_KEY is not set)")

    last_recipes = await pipeline.request_recipes(ingredients)
    return RecipesResponse(recipes=last_recipes)


@app.get("/recipes", response_model=RecipesResponse)
def get_recipes():
    return RecipesResponse(recipes=last_recipes)

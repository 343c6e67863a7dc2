"""JSON routes for detection, generation and evaluation storage."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, UploadFile
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from fridgelens.config import Settings
from fridgelens.db import EvaluationStore
from fridgelens.errors import FridgelensError, InvalidInputError
from fridgelens.images import inspect_image
from fridgelens.llm import IngredientDetector, RecipeGenerator
from fridgelens.models.evaluation import EvaluationCreateRequest
from fridgelens.server import deps

logger = logging.getLogger(__name__)

MISSING_INGREDIENTS_MESSAGE = "Please provide ingredients"

router = APIRouter()


@router.post("/detect-ingredients", summary="Detect ingredients in a fridge photo")
async def detect_ingredients(
    image: Optional[UploadFile] = File(default=None),
    settings: Settings = Depends(deps.get_app_settings),
    detector: IngredientDetector = Depends(deps.get_detector),
) -> dict[str, str]:
    content: Optional[bytes] = None
    if image is not None:
        # One byte past the cap is enough to reject without buffering the whole upload.
        content = await image.read(settings.max_image_bytes + 1)
    mime_type = inspect_image(
        content,
        max_bytes=settings.max_image_bytes,
        declared_type=image.content_type if image is not None else None,
    )
    logger.debug(
        "Received image filename=%s size=%s type=%s",
        image.filename if image is not None else None,
        len(content or b""),
        mime_type,
    )

    try:
        ingredients = await run_in_threadpool(detector.detect, content, mime_type)
    except FridgelensError:
        raise
    except Exception as exc:
        logger.exception("Error detecting ingredients")
        raise FridgelensError("Failed to detect ingredients", details=str(exc)) from exc
    return {"ingredients": ingredients}


@router.post("/generate-recipe", summary="Generate a recipe from an ingredient list")
def generate_recipe(
    payload: Any = Body(default=None),
    generator: RecipeGenerator = Depends(deps.get_generator),
) -> dict[str, Any]:
    ingredients = payload.get("ingredients") if isinstance(payload, dict) else None
    if not isinstance(ingredients, str) or not ingredients.strip():
        raise InvalidInputError(MISSING_INGREDIENTS_MESSAGE)

    try:
        recipe = generator.generate(ingredients.strip())
    except FridgelensError:
        raise
    except Exception as exc:
        logger.exception("Error generating recipe")
        raise FridgelensError("Failed to generate recipe", details=str(exc)) from exc
    logger.info("Recipe generated successfully (%s chars)", len(recipe))
    return {"recipe": recipe, "success": True}


@router.get("/evaluations", summary="List stored evaluations, newest first")
def list_evaluations(
    settings: Settings = Depends(deps.get_app_settings),
    store: EvaluationStore = Depends(deps.get_store),
) -> dict[str, Any]:
    evaluations = store.list(limit=settings.evaluations_list_limit)
    logger.debug("Found %s evaluations", len(evaluations))
    return {
        "evaluations": [evaluation.to_public() for evaluation in evaluations],
        "success": True,
    }


@router.post("/evaluations", summary="Save a rating of a generated recipe")
def create_evaluation(
    payload: Any = Body(default=None),
    settings: Settings = Depends(deps.get_app_settings),
    store: EvaluationStore = Depends(deps.get_store),
) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidInputError("Request body must be a JSON object")
    try:
        parsed = EvaluationCreateRequest.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Invalid evaluation payload keys=%s errors=%s", sorted(payload), exc.errors())
        raise InvalidInputError(
            "Invalid evaluation payload",
            details="; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            ),
        ) from exc

    draft = parsed.to_draft(settings.rating_policy)
    evaluation = store.insert(draft)
    logger.info("Saved evaluation id=%s rating=%s", evaluation.id, evaluation.rating)
    return {"success": True, "id": evaluation.id, "evaluation": evaluation.to_public()}


@router.delete("/evaluations", summary="Delete every stored evaluation")
def delete_evaluations(
    store: EvaluationStore = Depends(deps.get_store),
) -> dict[str, Any]:
    deleted = store.delete_all()
    logger.info("Deleted %s evaluations", deleted)
    return {"success": True, "message": "All evaluations cleared", "deletedCount": deleted}


@router.get("/health", summary="Report configured backends")
def health(
    store: EvaluationStore = Depends(deps.get_store),
    detector: IngredientDetector = Depends(deps.get_detector),
    generator: RecipeGenerator = Depends(deps.get_generator),
) -> dict[str, str]:
    return {
        "status": "ok",
        "detector": detector.name,
        "generator": generator.name,
        "store": store.backend,
    }


__all__ = ["router"]

"""Recipe endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, Query, UploadFile, status

from cookschool.access import Capability, require
from cookschool.api.dependencies import ActorDep, FileStorageDep, SchoolStoreDep
from cookschool.api.models import (
    APIResponse,
    RecipeCreate,
    RecipeImageResponse,
    RecipeResponse,
    RecipeUpdate,
    recipe_to_response,
)
from cookschool.api.uploads import read_upload
from cookschool.exceptions import ValidationError
from cookschool.storage import validate_image
from cookschool.store import DifficultyLevel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes", tags=["recipes"])

IMAGE_DIRECTORY = "recipes/images"
MAX_IMAGE_BYTES = 5 * 1024 * 1024


@router.get("", response_model=APIResponse[list[RecipeResponse]])
def list_recipes(
    store: SchoolStoreDep,
    difficulty_level: DifficultyLevel | None = None,
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> APIResponse[list[RecipeResponse]]:
    """List recipes. Public."""
    recipes = store.list_recipes(difficulty_level=difficulty_level, limit=limit, offset=offset)
    return APIResponse(
        message="Recipes retrieved successfully",
        data=[recipe_to_response(r) for r in recipes],
    )


@router.post(
    "",
    response_model=APIResponse[RecipeResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_recipe(
    recipe: RecipeCreate, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[RecipeResponse]:
    """Create a recipe."""
    require(actor, Capability.CREATE_RECIPES)
    created = store.create_recipe(
        name_en=recipe.name_en,
        name_bn=recipe.name_bn,
        description_en=recipe.description_en,
        description_bn=recipe.description_bn,
        ingredients=[i.model_dump() for i in recipe.ingredients],
        instructions=[s.model_dump() for s in recipe.instructions],
        preparation_time=recipe.preparation_time,
        difficulty_level=recipe.difficulty_level,
    )
    return APIResponse(message="Recipe created successfully", data=recipe_to_response(created))


@router.get("/{recipe_id}", response_model=APIResponse[RecipeResponse])
def get_recipe(recipe_id: int, store: SchoolStoreDep) -> APIResponse[RecipeResponse]:
    """Get a recipe by ID. Public."""
    recipe = store.get_recipe(recipe_id)
    return APIResponse(message="Recipe retrieved successfully", data=recipe_to_response(recipe))


@router.put("/{recipe_id}", response_model=APIResponse[RecipeResponse])
def update_recipe(
    recipe_id: int, recipe: RecipeUpdate, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[RecipeResponse]:
    """Update a recipe (partial update)."""
    require(actor, Capability.EDIT_RECIPES)
    updated = store.update_recipe(recipe_id, **recipe.model_dump(exclude_none=True))
    return APIResponse(message="Recipe updated successfully", data=recipe_to_response(updated))


@router.delete("/{recipe_id}", response_model=APIResponse[None])
def delete_recipe(
    recipe_id: int, store: SchoolStoreDep, storage: FileStorageDep, actor: ActorDep
) -> APIResponse[None]:
    """Soft-delete a recipe and remove its stored images."""
    require(actor, Capability.DELETE_RECIPES)
    for path in store.delete_recipe(recipe_id):
        storage.delete(path)
    return APIResponse(message="Recipe deleted successfully")


@router.post(
    "/{recipe_id}/images",
    response_model=APIResponse[RecipeImageResponse],
    status_code=status.HTTP_201_CREATED,
)
def upload_recipe_image(
    recipe_id: int,
    image: Annotated[UploadFile, File()],
    store: SchoolStoreDep,
    storage: FileStorageDep,
    actor: ActorDep,
    is_primary: Annotated[bool, Form()] = False,
) -> APIResponse[RecipeImageResponse]:
    """Upload an image for a recipe (multipart form)."""
    require(actor, Capability.EDIT_RECIPES)
    store.get_recipe(recipe_id)

    upload = read_upload(image, MAX_IMAGE_BYTES)
    errors = validate_image(upload, MAX_IMAGE_BYTES)
    if errors:
        raise ValidationError("Validation failed", {"image": errors})

    path = storage.save(IMAGE_DIRECTORY, upload)
    try:
        created = store.add_recipe_image(recipe_id, path, is_primary=is_primary)
    except Exception:
        storage.delete(path)
        raise
    logger.info("Stored image %s for recipe %d", path, recipe_id)
    return APIResponse(
        message="Image uploaded successfully",
        data=RecipeImageResponse.model_validate(created),
    )

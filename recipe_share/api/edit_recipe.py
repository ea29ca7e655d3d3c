# api/edit_recipe.py
# Endpoints backing the recipe editor: load, replace and delete.

import logging
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from recipe_share import crud
from recipe_share import schemas
from recipe_share.db.session import get_db

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/{recipe_id}", response_model=schemas.RecipeEditView)
def read_recipe_for_edit(recipe_id: UUID, db: Session = Depends(get_db)):
    """
    The recipe with its author, ordered ingredients and ordered steps.
    """
    db_recipe = crud.get_recipe(db, recipe_id=recipe_id)
    if db_recipe is None:
        logger.warning(f"Recipe with ID {recipe_id} not found for edit.")
        raise HTTPException(status_code=404, detail="Recipe not found")
    return {
        "recipe": db_recipe,
        "ingredients": db_recipe.ingredients,
        "steps": db_recipe.steps,
    }


@router.put("/{recipe_id}", response_model=schemas.RecipeUpdated)
def update_recipe(
        recipe_id: UUID,
        recipe: schemas.RecipeUpdate,
        db: Session = Depends(get_db),
):
    """
    Replace a recipe. Ingredients and steps not resubmitted are dropped.
    """
    logger.debug(f"Updating recipe with ID: {recipe_id}")
    db_recipe = crud.replace_recipe(db=db, recipe_id=recipe_id, recipe_update=recipe)
    if db_recipe is None:
        logger.warning(f"Recipe with ID {recipe_id} not found for update.")
        raise HTTPException(status_code=404, detail="Recipe not found")
    return {"message": "Recipe updated successfully", "recipe": db_recipe}


@router.delete("/{recipe_id}", response_model=schemas.RecipeDeleted)
def delete_recipe(recipe_id: UUID, db: Session = Depends(get_db)):
    """
    Delete a recipe with its ingredients, steps, ratings, comments, favorites and images.
    """
    logger.debug(f"Deleting recipe with ID: {recipe_id}")
    if crud.delete_recipe(db=db, recipe_id=recipe_id) is None:
        logger.warning(f"Recipe with ID: {recipe_id} not found for deletion.")
        raise HTTPException(status_code=404, detail="Recipe not found")
    return {"message": "Recipe and all associated data deleted successfully", "recipe_id": recipe_id}

# api/favorites.py
# A user's saved recipes.

import logging
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from typing import List

from recipe_share import crud
from recipe_share import schemas
from recipe_share.api.deps import require_recipe, require_user
from recipe_share.db.session import get_db

router = APIRouter()

logger = logging.getLogger(__name__)


@router.post("", response_model=schemas.Message, status_code=status.HTTP_201_CREATED)
def add_favorite(
    favorite: schemas.FavoriteCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Save a recipe to the user's favorites. Saving it again changes nothing.
    """
    require_user(db, favorite.user_id, request)
    require_recipe(db, favorite.recipe_id)
    crud.add_favorite(db, user_id=favorite.user_id, recipe_id=favorite.recipe_id)
    return {"message": "Recipe added to favorites"}


@router.get("/{user_id}", response_model=List[schemas.RecipeSummary])
def read_favorites(user_id: UUID, db: Session = Depends(get_db)):
    require_user(db, user_id)
    return crud.get_favorite_summaries(db, user_id=user_id)


@router.delete("/{user_id}/{recipe_id}", response_model=schemas.Message)
def remove_favorite(user_id: UUID, recipe_id: UUID, db: Session = Depends(get_db)):
    if not crud.remove_favorite(db, user_id=user_id, recipe_id=recipe_id):
        logger.warning(f"Favorite {user_id}/{recipe_id} not found.")
        raise HTTPException(status_code=404, detail="Favorite not found")
    return {"message": "Recipe removed from favorites"}

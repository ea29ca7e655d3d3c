# api/listings.py
# Page-shaped listings built on the recipe summary query: home page,
# recipe overview and the author's own recipes.

import logging
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from recipe_share import crud
from recipe_share import schemas
from recipe_share.api.recipes import SortBy
from recipe_share.db.session import get_db

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/home", response_model=schemas.HomeListing)
def read_home(
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    """
    Newest recipes and best rated recipes for the landing page.
    """
    data = schemas.HomeData(
        latest_recipes=crud.get_recipe_summaries(db, sort_by="latest", limit=limit),
        top_rated_recipes=crud.get_recipe_summaries(db, sort_by="rating", limit=limit),
    )
    return schemas.HomeListing(data=data)


@router.get("/recipe-overview", response_model=schemas.RecipeOverview)
def read_recipe_overview(
    search: Optional[str] = None,
    sort_by: SortBy = Query("latest", alias="sortBy"),
    cuisine: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    All recipes with average rating, rating and comment counts and author.
    """
    recipes = crud.get_recipe_summaries(db, search=search, cuisine=cuisine, sort_by=sort_by)
    return {"success": True, "data": recipes}


@router.get("/myrecipes", response_model=List[schemas.RecipeSummary])
def read_my_recipes(
    user_id: UUID = Query(..., alias="userId"),
    search: Optional[str] = None,
    sort_by: SortBy = Query("latest", alias="sortBy"),
    cuisine: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Recipes written by one user. Search looks at title and description only.
    """
    logger.debug(f"Fetching recipes of user {user_id}")
    return crud.get_recipe_summaries(
        db,
        search=search,
        cuisine=cuisine,
        sort_by=sort_by,
        user_id=user_id,
        search_fields=("title", "description"),
    )

# api/recipes.py
# Handles the public recipe endpoints: listing, detail, children, ratings and comments.

import logging
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Literal, Optional

# Import local modules
from recipe_share import crud
from recipe_share import schemas
from recipe_share.api.deps import require_recipe, require_user
from recipe_share.db.session import get_db

# Create an API router
router = APIRouter()

# Get a logger instance
logger = logging.getLogger(__name__)

SortBy = Literal["latest", "oldest", "rating"]


@router.get("", response_model=List[schemas.RecipeSummary])
def read_recipes(
        search: Optional[str] = None,
        sort_by: SortBy = Query("latest", alias="sortBy"),
        cuisine: Optional[str] = None,
        db: Session = Depends(get_db),
):
    """
    List recipes with their average rating, optionally searched, filtered by cuisine and sorted.
    """
    logger.debug(f"Fetching recipes search={search!r} sortBy={sort_by} cuisine={cuisine!r}")
    return crud.get_recipe_summaries(db, search=search, cuisine=cuisine, sort_by=sort_by)


@router.post("", response_model=schemas.Recipe, status_code=status.HTTP_201_CREATED)
def create_recipe(
        recipe: schemas.RecipeCreate,
        request: Request,
        db: Session = Depends(get_db),
):
    """
    Create a recipe together with its ingredients and steps.
    """
    require_user(db, recipe.user_id, request)
    return crud.create_recipe(db=db, recipe=recipe)


@router.get("/cuisines", response_model=List[str])
def read_cuisines(db: Session = Depends(get_db)):
    """
    Distinct cuisines in use, alphabetical.
    """
    return crud.get_cuisines(db)


@router.get("/{recipe_id}", response_model=schemas.RecipeDetail)
def read_recipe(
        recipe_id: UUID,
        user_id: Optional[UUID] = None,
        db: Session = Depends(get_db),
):
    """
    Retrieve a single recipe with its average rating and, when user_id is given, that user's rating.
    """
    logger.debug(f"Fetching recipe with ID: {recipe_id}")
    db_recipe = crud.get_recipe(db, recipe_id=recipe_id)
    if db_recipe is None:
        logger.warning(f"Recipe with ID {recipe_id} not found.")
        raise HTTPException(status_code=404, detail="Recipe not found")

    user_rating = None
    if user_id is not None:
        user_rating = crud.get_user_rating(db, recipe_id=recipe_id, user_id=user_id)

    return schemas.RecipeDetail(
        recipe=schemas.Recipe.model_validate(db_recipe),
        average_rating=crud.get_average_rating(db, recipe_id),
        user_rating=user_rating,
    )


@router.get("/{recipe_id}/steps", response_model=List[schemas.Step])
def read_steps(recipe_id: UUID, db: Session = Depends(get_db)):
    require_recipe(db, recipe_id)
    return crud.get_steps(db, recipe_id)


@router.get("/{recipe_id}/ingredients", response_model=List[schemas.Ingredient])
def read_ingredients(recipe_id: UUID, db: Session = Depends(get_db)):
    require_recipe(db, recipe_id)
    return crud.get_ingredients(db, recipe_id)


# --- Rating Endpoints ---

@router.post("/{recipe_id}/rate", response_model=schemas.Message, status_code=status.HTTP_201_CREATED)
def rate_recipe(
    recipe_id: UUID,
    rating: schemas.RatingCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Add or overwrite the user's rating of a recipe.
    """
    require_recipe(db, recipe_id)
    require_user(db, rating.user_id, request)
    crud.rate_recipe(db, recipe_id=recipe_id, user_id=rating.user_id, rating=rating.rating)
    return {"message": "Rating added/updated successfully"}


@router.get("/{recipe_id}/rate", response_model=schemas.RatingStats)
def read_rating(recipe_id: UUID, db: Session = Depends(get_db)):
    """
    Average rating (one decimal) and number of ratings for a recipe.
    """
    require_recipe(db, recipe_id)
    return crud.get_rating_stats(db, recipe_id)


# --- Comment Endpoints ---

@router.post("/{recipe_id}/comment", response_model=schemas.Message, status_code=status.HTTP_201_CREATED)
def create_comment(
    recipe_id: UUID,
    comment: schemas.CommentCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Add a comment to a recipe.
    """
    require_recipe(db, recipe_id)
    require_user(db, comment.user_id, request)
    crud.create_comment(db=db, recipe_id=recipe_id, comment=comment)
    return {"message": "Comment added successfully"}


@router.get("/{recipe_id}/comments", response_model=schemas.CommentList)
def read_comments(recipe_id: UUID, db: Session = Depends(get_db)):
    """
    Comments for a recipe, newest first, with author usernames and the total count.
    """
    require_recipe(db, recipe_id)
    return crud.get_comments(db=db, recipe_id=recipe_id)


@router.delete("/{recipe_id}/comments/{comment_id}", response_model=schemas.Message)
def delete_comment(
    recipe_id: UUID,
    comment_id: UUID,
    db: Session = Depends(get_db),
):
    db_comment = crud.get_comment(db, comment_id=comment_id)
    if not db_comment:
        raise HTTPException(status_code=404, detail="Comment not found")

    if db_comment.recipe_id != recipe_id:
        raise HTTPException(status_code=400, detail="Comment does not belong to this recipe")

    crud.delete_comment(db=db, comment_id=comment_id)
    return {"message": "Comment deleted successfully"}

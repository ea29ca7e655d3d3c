# crud.py
# Contains the functions for Create, Read, Update, Delete (CRUD) operations.

import logging
from typing import List, Optional
from uuid import UUID

from passlib.context import CryptContext
from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, joinedload

from recipe_share import filters
from recipe_share import images
from recipe_share import models
from recipe_share import schemas

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Get a logger instance
logger = logging.getLogger(__name__)


def get_password_hash(password):
    return pwd_context.hash(password)


def _insert_for(db: Session):
    """Dialect insert construct supporting ON CONFLICT clauses."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"Upserts are not supported on {dialect}")


# --- User CRUD Functions ---
def get_user(db: Session, user_id: UUID):
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_username(db: Session, username: str):
    return db.query(models.User).filter(models.User.username == username).first()


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def create_user(db: Session, user: schemas.UserCreate):
    db_user = models.User(
        username=user.username,
        email=user.email,
        hashed_password=get_password_hash(user.password),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f"Created user {db_user.username}")
    return db_user


# --- Recipe Read Functions ---
def get_recipe(db: Session, recipe_id: UUID):
    """
    Retrieve a single recipe with its author, ingredients and steps.
    """
    logger.debug(f"Retrieving recipe with id {recipe_id}")
    return (
        db.query(models.Recipe)
        .options(
            joinedload(models.Recipe.author),
            joinedload(models.Recipe.ingredients),
            joinedload(models.Recipe.steps),
        )
        .filter(models.Recipe.id == recipe_id)
        .first()
    )


def recipe_exists(db: Session, recipe_id: UUID) -> bool:
    return db.query(models.Recipe.id).filter(models.Recipe.id == recipe_id).first() is not None


def get_ingredients(db: Session, recipe_id: UUID):
    return (
        db.query(models.RecipeIngredient)
        .filter(models.RecipeIngredient.recipe_id == recipe_id)
        .order_by(models.RecipeIngredient.ingredient_number)
        .all()
    )


def get_steps(db: Session, recipe_id: UUID):
    return (
        db.query(models.RecipeStep)
        .filter(models.RecipeStep.recipe_id == recipe_id)
        .order_by(models.RecipeStep.step_number)
        .all()
    )


def _to_summary(row) -> schemas.RecipeSummary:
    recipe, average_rating, total_ratings, total_comments, username = row
    return schemas.RecipeSummary(
        **schemas.Recipe.model_validate(recipe).model_dump(),
        author=schemas.Author(username=username),
        average_rating=float(average_rating or 0.0),
        total_ratings=int(total_ratings or 0),
        total_comments=int(total_comments or 0),
    )


def get_recipe_summaries(
        db: Session,
        search: Optional[str] = None,
        cuisine: Optional[str] = None,
        sort_by: Optional[str] = None,
        user_id: Optional[UUID] = None,
        search_fields=tuple(filters.SEARCH_FIELDS),
        limit: Optional[int] = None,
) -> List[schemas.RecipeSummary]:
    """
    Recipes matching the search and cuisine filters, each annotated with its
    current averageRating, totalRatings and totalComments, sorted by sort_by.
    """
    logger.debug(f"Listing recipes search={search!r} cuisine={cuisine!r} sort_by={sort_by!r} user_id={user_id}")
    query = filters.summary_query(db)
    query = filters.apply_search(query, search, fields=search_fields)
    query = filters.apply_cuisine(query, cuisine)
    query = filters.apply_author(query, user_id)
    query = filters.apply_sorting(query, sort_by)
    if limit is not None:
        query = query.limit(limit)
    return [_to_summary(row) for row in query.all()]


def get_cuisines(db: Session) -> List[str]:
    rows = (
        db.query(models.Recipe.cuisine)
        .filter(models.Recipe.cuisine.isnot(None), models.Recipe.cuisine != "")
        .distinct()
        .order_by(models.Recipe.cuisine)
        .all()
    )
    return [cuisine for (cuisine,) in rows]


# --- Recipe Mutation Functions ---
def _add_children(db: Session, recipe_id: UUID, recipe: schemas.RecipeFields):
    # Positions are re-derived from list order: dense and 1-based.
    for number, item in enumerate(recipe.ingredients, start=1):
        db.add(models.RecipeIngredient(
            recipe_id=recipe_id,
            ingredient_number=number,
            ingredient_name=item.name,
            quantity=item.quantity,
        ))
    for number, item in enumerate(recipe.instructions, start=1):
        db.add(models.RecipeStep(
            recipe_id=recipe_id,
            step_number=number,
            description=item.step,
            image_url=item.image,
        ))


def _recipe_columns(recipe: schemas.RecipeFields) -> dict:
    return recipe.model_dump(exclude={'ingredients', 'instructions', 'user_id'})


def _image_in_use(db: Session, image_url: str) -> bool:
    recipe_refs = db.query(models.Recipe.id).filter(models.Recipe.image_url == image_url)
    step_refs = db.query(models.RecipeStep.id).filter(models.RecipeStep.image_url == image_url)
    return db.query(recipe_refs.exists()).scalar() or db.query(step_refs.exists()).scalar()


def _release_images(db: Session, image_urls, target: str):
    """Remove committed-away images, keeping any another recipe still uses."""
    for url in image_urls:
        if _image_in_use(db, url):
            logger.debug(f"Keeping image {url}: still referenced")
            continue
        images.remove_image(url, target)


def create_recipe(db: Session, recipe: schemas.RecipeCreate):
    """
    Create a recipe together with its ingredients and steps in one transaction.
    """
    logger.debug(f"Creating recipe: {recipe.title}")
    try:
        db_recipe = models.Recipe(**_recipe_columns(recipe), user_id=recipe.user_id)
        db.add(db_recipe)
        db.flush()
        _add_children(db, db_recipe.id, recipe)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_recipe)
    logger.info(f"Created recipe {db_recipe.id} for user {recipe.user_id}")
    return db_recipe


def replace_recipe(db: Session, recipe_id: UUID, recipe_update: schemas.RecipeUpdate):
    """
    Update an existing recipe.
    Ingredients and steps are replaced wholesale: all existing rows are
    deleted and the submitted lists inserted in order. Everything happens in
    one transaction, so a failure leaves the previous recipe untouched.
    """
    logger.debug(f"Replacing recipe {recipe_id}")
    db_recipe = db.query(models.Recipe).filter(models.Recipe.id == recipe_id).first()
    if not db_recipe:
        return None

    old_recipe_image = db_recipe.image_url
    old_step_images = {
        url for (url,) in db.query(models.RecipeStep.image_url)
        .filter(models.RecipeStep.recipe_id == recipe_id, models.RecipeStep.image_url.isnot(None))
    }

    try:
        for key, value in _recipe_columns(recipe_update).items():
            setattr(db_recipe, key, value)

        db.query(models.RecipeIngredient).filter(
            models.RecipeIngredient.recipe_id == recipe_id
        ).delete(synchronize_session=False)
        db.query(models.RecipeStep).filter(
            models.RecipeStep.recipe_id == recipe_id
        ).delete(synchronize_session=False)
        # The unique (recipe_id, position) constraints need the deletes
        # issued before the new rows are inserted.
        db.flush()

        _add_children(db, recipe_id, recipe_update)
        db.commit()
    except Exception:
        db.rollback()
        raise

    # Images no longer referenced after the replace would be orphaned.
    if old_recipe_image and old_recipe_image != recipe_update.image_url:
        _release_images(db, [old_recipe_image], images.RECIPE_IMAGES)
    _release_images(
        db, old_step_images - {item.image for item in recipe_update.instructions}, images.STEP_IMAGES
    )

    db.refresh(db_recipe)
    logger.info(
        f"Replaced recipe {recipe_id}: {len(recipe_update.ingredients)} ingredients, "
        f"{len(recipe_update.instructions)} steps"
    )
    return db_recipe


def delete_recipe(db: Session, recipe_id: UUID):
    """
    Delete a recipe, every row that references it and its stored images.

    Rows go in one transaction. Image files are removed only after the commit
    and on a best-effort basis: a missing or undeletable file is logged and
    does not fail the delete.
    """
    db_recipe = db.query(models.Recipe).filter(models.Recipe.id == recipe_id).first()
    if not db_recipe:
        logger.debug(f"Recipe {recipe_id} not found - nothing to delete")
        return None

    recipe_image = db_recipe.image_url
    step_images = [
        url for (url,) in db.query(models.RecipeStep.image_url)
        .filter(models.RecipeStep.recipe_id == recipe_id, models.RecipeStep.image_url.isnot(None))
    ]

    logger.debug(f"Deleting recipe {recipe_id}")
    try:
        for model in (
            models.RecipeIngredient,
            models.RecipeStep,
            models.Rating,
            models.Comment,
            models.Favorite,
        ):
            db.query(model).filter(model.recipe_id == recipe_id).delete(synchronize_session=False)
        db.query(models.Recipe).filter(models.Recipe.id == recipe_id).delete(synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        raise

    if recipe_image:
        _release_images(db, [recipe_image], images.RECIPE_IMAGES)
    _release_images(db, step_images, images.STEP_IMAGES)

    logger.info(f"Deleted recipe {recipe_id} and {len(step_images)} step image(s)")
    return recipe_id


# --- Rating Functions ---
def rate_recipe(db: Session, recipe_id: UUID, user_id: UUID, rating: float):
    """
    Insert or overwrite the user's rating for a recipe.
    A single INSERT ... ON CONFLICT statement keyed on (recipe_id, user_id),
    so concurrent calls for the same pair can never create two rows.
    """
    insert = _insert_for(db)
    now = models.utcnow()
    stmt = insert(models.Rating).values(
        recipe_id=recipe_id, user_id=user_id, rating=rating, created_at=now, updated_at=now
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[models.Rating.recipe_id, models.Rating.user_id],
        set_={"rating": stmt.excluded.rating, "updated_at": stmt.excluded.updated_at},
    )
    try:
        db.execute(stmt)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"User {user_id} rated recipe {recipe_id}: {rating}")


def get_ratings(db: Session, recipe_id: UUID) -> List[float]:
    return [
        value for (value,) in
        db.query(models.Rating.rating).filter(models.Rating.recipe_id == recipe_id)
    ]


def get_average_rating(db: Session, recipe_id: UUID) -> float:
    average, _ = filters.summarize_ratings(get_ratings(db, recipe_id))
    return average


def get_rating_stats(db: Session, recipe_id: UUID) -> schemas.RatingStats:
    average, total = filters.summarize_ratings(get_ratings(db, recipe_id))
    return schemas.RatingStats(average_rating=filters.format_average(average), total_ratings=total)


def get_user_rating(db: Session, recipe_id: UUID, user_id: UUID) -> Optional[float]:
    row = (
        db.query(models.Rating.rating)
        .filter(models.Rating.recipe_id == recipe_id, models.Rating.user_id == user_id)
        .first()
    )
    return row[0] if row else None


# --- Comment Functions ---
def create_comment(db: Session, recipe_id: UUID, comment: schemas.CommentCreate):
    db_comment = models.Comment(
        recipe_id=recipe_id,
        user_id=comment.user_id,
        content=comment.content,
    )
    db.add(db_comment)
    db.commit()
    db.refresh(db_comment)
    logger.info(f"User {comment.user_id} commented on recipe {recipe_id}")
    return db_comment


def get_comment(db: Session, comment_id: UUID):
    return db.query(models.Comment).filter(models.Comment.id == comment_id).first()


def get_comments(db: Session, recipe_id: UUID) -> schemas.CommentList:
    """
    Comments for a recipe, newest first, with their authors loaded.
    """
    comments = (
        db.query(models.Comment)
        .options(joinedload(models.Comment.user))
        .filter(models.Comment.recipe_id == recipe_id)
        .order_by(models.Comment.created_at.desc(), models.Comment.id)
        .all()
    )
    total = (
        db.query(func.count(models.Comment.id))
        .filter(models.Comment.recipe_id == recipe_id)
        .scalar()
    )
    return schemas.CommentList.model_validate(
        {"comments": comments, "total_comments": total}, from_attributes=True
    )


def delete_comment(db: Session, comment_id: UUID):
    db_comment = get_comment(db, comment_id)
    if db_comment:
        db.delete(db_comment)
        db.commit()
        logger.info(f"Deleted comment {comment_id}")
    return db_comment


# --- Favorite Functions ---
def add_favorite(db: Session, user_id: UUID, recipe_id: UUID):
    """
    Link a recipe to a user's favorites. Adding the same link twice is a no-op.
    """
    insert = _insert_for(db)
    stmt = insert(models.Favorite).values(
        user_id=user_id, recipe_id=recipe_id, created_at=models.utcnow()
    ).on_conflict_do_nothing(index_elements=[models.Favorite.user_id, models.Favorite.recipe_id])
    try:
        db.execute(stmt)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"User {user_id} favorited recipe {recipe_id}")


def remove_favorite(db: Session, user_id: UUID, recipe_id: UUID) -> bool:
    try:
        deleted = (
            db.query(models.Favorite)
            .filter(models.Favorite.user_id == user_id, models.Favorite.recipe_id == recipe_id)
            .delete(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return deleted > 0


def get_favorite_summaries(db: Session, user_id: UUID) -> List[schemas.RecipeSummary]:
    """
    Summaries of a user's favorite recipes, most recently favorited first.
    """
    query = (
        filters.summary_query(db)
        .join(models.Favorite, models.Favorite.recipe_id == models.Recipe.id)
        .filter(models.Favorite.user_id == user_id)
        .order_by(models.Favorite.created_at.desc(), models.Recipe.id)
    )
    return [_to_summary(row) for row in query.all()]

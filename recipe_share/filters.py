# filters.py
# Search, cuisine filter, rating aggregation and sorting for recipe listings.
#
# Aggregates are never stored: every listing joins the recipes against grouped
# subqueries over ratings and comments, so averageRating and the counts always
# reflect the rows that exist at query time.

from typing import Iterable, Optional, Tuple
from uuid import UUID

from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.orm import Query, Session

from recipe_share import models

ALL_CUISINES = "All"

SEARCH_FIELDS = {
    'title': models.Recipe.title,
    'description': models.Recipe.description,
    'cuisine': models.Recipe.cuisine,
}


def summarize_ratings(values: Iterable[float]) -> Tuple[float, int]:
    """
    Mean and count of a set of rating values. An empty set averages to 0.0.
    """
    values = list(values)
    if not values:
        return 0.0, 0
    return sum(values) / len(values), len(values)


def format_average(average: float) -> str:
    return f"{average:.1f}"


def rating_stats_subquery():
    return (
        select(
            models.Rating.recipe_id.label("recipe_id"),
            func.avg(models.Rating.rating).label("average_rating"),
            func.count(models.Rating.id).label("total_ratings"),
        )
        .group_by(models.Rating.recipe_id)
        .subquery("rating_stats")
    )


def comment_stats_subquery():
    return (
        select(
            models.Comment.recipe_id.label("recipe_id"),
            func.count(models.Comment.id).label("total_comments"),
        )
        .group_by(models.Comment.recipe_id)
        .subquery("comment_stats")
    )


def summary_query(db: Session) -> Query:
    """
    Recipes outer-joined with their aggregates and author. Yields tuples of
    (Recipe, average_rating, total_ratings, total_comments, username); a recipe
    with no ratings or comments still yields exactly one row, with zeros.
    """
    ratings = rating_stats_subquery()
    comments = comment_stats_subquery()
    average_rating = func.coalesce(ratings.c.average_rating, 0.0).label("average_rating")
    return (
        db.query(
            models.Recipe,
            average_rating,
            func.coalesce(ratings.c.total_ratings, 0).label("total_ratings"),
            func.coalesce(comments.c.total_comments, 0).label("total_comments"),
            models.User.username.label("username"),
        )
        .outerjoin(ratings, ratings.c.recipe_id == models.Recipe.id)
        .outerjoin(comments, comments.c.recipe_id == models.Recipe.id)
        .outerjoin(models.User, models.User.id == models.Recipe.user_id)
    )


def apply_search(query: Query, search: Optional[str], fields=tuple(SEARCH_FIELDS)) -> Query:
    if not search:
        return query
    # The term is matched literally, so LIKE wildcards in it are escaped.
    term = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{term}%"
    return query.filter(or_(*(SEARCH_FIELDS[name].ilike(pattern, escape="\\") for name in fields)))


def apply_cuisine(query: Query, cuisine: Optional[str]) -> Query:
    if not cuisine or cuisine == ALL_CUISINES:
        return query
    return query.filter(models.Recipe.cuisine == cuisine)


def apply_author(query: Query, user_id: Optional[UUID]) -> Query:
    if user_id is None:
        return query
    return query.filter(models.Recipe.user_id == user_id)


# "average_rating" refers to the labelled column of summary_query().
SORT_KEYS = {
    'latest': [desc(models.Recipe.created_at)],
    'oldest': [asc(models.Recipe.created_at)],
    'rating': [desc("average_rating"), asc(models.Recipe.created_at)],
}

DEFAULT_SORT = 'latest'


def apply_sorting(query: Query, sort_by: Optional[str]) -> Query:
    """
    Order by the requested key with created_at and id as tie-breakers, so the
    ordering is total. Raises ValueError for unknown keys.
    """
    key = sort_by or DEFAULT_SORT
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key '{key}'. Expected one of: {', '.join(SORT_KEYS)}")
    return query.order_by(*SORT_KEYS[key], asc(models.Recipe.id))

# api/deps.py
# Lookups shared by the routers: resolve an id or answer 404.

import logging
from uuid import UUID

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from recipe_share import crud

logger = logging.getLogger(__name__)


def require_recipe(db: Session, recipe_id: UUID):
    if not crud.recipe_exists(db, recipe_id):
        logger.warning(f"Recipe with ID {recipe_id} not found.")
        raise HTTPException(status_code=404, detail="Recipe not found")


def require_user(db: Session, user_id: UUID, request: Request = None):
    user = crud.get_user(db, user_id=user_id)
    if user is None:
        logger.warning(f"User with ID {user_id} not found.")
        raise HTTPException(status_code=404, detail="User not found")
    if request is not None:
        # Picked up by the structured request log.
        request.state.user_id = user_id
    return user

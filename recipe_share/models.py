# models.py
# Defines the SQLAlchemy ORM models for the database tables.

import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, ForeignKey, Integer, String, Text, DateTime, Float, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import Uuid
from recipe_share.db.session import Base


def utcnow():
    # Python-side timestamps keep microsecond precision on SQLite, so
    # created_at orders recipes by insertion.
    return datetime.now(timezone.utc)


class User(Base):
    """
    User model for the 'users' table.
    """
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=True)
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    recipes = relationship("Recipe", back_populates="author")


class Recipe(Base):
    """
    Recipe model for the 'recipes' table.
    """
    __tablename__ = "recipes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)

    title = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=True)
    servings = Column(Integer, nullable=True)
    prep_time = Column(Integer, nullable=True)
    cooking_time = Column(Integer, nullable=True)
    cuisine = Column(String, index=True, nullable=True)
    image_url = Column(String, nullable=True)

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), index=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    author = relationship("User", back_populates="recipes")

    ingredients = relationship(
        "RecipeIngredient", back_populates="recipe",
        order_by="RecipeIngredient.ingredient_number", cascade="all, delete-orphan"
    )
    steps = relationship(
        "RecipeStep", back_populates="recipe",
        order_by="RecipeStep.step_number", cascade="all, delete-orphan"
    )

    def __str__(self):
        return f"{self.id}: {self.title}"


class RecipeIngredient(Base):
    """
    One line of a recipe's ingredient list, positioned by ingredient_number.
    """
    __tablename__ = "recipe_ingredients"
    __table_args__ = (UniqueConstraint("recipe_id", "ingredient_number"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    recipe_id = Column(Uuid(as_uuid=True), ForeignKey("recipes.id"), index=True, nullable=False)
    ingredient_number = Column(Integer, nullable=False)
    ingredient_name = Column(String, nullable=False)
    quantity = Column(String, nullable=True)

    recipe = relationship("Recipe", back_populates="ingredients")


class RecipeStep(Base):
    """
    An instruction step for a recipe.
    """
    __tablename__ = "recipe_steps"
    __table_args__ = (UniqueConstraint("recipe_id", "step_number"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    recipe_id = Column(Uuid(as_uuid=True), ForeignKey("recipes.id"), index=True, nullable=False)
    step_number = Column(Integer, nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(String, nullable=True)

    recipe = relationship("Recipe", back_populates="steps")


class Rating(Base):
    """
    A user's rating of a recipe. At most one row per (recipe, user).
    """
    __tablename__ = "ratings"
    __table_args__ = (UniqueConstraint("recipe_id", "user_id", name="uq_ratings_recipe_user"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    recipe_id = Column(Uuid(as_uuid=True), ForeignKey("recipes.id"), index=True, nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), index=True, nullable=False)
    rating = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Comment(Base):
    """
    Free-text comment left by a user on a recipe.
    """
    __tablename__ = "comments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    recipe_id = Column(Uuid(as_uuid=True), ForeignKey("recipes.id"), index=True, nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), index=True, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    user = relationship("User")


class Favorite(Base):
    """
    Link between a user and a recipe they saved.
    """
    __tablename__ = "favorites"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), primary_key=True)
    recipe_id = Column(Uuid(as_uuid=True), ForeignKey("recipes.id"), primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

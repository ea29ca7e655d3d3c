# schemas.py
# Defines the Pydantic models (schemas) for data validation and serialization.
# Field names are snake_case; the wire names the web client expects
# (averageRating, imageUrl, ...) are declared as aliases.

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator
)
from typing import Annotated, List, Optional, Any
from uuid import UUID
from datetime import datetime

from recipe_share.core.config import settings

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# --- User Schemas ---
class UserBase(BaseModel):
    username: NonBlankStr
    email: Optional[EmailStr] = None

class UserCreate(UserBase):
    password: Annotated[str, StringConstraints(min_length=6)]

class UserPublic(BaseModel):
    id: UUID
    username: str
    model_config = ConfigDict(from_attributes=True)

class Author(BaseModel):
    username: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)

# --- Ingredient / Step Schemas ---
class IngredientIn(BaseModel):
    name: NonBlankStr
    quantity: Optional[str] = None

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_as_text(cls, value: Any) -> Any:
        # Clients send "2 cups" as well as bare numbers.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

class StepIn(BaseModel):
    step: NonBlankStr
    image: Optional[str] = None

class Ingredient(BaseModel):
    id: UUID
    recipe_id: UUID
    ingredient_number: int
    ingredient_name: str
    quantity: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)

class Step(BaseModel):
    id: UUID
    recipe_id: UUID
    step_number: int
    description: str
    image_url: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)

# --- Recipe Schemas ---
class RecipeFields(BaseModel):
    title: NonBlankStr
    description: Optional[str] = None
    servings: Optional[int] = Field(None, ge=0)
    prep_time: Optional[int] = Field(None, ge=0, validation_alias=AliasChoices("prepTime", "prep_time"))
    cooking_time: Optional[int] = Field(None, ge=0, validation_alias=AliasChoices("cookingTime", "cooking_time"))
    cuisine: Optional[str] = None
    image_url: Optional[str] = None
    ingredients: List[IngredientIn] = []
    instructions: List[StepIn] = []

class RecipeCreate(RecipeFields):
    user_id: UUID

class RecipeUpdate(RecipeFields):
    pass

class Recipe(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    servings: Optional[int] = None
    prep_time: Optional[int] = None
    cooking_time: Optional[int] = None
    cuisine: Optional[str] = None
    image_url: Optional[str] = None
    user_id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)

class RecipeWithAuthor(Recipe):
    author: Optional[Author] = None

class RecipeSummary(RecipeWithAuthor):
    """A recipe plus the aggregates derived from its ratings and comments."""
    average_rating: float = Field(0.0, alias="averageRating")
    total_ratings: int = Field(0, alias="totalRatings")
    total_comments: int = Field(0, alias="totalComments")
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

class RecipeDetail(BaseModel):
    recipe: Recipe
    average_rating: float = Field(alias="averageRating")
    user_rating: Optional[float] = Field(None, alias="userRating")
    model_config = ConfigDict(populate_by_name=True)

class RecipeEditView(BaseModel):
    recipe: RecipeWithAuthor
    ingredients: List[Ingredient]
    steps: List[Step]

class RecipeUpdated(BaseModel):
    message: str
    recipe: Recipe

class RecipeDeleted(BaseModel):
    message: str
    recipe_id: UUID = Field(alias="recipeId")
    model_config = ConfigDict(populate_by_name=True)

# --- Rating Schemas ---
class RatingCreate(BaseModel):
    user_id: UUID
    rating: float = Field(..., ge=settings.RATING_MIN, le=settings.RATING_MAX)

class RatingStats(BaseModel):
    average_rating: str = Field(alias="averageRating")
    total_ratings: int = Field(alias="totalRatings")
    model_config = ConfigDict(populate_by_name=True)

# --- Comment Schemas ---
class CommentCreate(BaseModel):
    user_id: UUID
    content: NonBlankStr

class Comment(BaseModel):
    id: UUID
    recipe_id: UUID
    content: str
    created_at: Optional[datetime] = None
    user: Optional[UserPublic] = None
    model_config = ConfigDict(from_attributes=True)

class CommentList(BaseModel):
    comments: List[Comment]
    total_comments: int = Field(alias="totalComments")
    model_config = ConfigDict(populate_by_name=True)

# --- Favorite Schemas ---
class FavoriteCreate(BaseModel):
    user_id: UUID
    recipe_id: UUID

# --- Listing Schemas ---
class HomeData(BaseModel):
    latest_recipes: List[RecipeSummary] = Field(alias="latestRecipes")
    top_rated_recipes: List[RecipeSummary] = Field(alias="topRatedRecipes")
    model_config = ConfigDict(populate_by_name=True)

class HomeListing(BaseModel):
    success: bool = True
    data: HomeData

class RecipeOverview(BaseModel):
    success: bool = True
    data: List[RecipeSummary]

# --- Misc ---
class ImageUpload(BaseModel):
    image_url: str = Field(alias="imageUrl")
    model_config = ConfigDict(populate_by_name=True)

class Message(BaseModel):
    message: str

class Health(BaseModel):
    status: str
    environment: str
    database: str

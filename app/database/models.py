import enum
import json
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.database.base import Base


def new_id() -> str:
    return str(uuid.uuid4())


class Marked(str, enum.Enum):
    """Tri-state recipe flag. UNKNOWN is stored as NULL."""

    TRUE = "true"
    FALSE = "false"
    UNKNOWN = "unknown"

    def as_bool(self) -> bool | None:
        if self is Marked.TRUE:
            return True
        if self is Marked.FALSE:
            return False
        return None

    @classmethod
    def from_bool(cls, value: bool | None) -> "Marked":
        if value is None:
            return cls.UNKNOWN
        return cls.TRUE if value else cls.FALSE


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    email_verified_at = Column(DateTime, nullable=True)
    subscription_tier = Column(Integer, nullable=False, default=0)
    subscription_status = Column(String(50), nullable=False, default="free")
    subscription_expires_at = Column(DateTime, nullable=True)
    admin_override = Column(Boolean, nullable=False, default=False)
    stripe_customer_id = Column(String(255), nullable=True)
    stripe_subscription_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    recipes = relationship("Recipe", back_populates="user")
    cookbooks = relationship("Cookbook", back_populates="user")


class LookupMixin:
    """Columns shared by the five lookup tables."""

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class Classification(LookupMixin, Base):
    __tablename__ = "classifications"

    recipes = relationship("Recipe", back_populates="classification")


class Source(LookupMixin, Base):
    __tablename__ = "sources"

    recipes = relationship("Recipe", back_populates="source")


class Meal(LookupMixin, Base):
    __tablename__ = "meals"

    recipe_links = relationship("RecipeMeal", back_populates="meal")


class Course(LookupMixin, Base):
    __tablename__ = "courses"

    recipe_links = relationship("RecipeCourse", back_populates="course")


class Preparation(LookupMixin, Base):
    __tablename__ = "preparations"

    recipe_links = relationship("RecipePreparation", back_populates="preparation")


class Recipe(Base):
    __tablename__ = "recipes"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    ingredients = Column(Text, nullable=False)
    instructions = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    servings = Column(Integer, nullable=False, default=1)
    source_id = Column(String(36), ForeignKey("sources.id"), nullable=True)
    classification_id = Column(String(36), ForeignKey("classifications.id"), nullable=True)
    date_added = Column(DateTime, nullable=True, default=datetime.utcnow)
    calories = Column(Integer, nullable=True)
    fat = Column(Float, nullable=True)
    cholesterol = Column(Float, nullable=True)
    sodium = Column(Float, nullable=True)
    protein = Column(Float, nullable=True)
    marked = Column(Boolean, nullable=True)
    tags = Column(Text, nullable=True)  # JSON array of strings
    is_private = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="recipes")
    source = relationship("Source", back_populates="recipes")
    classification = relationship("Classification", back_populates="recipes")
    meals = relationship("RecipeMeal", back_populates="recipe", cascade="all, delete-orphan")
    courses = relationship("RecipeCourse", back_populates="recipe", cascade="all, delete-orphan")
    preparations = relationship(
        "RecipePreparation", back_populates="recipe", cascade="all, delete-orphan"
    )
    cookbook_entries = relationship(
        "CookbookRecipe", back_populates="recipe", cascade="all, delete-orphan"
    )

    @property
    def marked_state(self) -> Marked:
        return Marked.from_bool(self.marked)

    @property
    def tag_list(self) -> list[str]:
        return json.loads(self.tags) if self.tags else []

    @staticmethod
    def encode_tags(tags: list[str] | None) -> str:
        return json.dumps(list(tags or []))


class RecipeMeal(Base):
    __tablename__ = "recipe_meals"

    id = Column(String(36), primary_key=True, default=new_id)
    recipe_id = Column(String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    meal_id = Column(String(36), ForeignKey("meals.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    recipe = relationship("Recipe", back_populates="meals")
    meal = relationship("Meal", back_populates="recipe_links")

    __table_args__ = (
        UniqueConstraint("recipe_id", "meal_id", name="uq_recipe_meal"),
    )


class RecipeCourse(Base):
    __tablename__ = "recipe_courses"

    id = Column(String(36), primary_key=True, default=new_id)
    recipe_id = Column(String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    recipe = relationship("Recipe", back_populates="courses")
    course = relationship("Course", back_populates="recipe_links")

    __table_args__ = (
        UniqueConstraint("recipe_id", "course_id", name="uq_recipe_course"),
    )


class RecipePreparation(Base):
    __tablename__ = "recipe_preparations"

    id = Column(String(36), primary_key=True, default=new_id)
    recipe_id = Column(String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    preparation_id = Column(
        String(36), ForeignKey("preparations.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    recipe = relationship("Recipe", back_populates="preparations")
    preparation = relationship("Preparation", back_populates="recipe_links")

    __table_args__ = (
        UniqueConstraint("recipe_id", "preparation_id", name="uq_recipe_preparation"),
    )


class Cookbook(Base):
    __tablename__ = "cookbooks"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    cover_image = Column(String(500), nullable=True)
    is_private = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="cookbooks")
    recipes = relationship(
        "CookbookRecipe",
        back_populates="cookbook",
        cascade="all, delete-orphan",
        order_by="CookbookRecipe.order",
    )


class CookbookRecipe(Base):
    __tablename__ = "cookbook_recipes"

    id = Column(String(36), primary_key=True, default=new_id)
    cookbook_id = Column(String(36), ForeignKey("cookbooks.id", ondelete="CASCADE"), nullable=False)
    recipe_id = Column(String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    order = Column(Integer, nullable=False)  # 1..N within a cookbook
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    cookbook = relationship("Cookbook", back_populates="recipes")
    recipe = relationship("Recipe", back_populates="cookbook_entries")

    __table_args__ = (
        UniqueConstraint("cookbook_id", "recipe_id", name="uq_cookbook_recipe"),
    )

"""
LeadEngine recipe system - save and rerun searches reproducibly.

Recipes are YAML files stored in `recipes/` that define:
- query: role, industry, city, platform, min_followers
- pages: how many "load more" rounds to run
- policy: which local checks to enforce
"""

from datetime import datetime
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .filtering import FilterPolicy
from .models import SearchQuery


class RecipePolicy(BaseModel):
    """Local validation toggles for a recipe run."""

    model_config = ConfigDict(extra="forbid")

    enforce_follower_floor: bool = Field(default=True)
    enforce_city: bool = Field(default=True)
    require_contact: bool = Field(default=True)

    def to_filter_policy(self) -> FilterPolicy:
        return FilterPolicy(
            enforce_follower_floor=self.enforce_follower_floor,
            enforce_city=self.enforce_city,
            require_contact=self.require_contact,
        )


class Recipe(BaseModel):
    """A saved search for reproducible runs."""

    model_config = ConfigDict(extra="forbid")

    # Metadata
    slug: str = Field(..., min_length=1, description="Unique identifier (filename stem)")
    name: str = Field(default="", description="Human-readable name")
    description: str = Field(default="")
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    # Core
    query: SearchQuery = Field(default_factory=SearchQuery)
    pages: int = Field(default=1, ge=1, le=20, description="Load-more rounds")

    policy: RecipePolicy = Field(default_factory=RecipePolicy)


def get_recipes_dir() -> Path:
    """Get the recipes directory path (recipes/ under the working directory)."""
    return Path.cwd() / "recipes"


def list_recipes() -> list[Recipe]:
    """List all saved recipes, skipping files that fail to load."""
    recipes_dir = get_recipes_dir()
    if not recipes_dir.exists():
        return []

    recipes = []
    for path in recipes_dir.glob("*.yml"):
        try:
            recipes.append(load_recipe(path.stem))
        except (ValueError, yaml.YAMLError):
            continue

    return sorted(recipes, key=lambda r: r.slug)


def load_recipe(slug: str) -> Recipe:
    """Load a recipe by slug.

    Raises:
        FileNotFoundError: If recipe doesn't exist.
        ValueError: If recipe is invalid.
    """
    path = get_recipes_dir() / f"{slug}.yml"

    if not path.exists():
        raise FileNotFoundError(f"Recipe not found: {slug}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    # Slug always matches the filename
    data["slug"] = slug

    return Recipe(**data)


def save_recipe(recipe: Recipe) -> Path:
    """Save a recipe to disk and return its path."""
    recipes_dir = get_recipes_dir()
    recipes_dir.mkdir(parents=True, exist_ok=True)

    path = recipes_dir / f"{recipe.slug}.yml"

    data = recipe.model_dump(mode="json", exclude_none=True)
    data["updated_at"] = datetime.now().isoformat()

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    return path


def delete_recipe(slug: str) -> bool:
    """Delete a recipe by slug. Returns False if not found."""
    path = get_recipes_dir() / f"{slug}.yml"

    if path.exists():
        path.unlink()
        return True
    return False


def create_recipe(
    slug: str,
    query: SearchQuery,
    name: str = "",
    description: str = "",
    pages: int = 1,
) -> Recipe:
    """Create a recipe from a query (not yet saved)."""
    return Recipe(
        slug=slug,
        name=name or slug.replace("-", " ").replace("_", " ").title(),
        description=description,
        query=query,
        pages=pages,
    )

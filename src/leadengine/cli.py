"""
LeadEngine CLI - command line interface.
"""

import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from .exporter import EXPORT_FORMATS
from .presets import DEFAULT_CITY, FOLLOWER_OPTIONS, INDUSTRIES, PLATFORMS, ROLES

# Load environment variables
load_dotenv()


@click.group()
@click.version_option(version="0.1.0", prog_name="leadengine")
def main() -> None:
    """LeadEngine - Creator leads from grounded AI search"""
    pass


@main.command()
@click.option("--role", default=ROLES[0], show_default=True, help="Creator role")
@click.option("--industry", default=INDUSTRIES[0], show_default=True, help="Niche / industry")
@click.option("--city", default=DEFAULT_CITY, show_default=True, help="Target city")
@click.option(
    "--platform",
    type=click.Choice(PLATFORMS),
    default=PLATFORMS[0],
    show_default=True,
    help="Social network to search",
)
@click.option(
    "--min-followers",
    type=click.Choice([value for value, _label in FOLLOWER_OPTIONS]),
    default=FOLLOWER_OPTIONS[0][0],
    show_default=True,
    help="Follower floor",
)
@click.option(
    "--pages",
    "-n",
    type=click.IntRange(1, 20),
    default=1,
    show_default=True,
    help="Number of load-more rounds",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Output file (default: creator_leads_<date>.<format>)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(EXPORT_FORMATS),
    default="csv",
    show_default=True,
)
@click.option("--recipe", "recipe_slug", default=None, help="Run a saved recipe instead")
@click.option(
    "--provider", default=None, help="gemini, openai or mock (default: LEADENGINE_PROVIDER)"
)
@click.option("--verbose", "-v", is_flag=True, help="Show the composed query and drop reasons")
def search(
    role: str,
    industry: str,
    city: str,
    platform: str,
    min_followers: str,
    pages: int,
    output: str | None,
    output_format: str,
    recipe_slug: str | None,
    provider: str | None,
    verbose: bool,
) -> None:
    """Search for creator leads and export them."""
    from .exporter import default_filename
    from .extractor import ConfigurationError, LeadEngineError, get_extraction_provider
    from .models import SearchQuery
    from .pipeline import NO_RESULTS_MESSAGE, run_search

    policy = None
    if recipe_slug:
        from .recipe import load_recipe

        try:
            r = load_recipe(recipe_slug)
        except FileNotFoundError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        except ValueError as e:
            click.echo(f"Invalid recipe {recipe_slug}: {e}", err=True)
            sys.exit(1)
        query = r.query
        pages = r.pages
        policy = r.policy.to_filter_policy()
        click.echo(f"[LeadEngine] Using recipe: {r.slug}")
    else:
        query = SearchQuery(
            role=role,
            industry=industry,
            city=city,
            platform=platform,
            min_followers=min_followers,
        )

    output_path = Path(output) if output else Path(default_filename(output_format))

    try:
        session = run_search(
            query,
            pages=pages,
            output=output_path,
            output_format=output_format,
            provider=get_extraction_provider(provider),
            policy=policy,
            verbose=verbose,
        )
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo("Make sure GEMINI_API_KEY (or OPENAI_API_KEY) is set in .env", err=True)
        sys.exit(1)
    except LeadEngineError as e:
        click.echo(f"Search error: {e}", err=True)
        sys.exit(1)

    if not session.leads:
        click.echo(NO_RESULTS_MESSAGE)
        return

    click.echo(f"\nFound {len(session.leads)} leads ({len(session.sources)} sources)")
    for lead in session.leads[:10]:
        contact = lead.email or lead.phone
        click.echo(f"  @{lead.username:<24} {lead.followers:>8}  {contact}")
    if len(session.leads) > 10:
        click.echo(f"  ... and {len(session.leads) - 10} more")


@main.command()
def check() -> None:
    """Check if required API keys are configured."""
    import os

    click.echo("Checking configuration...\n")

    provider = (os.getenv("LEADENGINE_PROVIDER") or "gemini").lower()
    gemini_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
    openai_key = os.getenv("OPENAI_API_KEY")

    click.echo(f"Provider: {provider}\n")
    click.echo("Keys:")
    if gemini_key:
        click.echo(f"  GEMINI_API_KEY: {gemini_key[:8]}...{gemini_key[-4:]}")
    else:
        click.echo("  GEMINI_API_KEY: NOT SET")

    if openai_key:
        click.echo(f"  OPENAI_API_KEY: {openai_key[:8]}...{openai_key[-4:]}")
    else:
        click.echo("  OPENAI_API_KEY: NOT SET")

    required = {"gemini": gemini_key, "openai": openai_key, "mock": "n/a"}.get(provider)
    if required:
        click.echo("\nThe selected provider is configured. Ready to run!")
    else:
        click.echo("\nMissing key for the selected provider. Add it to .env and retry.")
        sys.exit(1)


@main.command()
def options() -> None:
    """List the preset roles, industries, platforms and follower tiers."""
    click.echo("Roles:      " + ", ".join(ROLES))
    click.echo("Industries: " + ", ".join(INDUSTRIES))
    click.echo("Platforms:  " + ", ".join(PLATFORMS))
    click.echo("Followers:")
    for value, label in FOLLOWER_OPTIONS:
        click.echo(f"  {value:<6} {label}")


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", type=int, default=8000, show_default=True)
def serve(host: str, port: int) -> None:
    """Serve the web API (POST /api/search-creators)."""
    import uvicorn

    uvicorn.run("leadengine.web:app", host=host, port=port)


# =============================================================================
# RECIPE COMMANDS
# =============================================================================


@main.group()
def recipe() -> None:
    """Manage saved searches."""
    pass


@recipe.command("list")
def recipe_list() -> None:
    """List all saved recipes."""
    from .recipe import list_recipes

    recipes = list_recipes()

    if not recipes:
        click.echo("No recipes found. Create one with: leadengine recipe create")
        return

    click.echo(f"\nSaved Recipes ({len(recipes)})\n")
    click.echo(f"{'Slug':<25} {'Platform':<15} {'Query'}")
    click.echo("-" * 70)

    for r in recipes:
        q = r.query
        click.echo(f"{r.slug:<25} {q.platform:<15} {q.role} / {q.industry} / {q.city}")


@recipe.command("show")
@click.argument("slug")
def recipe_show(slug: str) -> None:
    """Show details of a recipe."""
    from .recipe import load_recipe

    try:
        r = load_recipe(slug)
    except FileNotFoundError:
        click.echo(f"Recipe not found: {slug}", err=True)
        sys.exit(1)

    click.echo(f"\nRecipe: {r.name or r.slug}")
    click.echo(f"Slug: {r.slug}")
    if r.description:
        click.echo(f"Description: {r.description}")
    click.echo(f"\nRole:          {r.query.role}")
    click.echo(f"Industry:      {r.query.industry}")
    click.echo(f"City:          {r.query.city}")
    click.echo(f"Platform:      {r.query.platform}")
    click.echo(f"Min followers: {r.query.min_followers}")
    click.echo(f"Pages:         {r.pages}")
    click.echo(
        f"Checks:        floor={r.policy.enforce_follower_floor} "
        f"city={r.policy.enforce_city} contact={r.policy.require_contact}"
    )


@recipe.command("create")
@click.argument("slug")
@click.option("--role", default=ROLES[0], show_default=True)
@click.option("--industry", default=INDUSTRIES[0], show_default=True)
@click.option("--city", default=DEFAULT_CITY, show_default=True)
@click.option("--platform", type=click.Choice(PLATFORMS), default=PLATFORMS[0], show_default=True)
@click.option(
    "--min-followers",
    type=click.Choice([value for value, _label in FOLLOWER_OPTIONS]),
    default=FOLLOWER_OPTIONS[0][0],
    show_default=True,
)
@click.option("--pages", "-n", type=click.IntRange(1, 20), default=1, show_default=True)
@click.option("--name", default="", help="Human-readable name")
@click.option("--description", "-d", default="", help="Recipe description")
def recipe_create(
    slug: str,
    role: str,
    industry: str,
    city: str,
    platform: str,
    min_followers: str,
    pages: int,
    name: str,
    description: str,
) -> None:
    """Create a new recipe."""
    from .models import SearchQuery
    from .recipe import create_recipe, save_recipe

    query = SearchQuery(
        role=role,
        industry=industry,
        city=city,
        platform=platform,
        min_followers=min_followers,
    )
    r = create_recipe(slug, query, name=name, description=description, pages=pages)
    path = save_recipe(r)
    click.echo(f"Recipe saved: {path}")
    click.echo(f"Run with: leadengine search --recipe {slug}")


@recipe.command("delete")
@click.argument("slug")
@click.confirmation_option(prompt="Are you sure you want to delete this recipe?")
def recipe_delete(slug: str) -> None:
    """Delete a recipe."""
    from .recipe import delete_recipe

    if delete_recipe(slug):
        click.echo(f"Deleted recipe: {slug}")
    else:
        click.echo(f"Recipe not found: {slug}", err=True)
        sys.exit(1)

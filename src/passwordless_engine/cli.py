import asyncio

import typer
import uvicorn

from passwordless_engine.core.bootstrap import build_recipe
from passwordless_engine.core.config import settings
from passwordless_engine.recipe.recipe import PasswordlessRecipe

app = typer.Typer(help="PasswordlessEngine CLI")


@app.command()
def run(
    host: str = "0.0.0.0",
    port: int = 8000,
    reload: bool = False,
) -> None:
    """
    Run the FastAPI server
    """
    uvicorn.run(
        "passwordless_engine.main:app",
        host=host,
        port=port,
        reload=reload,
    )


async def _create_magic_link(
    recipe: PasswordlessRecipe, email: str | None, phone_number: str | None
) -> str:
    try:
        if email is not None:
            return await recipe.create_magic_link_by_email(email)
        if phone_number is not None:
            return await recipe.create_magic_link_by_phone_number(phone_number)
        raise typer.BadParameter("Please provide exactly one of --email or --phone-number")
    finally:
        await recipe.querier.aclose()


@app.command("magic-link")
def magic_link(
    email: str | None = typer.Option(None, help="Email address to sign in"),
    phone_number: str | None = typer.Option(None, help="Phone number (E.164) to sign in"),
) -> None:
    """
    Create a code on the auth core and print the magic link for it
    """
    if (email is None) == (phone_number is None):
        typer.echo("Please provide exactly one of --email or --phone-number", err=True)
        raise typer.Exit(code=1)

    recipe = build_recipe(settings)
    link = asyncio.run(_create_magic_link(recipe, email, phone_number))
    typer.echo(link)


if __name__ == "__main__":
    app()

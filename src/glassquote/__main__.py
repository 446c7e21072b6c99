"""Entry point: ``python -m glassquote`` prices from the shell or serves the API."""

from enum import Enum

import typer

from glassquote.cli import app as cli_app
from glassquote.config import get_config

HELP = (
    "Glass, window and door quoting. Use `quote` and `distance` from the "
    "terminal, or `--mode api` to serve the quoting HTTP API."
)


class RunMode(str, Enum):
    CLI = "cli"
    API = "api"


app = typer.Typer(help=HELP, no_args_is_help=False)
app.add_typer(cli_app, name="", help="Price item files and delivery distances.")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    mode: RunMode = typer.Option(
        RunMode.CLI,
        "--mode",
        case_sensitive=False,
        help=(
            "cli runs a pricing command; api serves the quoting endpoints "
            "on API_HOST:API_PORT."
        ),
    ),
) -> None:
    if mode is RunMode.API:
        import uvicorn

        config = get_config()
        uvicorn.run(
            "glassquote.api:app",
            host=config.api_host,
            port=config.api_port,
            reload=False,
        )
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


if __name__ == "__main__":
    app()

"""
messageflow CLI

Usage:
    messageflow gen-schema --asyncapi-files a.yaml,b.yaml --format-mode context_services --format-to-file out.d2
    messageflow gen-schema --asyncapi-files a.yaml --render-to-file service.svg --service "User Service"
    messageflow gen-docs --asyncapi-files a.yaml,b.yaml --output ./docs --title "Message Flow"
"""

import logging
from typing import List

import typer

from messageflow.compiler import pick_target
from messageflow.compiler.layout import sort_schema
from messageflow.compiler.types import FormatOptions
from messageflow.config import MESSAGEFLOW_TARGET, configure_logging
from messageflow.ir.errors import MessageflowError
from messageflow.pipeline.controller import DocsController
from messageflow.renderer import get_renderer
from messageflow.source import load_schema

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="messageflow",
    help="Message-flow diagrams, docs and changelogs from AsyncAPI files",
    no_args_is_help=True,
)


def _split_paths(value: str) -> List[str]:
    return [path.strip() for path in value.split(",") if path.strip()]


@app.callback()
def main() -> None:
    configure_logging()


@app.command("gen-schema")
def gen_schema(
    asyncapi_files: str = typer.Option(..., "--asyncapi-files", help="Paths to asyncapi files separated by comma"),
    target: str = typer.Option(MESSAGEFLOW_TARGET, "--target", help="Target type (d2)"),
    format_mode: str = typer.Option("service_channels", "--format-mode", help="Format mode"),
    service: str = typer.Option("", "--service", help="Service"),
    channel: str = typer.Option("", "--channel", help="Channel"),
    omit_payloads: bool = typer.Option(False, "--omit-payloads", help="Leave message payloads out of channel views"),
    format_to_file: str = typer.Option("", "--format-to-file", help="Output file for the formatted schema"),
    render_to_file: str = typer.Option("", "--render-to-file", help="Output file for the rendered diagram"),
) -> None:
    """Format (and optionally render) one view of the merged schema."""
    if not format_to_file and not render_to_file:
        typer.echo("Error: at least one of --format-to-file or --render-to-file is required", err=True)
        raise typer.Exit(1)

    try:
        renderer = get_renderer() if render_to_file else None
        diagram_target = pick_target(target, renderer=renderer)

        capabilities = diagram_target.capabilities()
        if not capabilities.format:
            raise MessageflowError(f"target {target} does not support formatting")
        if render_to_file and not capabilities.render:
            raise MessageflowError(f"target {target} does not support rendering")

        schema = sort_schema(load_schema(_split_paths(asyncapi_files)))
        options = FormatOptions(
            mode=format_mode,
            service=service,
            channel=channel,
            omit_payloads=omit_payloads,
        )
        formatted = diagram_target.format_schema(schema, options)

        if format_to_file:
            with open(format_to_file, "wb") as f:
                f.write(formatted.data)
            typer.echo(f"Formatted schema written to: {format_to_file}")

        if render_to_file:
            image = diagram_target.render_schema(formatted)
            with open(render_to_file, "wb") as f:
                f.write(image)
            typer.echo(f"Rendered diagram written to: {render_to_file}")
    except (MessageflowError, OSError) as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(1) from err


@app.command("gen-docs")
def gen_docs(
    asyncapi_files: str = typer.Option(..., "--asyncapi-files", help="Paths to asyncapi files separated by comma"),
    output: str = typer.Option(".", "--output", help="Output directory for generated documentation"),
    title: str = typer.Option("Message Flow", "--title", help="Title of the documentation"),
) -> None:
    """Generate README, diagrams and changelog history for the merged schema."""
    try:
        schema = sort_schema(load_schema(_split_paths(asyncapi_files)))
        diagram_target = pick_target(MESSAGEFLOW_TARGET, renderer=get_renderer())
        DocsController().run(schema, diagram_target, output, title=title)
    except (MessageflowError, OSError) as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(1) from err

    typer.echo(f"Documentation generated successfully in: {output}")


if __name__ == "__main__":
    app()

import logging
from pathlib import Path
import typer
from rich import print as rprint
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from typing import Optional

from .context import GenerationContext, GenerationOptions
from .converters import default_registry
from .errors import Flow2ChainError
from .loader import load_graph
from .validator import validate_graph_from_file
from .visualize import ascii_plan

app = typer.Typer(no_args_is_help=True, help="Flow2Chain CLI: visual flow graphs → LangChain Python source")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging.")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


@app.command()
def convert(file: Path,
            out: Optional[Path] = typer.Option(None, help="Write the generated module here instead of stdout."),
            config: Optional[Path] = typer.Option(None, help="YAML file with generation options."),
            flavor: Optional[str] = typer.Option(None, help="module | script"),
            loose: bool = typer.Option(False, help="Emit None for unbound node references instead of failing.")):
    """Convert a graph (YAML/JSON) into Python source."""
    from .pipeline import convert_graph
    graph = load_graph(file)
    overrides = {"flavor": flavor, "strict_references": False if loose else None}
    if config is not None:
        options = GenerationOptions.from_file(config, **overrides)
    else:
        options = GenerationOptions(**{k: v for k, v in overrides.items() if v is not None})
    if "graph_name" not in options.model_fields_set:
        options = options.model_copy(update={"graph_name": file.stem})
    try:
        result = convert_graph(graph, GenerationContext(graph=graph, options=options), default_registry())
    except Flow2ChainError as e:
        rprint(Panel.fit(f"[bold red]Conversion failed[/]: {e}"))
        raise typer.Exit(code=1)
    if out is None:
        print(result.code, end="")
        return
    out.parent.mkdir(exist_ok=True, parents=True)
    out.write_text(result.code)
    rprint(Panel.fit(f"Wrote [bold]{len(result.order)}[/] nodes to [cyan]{out}[/]"))


@app.command()
def validate(file: Path):
    """Validate a graph (structure, ports, cycles, converter support)."""
    ok, messages = validate_graph_from_file(file)
    table = Table(title="Validation Report", show_lines=True)
    table.add_column("Status", justify="center", style="bold")
    table.add_column("Message")
    for m in messages:
        status, _, text = m.partition(": ")
        table.add_row(status, text)
    rprint(table)
    if not ok:
        raise typer.Exit(code=1)


@app.command()
def deps(file: Path):
    """Print the packages the generated code needs, one per line."""
    graph = load_graph(file)
    for name in default_registry().get_all_dependencies(graph.nodes):
        print(name)


@app.command()
def explain(file: Path):
    """Print the initialization plan of the graph."""
    try:
        print(ascii_plan(load_graph(file)))
    except Flow2ChainError as e:
        rprint(Panel.fit(f"[bold red]Cannot plan[/]: {e}"))
        raise typer.Exit(code=1)


@app.command()
def converters():
    """List registered converters and aliases."""
    registry = default_registry()
    aliases = {}
    for alias, target in registry.registered_aliases().items():
        aliases.setdefault(target, []).append(alias)
    table = Table(title="Converters")
    table.add_column("Type")
    table.add_column("Category")
    table.add_column("Aliases")
    table.add_column("Packages")
    table.add_column("Versions")
    for tag in sorted(registry.registered_types()):
        conv = registry.get_converter(tag)
        name = f"{tag} [dim](deprecated → {conv.replacement})[/]" if conv.deprecated else tag
        table.add_row(name, conv.category, ", ".join(aliases.get(tag, [])),
                      ", ".join(conv.dependencies), ", ".join(conv.supported_versions))
    rprint(table)


if __name__ == "__main__":
    app()

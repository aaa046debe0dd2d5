"""CLI entry point for SoC Watch Analyzer."""

import json
import typer
from typing import List, Optional
from pathlib import Path
from rich.console import Console
from rich.table import Table
from socwatch_analyzer.analyzer import ProfileLoadError, load_profiles, read_trace_text
from socwatch_analyzer.compare import MAX_COMPARISONS, build_comparison
from socwatch_analyzer.detector import detect_csv_format
from socwatch_analyzer.explain import run_explain
from socwatch_analyzer.insights import format_duration, format_frequency, format_power, threading_model_description
from socwatch_analyzer.library import LibraryError, ProfileLibrary, default_library_path

app = typer.Typer(
    help="SoC Watch Analyzer - Per-core power, frequency and sleep-state analytics for game workloads",
    no_args_is_help=True
)
library_app = typer.Typer(help="Manage SKU-grouped profile libraries", no_args_is_help=True)
app.add_typer(library_app, name="library")
console = Console()


def _fail(message: str) -> None:
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)


def _check_paths(paths: List[Path]) -> None:
    for path in paths:
        if not path.exists():
            _fail(f"Path not found: {path}")


def _open_library(path: Optional[Path]) -> ProfileLibrary:
    library = ProfileLibrary(path or default_library_path())
    problem = library.load()
    if problem:
        console.print(f"[yellow]Warning:[/yellow] {problem}")
    return library


def _insight_table(title: str, profiles: list) -> Table:
    table = Table(title=title)
    table.add_column("Game")
    table.add_column("Format")
    table.add_column("P-Core %", justify="right")
    table.add_column("E-Core %", justify="right")
    table.add_column("P MHz", justify="right")
    table.add_column("E MHz", justify="right")
    table.add_column("P/E Ratio", justify="right")
    table.add_column("Threading Model")
    table.add_column("Duration", justify="right")
    table.add_column("Base Freq", justify="right")
    table.add_column("Power", justify="right")
    for profile in profiles:
        insights = profile.insights
        metadata = profile.metadata
        table.add_row(
            profile.name,
            profile.format_version,
            insights.p_core_activity,
            insights.e_core_activity,
            insights.p_core_avg_freq,
            insights.e_core_avg_freq,
            insights.threading_ratio,
            insights.threading_model,
            format_duration(metadata.duration) if metadata.duration is not None else "-",
            format_frequency(metadata.base_freq) if metadata.base_freq is not None else "-",
            format_power(profile.power_data.package) if profile.power_data else "-"
        )
    return table


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """SoC Watch Analyzer - Per-core power, frequency and sleep-state analytics."""
    if ctx.invoked_subcommand is None:
        # Show help if no subcommand is provided
        pass


@app.command()
def detect(
    files: List[Path] = typer.Argument(..., help="SoC Watch CSV exports to classify")
):
    """Report the detected export format of each file."""
    _check_paths(files)
    for path in files:
        try:
            detection = detect_csv_format(read_trace_text(path))
        except ProfileLoadError as e:
            _fail(str(e))
        markers = ", ".join(detection.markers) or "none"
        console.print(
            f"[blue]{path.name}:[/blue] {detection.format} "
            f"(confidence {detection.confidence}) markers: {markers}"
        )


@app.command()
def analyze(
    paths: List[Path] = typer.Argument(..., help="CSV files or directories of CSV files"),
    out: Path = typer.Option("analysis.json", "--out", help="Output JSON file path"),
    sku: Optional[str] = typer.Option(None, "--sku", help="Add the parsed profiles to this SKU in the library"),
    library: Optional[Path] = typer.Option(None, "--library", help="Library JSON path (default: $SOCWATCH_LIBRARY)"),
    show_diagnostics: bool = typer.Option(False, "--show-diagnostics", help="Print per-section parse diagnostics"),
    explain: bool = typer.Option(False, "--explain", help="Generate LLM explanation output"),
    explain_out: Path = typer.Option("explanation.md", "--explain-out", help="Explanation Markdown output path"),
):
    """Parse SoC Watch exports and write analysis JSON."""
    _check_paths(paths)

    console.print(f"[blue]Analyzing:[/blue] {', '.join(str(path) for path in paths)}")
    console.print(f"[blue]Output file:[/blue] {out}")
    if sku:
        console.print(f"[blue]SKU:[/blue] {sku}")

    try:
        loaded = load_profiles(paths)
    except ProfileLoadError as e:
        console.print("[red]Error parsing files:[/red] Make sure they are Intel SoC Watch CSV files.")
        _fail(str(e))

    profiles = [profile for _, profile, _ in loaded]
    result = {
        "profiles": [profile.to_dict() for profile in profiles],
        "diagnostics": {path.name: diagnostics for path, _, diagnostics in loaded}
    }

    with open(out, "w") as f:
        json.dump(result, f, indent=2)

    console.print(_insight_table("Threading Insights", profiles))
    if show_diagnostics:
        for path, _, diagnostics in loaded:
            console.print(f"[blue]{path.name}[/blue]")
            for key, value in diagnostics.items():
                console.print(f"  {key}: {value}")

    if sku:
        lib = _open_library(library)
        try:
            lib.add_profiles(sku, profiles)
        except LibraryError as e:
            _fail(str(e))
        lib.save()
        console.print(f"[green]✓[/green] Added {len(profiles)} profile(s) to SKU '{sku.strip()}' in {lib.path}")

    console.print(f"[green]✓[/green] Analysis complete: {out}")

    if explain:
        try:
            _run_explain(result, None, explain_out)
        except RuntimeError as e:
            _fail(str(e))


def _run_explain(analysis_data: dict, baseline_data: dict | None, out: Path) -> None:
    llm_input, llm_output, markdown = run_explain(analysis_data, baseline_data)
    json_out = out.with_suffix(".json")
    input_out = out.with_name("llm_input.json")

    with open(json_out, "w") as f:
        json.dump(llm_output, f, indent=2)
    with open(input_out, "w") as f:
        json.dump(llm_input, f, indent=2)
    with open(out, "w") as f:
        f.write(markdown)

    console.print(f"[green]✓[/green] Explanation written to: {out}")
    console.print(f"[green]✓[/green] Explanation JSON written to: {json_out}")
    console.print(f"[green]✓[/green] LLM input written to: {input_out}")


@app.command()
def explain(
    analysis: Path = typer.Option(..., "--analysis", help="Path to analysis JSON"),
    baseline: Optional[Path] = typer.Option(None, "--baseline", help="Optional baseline analysis JSON"),
    out: Path = typer.Option("explanation.md", "--out", help="Output Markdown file path")
):
    """Generate an LLM explanation from analysis JSON."""
    for path in [analysis, baseline]:
        if path is None:
            continue
        if not path.exists():
            _fail(f"Analysis file not found: {path}")
        if not path.is_file():
            _fail(f"Path is not a file: {path}")

    with open(analysis, "r") as f:
        analysis_data = json.load(f)
    baseline_data = None
    if baseline is not None:
        with open(baseline, "r") as f:
            baseline_data = json.load(f)

    try:
        _run_explain(analysis_data, baseline_data, out)
    except RuntimeError as e:
        _fail(str(e))


@app.command()
def compare(
    games: List[str] = typer.Option(..., "--game", help="Game to compare as SKU/NAME (repeatable)"),
    library: Optional[Path] = typer.Option(None, "--library", help="Library JSON path (default: $SOCWATCH_LIBRARY)"),
    baseline_index: int = typer.Option(0, "--baseline-index", help="Column used as the delta baseline"),
    out: Optional[Path] = typer.Option(None, "--out", help="Optional comparison JSON output path"),
):
    """Compare threading insights across stored games (up to six)."""
    if len(games) > MAX_COMPARISONS:
        _fail(f"Maximum {MAX_COMPARISONS} games can be compared at once.")

    lib = _open_library(library)
    items = []
    for entry in games:
        sku_name, sep, game_name = entry.partition("/")
        if not sep:
            _fail(f"Expected SKU/NAME, got: {entry}")
        try:
            items.append((sku_name, lib.find_game(sku_name, game_name)))
        except LibraryError as e:
            _fail(str(e))

    try:
        comparison = build_comparison(items, baseline_index)
    except ValueError as e:
        _fail(str(e))

    table = Table(title=f"Comparison (baseline: {comparison['baseline']})")
    table.add_column("Metric")
    for column in comparison["columns"]:
        table.add_column(column["id"], justify="right")
    for row in comparison["rows"]:
        cells = []
        for value, delta in zip(row["values"], row["deltas"]):
            cell = value if value is not None else "-"
            if delta is not None and delta["delta"] != 0:
                cell = f"{cell} ({delta['delta']:+.1f})"
            cells.append(cell)
        table.add_row(row["label"], *cells)
    console.print(table)

    for sku_name, profile in items:
        model = profile.insights.threading_model
        console.print(f"[blue]{sku_name}/{profile.name}:[/blue] {threading_model_description(model)}")

    if out is not None:
        with open(out, "w") as f:
            json.dump(comparison, f, indent=2)
        console.print(f"[green]✓[/green] Comparison written to: {out}")


@library_app.command("list")
def library_list(
    library: Optional[Path] = typer.Option(None, "--library", help="Library JSON path (default: $SOCWATCH_LIBRARY)"),
    archived: bool = typer.Option(False, "--archived", help="Also list archived SKUs"),
):
    """List SKUs and their games."""
    lib = _open_library(library)
    skus = lib.skus + (lib.archived if archived else [])
    if not skus:
        console.print("No SKUs in library.")
        return
    for sku in skus:
        suffix = " [dim](archived)[/dim]" if sku.is_archived else ""
        console.print(f"[blue]{sku.name}[/blue]{suffix}")
        for index, game in enumerate(sku.games):
            console.print(f"  [{index}] {game.name} ({game.format_version}, {game.insights.threading_model})")


def _library_action(library: Optional[Path], action, message: str) -> None:
    lib = _open_library(library)
    try:
        action(lib)
    except LibraryError as e:
        _fail(str(e))
    lib.save()
    console.print(f"[green]✓[/green] {message}")


@library_app.command("rename")
def library_rename(
    old_name: str = typer.Argument(..., help="Current SKU name"),
    new_name: str = typer.Argument(..., help="New SKU name"),
    library: Optional[Path] = typer.Option(None, "--library", help="Library JSON path (default: $SOCWATCH_LIBRARY)"),
):
    """Rename a SKU."""
    _library_action(library, lambda lib: lib.rename_sku(old_name, new_name), f"Renamed '{old_name}' to '{new_name.strip()}'")


@library_app.command("archive")
def library_archive(
    name: str = typer.Argument(..., help="SKU name"),
    library: Optional[Path] = typer.Option(None, "--library", help="Library JSON path (default: $SOCWATCH_LIBRARY)"),
):
    """Move a SKU to the archive."""
    _library_action(library, lambda lib: lib.archive_sku(name), f"Archived '{name}'")


@library_app.command("unarchive")
def library_unarchive(
    name: str = typer.Argument(..., help="SKU name"),
    library: Optional[Path] = typer.Option(None, "--library", help="Library JSON path (default: $SOCWATCH_LIBRARY)"),
):
    """Restore an archived SKU."""
    _library_action(library, lambda lib: lib.unarchive_sku(name), f"Restored '{name}'")


@library_app.command("remove")
def library_remove(
    name: str = typer.Argument(..., help="SKU name"),
    library: Optional[Path] = typer.Option(None, "--library", help="Library JSON path (default: $SOCWATCH_LIBRARY)"),
):
    """Remove a SKU and all its games."""
    _library_action(library, lambda lib: lib.remove_sku(name), f"Removed '{name}'")


@library_app.command("remove-game")
def library_remove_game(
    name: str = typer.Argument(..., help="SKU name"),
    index: int = typer.Argument(..., help="Game index as shown by 'library list'"),
    library: Optional[Path] = typer.Option(None, "--library", help="Library JSON path (default: $SOCWATCH_LIBRARY)"),
):
    """Remove one game from a SKU; an emptied SKU is dropped."""
    _library_action(library, lambda lib: lib.remove_game(name, index), f"Removed game {index} from '{name}'")


if __name__ == "__main__":
    app()

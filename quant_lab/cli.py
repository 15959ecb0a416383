"""
cli.py - Rich Command Line Interface for quant_lab

A thin shell over the numerical core; every command parses options,
calls one library function and renders the result.

Usage:
    quant-lab --help
    quant-lab simulate assets.json --simulations 10000 --horizon 1 --seed 42
    quant-lab frontier assets.json --risk-free 0.02 --method qp
    quant-lab option --spot 100 --strike 100 --expiry 1 --rate 0.05 --vol 0.2
    quant-lab bond --face 1000 --coupon 0.05 --years 10 --ytm 0.05
    quant-lab risk returns.csv --risk-free 0.0001
    quant-lab version
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import numpy as np
import typer
from loguru import logger
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box

from .config import FrontierMethod
from .errors import QuantLabError

app = typer.Typer(
    name="quant-lab",
    help="Quantitative finance analytics: Monte Carlo, efficient frontier, options, bonds and risk",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def configure_logging(level: str) -> None:
    """Route loguru output to stderr at the requested level."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def fail(message: str) -> None:
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(1)


def load_return_pairs(path: Path) -> np.ndarray:
    """Load a two-column CSV (asset, market) with a header row."""
    if not path.exists():
        fail(f"File not found: {path}")
    try:
        data = np.loadtxt(path, delimiter=",", skiprows=1, ndmin=2)
    except ValueError as e:
        fail(f"Could not parse {path}: {e}")
    if data.shape[1] != 2:
        fail(f"Expected 2 columns (asset, market), got {data.shape[1]}")
    return data


def metrics_table(title: str, rows) -> Table:
    table = Table(title=title, box=box.ROUNDED, show_header=False, title_style="bold cyan")
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right", style="bold")
    for label, value in rows:
        table.add_row(label, value)
    return table


@app.callback()
def main_callback(
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Loguru level (DEBUG, INFO, WARNING...)"),
):
    configure_logging(log_level)


# =============================================================================
# COMMANDS
# =============================================================================

@app.command()
def simulate(
    assets_file: Path = typer.Argument(..., help="JSON list of assets"),
    simulations: int = typer.Option(10_000, "--simulations", "-n", help="Number of trials"),
    horizon: float = typer.Option(1.0, "--horizon", "-t", help="Time horizon in years"),
    initial_value: float = typer.Option(100_000.0, "--initial-value", "-v", help="Starting portfolio value"),
    confidence: float = typer.Option(0.95, "--confidence", "-c", help="VaR confidence level"),
    seed: Optional[int] = typer.Option(None, "--seed", "-s", help="Random seed for reproducibility"),
    correlation_file: Optional[Path] = typer.Option(None, "--correlation", help="JSON correlation matrix"),
    workers: int = typer.Option(1, "--workers", "-w", help="Worker threads"),
    keep_paths: bool = typer.Option(True, "--paths/--no-paths", help="Retain every simulated path"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save the result as JSON"),
):
    """
    Simulate portfolio value paths under Geometric Brownian Motion.

    Example:
        quant-lab simulate assets.json -n 50000 --horizon 2 --seed 7 --no-paths
    """
    from .io import load_assets, load_correlation, save_result
    from .simulation import run_monte_carlo
    from .types import SimulationConfig

    console.print(Panel.fit("🎲 [bold]Monte Carlo Simulation[/bold]", border_style="blue"))

    try:
        assets = load_assets(assets_file)
        correlation = load_correlation(correlation_file) if correlation_file else None
        config = SimulationConfig(simulations, horizon, initial_value, confidence)

        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"),
                      transient=True, console=console) as progress:
            progress.add_task(f"Simulating {simulations} trials...", total=None)
            result = run_monte_carlo(
                assets, config, correlation=correlation, seed=seed,
                keep_paths=keep_paths, n_workers=workers,
            )
    except (QuantLabError, FileNotFoundError) as e:
        fail(str(e))

    stats = result.statistics
    console.print(metrics_table("Final Value Distribution", [
        ("Mean", f"{stats.mean:,.2f}"),
        ("Median", f"{stats.median:,.2f}"),
        ("Std Dev", f"{stats.std:,.2f}"),
        ("Min / Max", f"{stats.min:,.2f} / {stats.max:,.2f}"),
        (f"VaR ({confidence:.0%})", f"{stats.value_at_risk:,.2f}"),
        (f"CVaR ({confidence:.0%})", f"{stats.conditional_var:,.2f}"),
        ("P(loss)", f"{stats.probability_of_loss:.2%}"),
    ]))

    pct = Table(title="Percentiles", box=box.SIMPLE)
    pct.add_column("Percentile", style="cyan")
    pct.add_column("Final Value", justify="right")
    for level, value in result.percentiles.items():
        pct.add_row(f"{level}%", f"{value:,.2f}")
    console.print(pct)

    if output:
        save_result(result, output)
        console.print(f"\n  💾 Saved to: [bold]{output}[/bold]")


@app.command()
def frontier(
    assets_file: Path = typer.Argument(..., help="JSON list of assets"),
    risk_free: float = typer.Option(0.02, "--risk-free", "-r", help="Risk-free rate"),
    min_weight: float = typer.Option(0.0, "--min-weight", help="Minimum weight per asset"),
    max_weight: float = typer.Option(1.0, "--max-weight", help="Maximum weight per asset"),
    method: FrontierMethod = typer.Option(FrontierMethod.HEURISTIC, "--method", "-m", help="Weight search"),
    correlation_file: Optional[Path] = typer.Option(None, "--correlation", help="JSON correlation matrix"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save the frontier as JSON"),
):
    """
    Trace the efficient frontier and report the maximum-Sharpe portfolio.

    Example:
        quant-lab frontier assets.json --max-weight 0.5 --method qp
    """
    from .io import load_assets, load_correlation, save_result
    from .optimization import efficient_frontier
    from .types import WeightConstraints

    console.print(Panel.fit("📈 [bold]Efficient Frontier[/bold]", border_style="blue"))

    try:
        assets = load_assets(assets_file)
        correlation = load_correlation(correlation_file) if correlation_file else None
        result = efficient_frontier(
            assets,
            risk_free_rate=risk_free,
            correlation=correlation,
            constraints=WeightConstraints(min_weight, max_weight),
            method=method,
        )
    except (QuantLabError, FileNotFoundError) as e:
        fail(str(e))

    best = result.optimal_portfolio
    console.print(f"  Frontier points: [cyan]{len(result)}[/cyan]\n")
    console.print(metrics_table("Maximum Sharpe Portfolio", [
        ("Expected Return", f"{best.expected_return:.2%}"),
        ("Volatility", f"{best.volatility:.2%}"),
        ("Sharpe Ratio", f"{best.sharpe_ratio:.4f}"),
    ]))

    holdings = Table(title="Weights", box=box.SIMPLE)
    holdings.add_column("Asset", style="cyan")
    holdings.add_column("Weight", justify="right")
    for asset, w in zip(assets, best.weights):
        holdings.add_row(asset.symbol, f"{w:.2%}")
    console.print(holdings)

    if output:
        save_result(result, output)
        console.print(f"\n  💾 Saved to: [bold]{output}[/bold]")


@app.command()
def option(
    spot: float = typer.Option(..., "--spot", help="Underlying price"),
    strike: float = typer.Option(..., "--strike", help="Strike price"),
    expiry: float = typer.Option(..., "--expiry", help="Time to expiry in years"),
    rate: float = typer.Option(..., "--rate", help="Risk-free rate"),
    vol: float = typer.Option(..., "--vol", help="Volatility"),
    dividend: float = typer.Option(0.0, "--dividend", help="Continuous dividend yield"),
):
    """
    Price a European call and put with Black-Scholes.

    Example:
        quant-lab option --spot 100 --strike 105 --expiry 0.5 --rate 0.04 --vol 0.25
    """
    from .options import black_scholes

    try:
        quote = black_scholes(spot, strike, expiry, rate, vol, dividend)
    except QuantLabError as e:
        fail(str(e))

    table = Table(title="Black-Scholes Quote", box=box.ROUNDED, title_style="bold cyan")
    table.add_column("", style="dim")
    table.add_column("Call", justify="right")
    table.add_column("Put", justify="right")
    table.add_row("Price", f"{quote.call_price:.4f}", f"{quote.put_price:.4f}")
    for greek in ("delta", "gamma", "theta", "vega", "rho"):
        table.add_row(
            greek.capitalize(),
            f"{getattr(quote.greeks, greek):.4f}",
            f"{getattr(quote.put_greeks, greek):.4f}",
        )
    console.print(table)


@app.command()
def bond(
    face: float = typer.Option(1000.0, "--face", help="Face value"),
    coupon: float = typer.Option(..., "--coupon", help="Annual coupon rate"),
    years: float = typer.Option(..., "--years", help="Years to maturity"),
    ytm: float = typer.Option(..., "--ytm", help="Yield to maturity"),
    frequency: int = typer.Option(2, "--frequency", "-f", help="Coupons per year"),
):
    """
    Price a fixed-coupon bond with duration and convexity.

    Example:
        quant-lab bond --face 1000 --coupon 0.04 --years 7 --ytm 0.05
    """
    from .bonds import price_bond

    try:
        quote = price_bond(face, coupon, years, ytm, frequency)
    except QuantLabError as e:
        fail(str(e))

    console.print(metrics_table("Bond Analytics", [
        ("Price", f"{quote.price:,.4f}"),
        ("Yield to Maturity", f"{quote.yield_to_maturity:.4%}"),
        ("Macaulay Duration", f"{quote.macaulay_duration:.4f}"),
        ("Modified Duration", f"{quote.modified_duration:.4f}"),
        ("Convexity", f"{quote.convexity:.4f}"),
    ]))


@app.command()
def risk(
    returns_file: Path = typer.Argument(..., help="CSV with header and columns: asset, market"),
    risk_free: float = typer.Option(0.0, "--risk-free", "-r", help="Risk-free rate per period"),
    confidence: float = typer.Option(0.95, "--confidence", "-c", help="VaR confidence level"),
):
    """
    Compute beta, alpha and risk ratios of an asset against a market series.

    Example:
        quant-lab risk daily_returns.csv --risk-free 0.0001
    """
    from .risk import calculate_risk_metrics

    data = load_return_pairs(returns_file)

    try:
        metrics = calculate_risk_metrics(data[:, 0], data[:, 1], risk_free, confidence)
    except QuantLabError as e:
        fail(str(e))

    console.print(metrics_table("Risk Metrics", [
        ("Beta", f"{metrics.beta:.4f}"),
        ("Alpha", f"{metrics.alpha:.6f}"),
        ("Correlation", f"{metrics.correlation:.4f}"),
        ("Tracking Error", f"{metrics.tracking_error:.6f}"),
        ("Information Ratio", f"{metrics.information_ratio:.4f}"),
        ("Treynor Ratio", f"{metrics.treynor_ratio:.6f}"),
        ("Sharpe Ratio", f"{metrics.sharpe_ratio:.4f}"),
        ("Sortino Ratio", f"{metrics.sortino_ratio:.4f}"),
        ("M² Measure", f"{metrics.m2_measure:.6f}"),
        ("Max Drawdown", f"{metrics.max_drawdown:.2%}"),
        (f"VaR ({confidence:.0%})", f"{metrics.value_at_risk:.4%}"),
        (f"CVaR ({confidence:.0%})", f"{metrics.conditional_var:.4%}"),
    ]))


@app.command()
def version():
    """Show version information."""
    from . import __version__

    console.print(Panel(
        f"[bold cyan]quant_lab[/bold cyan] v{__version__}\n\n"
        "Monte Carlo simulation, efficient frontier, Black-Scholes,\n"
        "bond analytics and portfolio risk metrics.",
        border_style="cyan"
    ))


# =============================================================================
# ENTRY POINT
# =============================================================================

def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

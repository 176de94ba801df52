"""CLI interface using Typer."""

from __future__ import annotations

import json
import sqlite3
from datetime import date
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mealcoach.config import get_settings
from mealcoach.db import get_db
from mealcoach.logging_utils import init_logging
from mealcoach.tracking.models import (
    VALID_GOALS,
    CheckInResult,
    Macros,
    MealStatus,
    PlannedMealEntry,
    UserProfile,
)
from mealcoach.tracking.queries import (
    MacroLogQueries,
    MealPlanQueries,
    RecipeQueries,
    UserQueries,
    WeightQueries,
)

app = typer.Typer(
    help="Personal nutrition coaching with weekly TDEE check-ins",
    no_args_is_help=True,
)
console = Console()

user_app = typer.Typer(help="Manage your goal profile and macro targets")
weight_app = typer.Typer(help="Log and list daily weight")
macros_app = typer.Typer(help="Log manual intake and view daily totals")
recipes_app = typer.Typer(help="Manage the recipe catalog")
meals_app = typer.Typer(help="Plan meals and mark them eaten")
checkin_app = typer.Typer(help="Weekly TDEE check-in")
demo_app = typer.Typer(help="Sample data for trying the check-in")

app.add_typer(user_app, name="user")
app.add_typer(weight_app, name="weight")
app.add_typer(macros_app, name="macros")
app.add_typer(recipes_app, name="recipes")
app.add_typer(meals_app, name="meals")
app.add_typer(checkin_app, name="checkin")
app.add_typer(demo_app, name="demo")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Configure logging and make sure the database schema exists."""
    settings = get_settings()
    init_logging("DEBUG" if verbose else settings.logging.level)
    get_db().initialize_schema()


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict) -> None:
    """Print a JSON response to stdout."""
    print(json.dumps(response, indent=2))


def parse_date(date_str: Optional[str]) -> date:
    """Parse YYYY-MM-DD, defaulting to today."""
    if not date_str:
        return date.today()
    try:
        return date.fromisoformat(date_str)
    except ValueError:
        console.print(f"[red]Invalid date '{date_str}'. Use YYYY-MM-DD.[/red]")
        raise typer.Exit(1)


def require_user(
    conn: sqlite3.Connection,
    user_id: Optional[int],
    command: str,
    json_output: bool,
) -> UserProfile:
    """Load the requested (or default) user, exiting with an error if missing."""
    if user_id is not None:
        profile = UserQueries.get_user(conn, user_id)
    else:
        profile = UserQueries.get_default_user(conn)

    if profile is None:
        if json_output:
            output_json({
                "success": False,
                "command": command,
                "errors": ["No user profile found"],
                "suggestions": ["Create a profile first: mealcoach user create --goal fatLoss"],
            })
        else:
            console.print("[red]No user profile found. Create one first.[/red]")
        raise typer.Exit(1)
    return profile


def validate_goal(goal: str) -> str:
    if goal not in VALID_GOALS:
        console.print(f"[red]Goal must be one of: {', '.join(VALID_GOALS)}[/red]")
        raise typer.Exit(1)
    return goal


def macros_from_options(calories: float, protein: float, carbs: float, fat: float) -> Macros:
    try:
        return Macros(calories=calories, protein=protein, carbs=carbs, fat=fat)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


# ============================================================================
# User Commands
# ============================================================================


@user_app.command("create")
def user_create(
    name: Optional[str] = typer.Option(None, "--name", help="Display name"),
    goal: str = typer.Option("notSpecified", "--goal", "-g", help=f"One of {', '.join(VALID_GOALS)}"),
    rate: float = typer.Option(0.0, "--rate", help="Target weekly weight change in kg (e.g. -0.5)"),
    calories: Optional[float] = typer.Option(None, "--calories", help="Daily calorie target"),
    protein: float = typer.Option(0.0, "--protein", help="Daily protein target (g)"),
    carbs: Optional[float] = typer.Option(None, "--carbs", help="Daily carb target (g)"),
    fat: float = typer.Option(0.0, "--fat", help="Daily fat target (g)"),
    tdee: Optional[float] = typer.Option(None, "--tdee", help="Starting TDEE estimate (kcal/day)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Create a goal profile."""
    validate_goal(goal)
    profile = UserProfile(
        user_id=None,
        name=name,
        primary_goal=goal,
        target_weight_change_rate_kg=rate,
        calorie_target=calories,
        protein_target=protein,
        carbs_target=carbs,
        fat_target=fat,
        tdee=tdee,
    )
    try:
        profile.goal_profile()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    with get_db().get_connection() as conn:
        user_id = UserQueries.create_user(conn, profile)

    if json_output:
        output_json({
            "success": True,
            "command": "user create",
            "data": {"user_id": user_id, "primary_goal": goal},
            "human_summary": f"Created user {user_id}",
        })
    else:
        console.print(f"[green]Created user {user_id}[/green] (goal: {goal}, {rate:+.2f} kg/week)")


@user_app.command("show")
def user_show(
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID (default: first user)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the goal profile, targets and last check-in."""
    with get_db().get_connection() as conn:
        profile = require_user(conn, user_id, "user show", json_output)

    last = profile.last_check_in_date.isoformat() if profile.last_check_in_date else None
    if json_output:
        output_json({
            "success": True,
            "command": "user show",
            "data": {
                "user_id": profile.user_id,
                "name": profile.name,
                "primary_goal": profile.primary_goal,
                "target_weight_change_rate_kg": profile.target_weight_change_rate_kg,
                "calorie_target": profile.calorie_target,
                "protein_target": profile.protein_target,
                "carbs_target": profile.carbs_target,
                "fat_target": profile.fat_target,
                "tdee": profile.tdee,
                "last_check_in_date": last,
            },
        })
        return

    table = Table(title=f"User {profile.user_id}" + (f" ({profile.name})" if profile.name else ""))
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Goal", profile.primary_goal)
    table.add_row("Target rate", f"{profile.target_weight_change_rate_kg:+.2f} kg/week")
    table.add_row("Calories", f"{profile.calorie_target:.0f}" if profile.calorie_target is not None else "-")
    table.add_row("Protein", f"{profile.protein_target:.0f} g")
    table.add_row("Carbs", f"{profile.carbs_target:.0f} g" if profile.carbs_target is not None else "-")
    table.add_row("Fat", f"{profile.fat_target:.0f} g")
    table.add_row("TDEE", f"{profile.tdee:.0f} kcal/day" if profile.tdee is not None else "-")
    table.add_row("Last check-in", last or "never")
    console.print(table)


@user_app.command("targets")
def user_targets(
    calories: float = typer.Option(..., "--calories", help="Daily calorie target"),
    protein: float = typer.Option(..., "--protein", help="Daily protein target (g)"),
    carbs: float = typer.Option(..., "--carbs", help="Daily carb target (g)"),
    fat: float = typer.Option(..., "--fat", help="Daily fat target (g)"),
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
) -> None:
    """Set daily macro targets."""
    targets = macros_from_options(calories, protein, carbs, fat)
    with get_db().get_connection() as conn:
        profile = require_user(conn, user_id, "user targets", False)
        UserQueries.set_macro_targets(conn, profile.user_id, targets)  # type: ignore
    console.print(
        f"[green]Targets set:[/green] {calories:.0f} kcal, P {protein:.0f}g / C {carbs:.0f}g / F {fat:.0f}g"
    )


@user_app.command("goal")
def user_goal(
    goal: str = typer.Argument(..., help=f"One of {', '.join(VALID_GOALS)}"),
    rate: float = typer.Option(0.0, "--rate", help="Target weekly weight change in kg"),
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
) -> None:
    """Change the primary goal and weekly target rate."""
    validate_goal(goal)
    with get_db().get_connection() as conn:
        profile = require_user(conn, user_id, "user goal", False)
        UserQueries.set_goal(conn, profile.user_id, goal, rate)  # type: ignore
    console.print(f"[green]Goal set:[/green] {goal} ({rate:+.2f} kg/week)")


# ============================================================================
# Weight Commands
# ============================================================================


@weight_app.command("add")
def weight_add(
    weight: float = typer.Argument(..., help="Weight in kg"),
    date_str: Optional[str] = typer.Option(None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Optional notes"),
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Log a scale weight."""
    measured_at = parse_date(date_str)
    if weight <= 0:
        console.print("[red]Weight must be positive[/red]")
        raise typer.Exit(1)

    with get_db().get_connection() as conn:
        profile = require_user(conn, user_id, "weight add", json_output)
        WeightQueries.add_weight(conn, profile.user_id, weight, measured_at, notes)  # type: ignore

    if json_output:
        output_json({
            "success": True,
            "command": "weight add",
            "data": {"weight_kg": weight, "measured_at": measured_at.isoformat()},
            "human_summary": f"Logged {weight:.1f} kg",
        })
    else:
        console.print(f"[green]Logged:[/green] {weight:.1f} kg on {measured_at}")


@weight_app.command("list")
def weight_list(
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List weight history with EMA trend."""
    from mealcoach.tracking.ema import EMATrendSmoother

    with get_db().get_connection() as conn:
        profile = require_user(conn, user_id, "weight list", json_output)
        history = WeightQueries.get_weight_history(conn, profile.user_id)  # type: ignore

    smoothed = EMATrendSmoother().smooth(history)

    if json_output:
        output_json({
            "success": True,
            "command": "weight list",
            "data": {
                "entries": [
                    {
                        "date": e.date.isoformat(),
                        "weight_kg": e.weight_kg,
                        "trend_kg": round(e.trend_weight_kg, 2) if e.trend_weight_kg is not None else None,
                    }
                    for e in smoothed
                ]
            },
            "human_summary": f"{len(smoothed)} entries",
        })
        return

    if not smoothed:
        console.print("No weight entries found")
        return

    table = Table(title="Weight History")
    table.add_column("Date", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Trend", justify="right", style="blue")
    for entry in smoothed:
        trend = f"{entry.trend_weight_kg:.2f}" if entry.trend_weight_kg is not None else "-"
        table.add_row(entry.date.isoformat(), f"{entry.weight_kg:.1f}", trend)
    console.print(table)


# ============================================================================
# Macro Logging Commands
# ============================================================================


@macros_app.command("log")
def macros_log(
    calories: float = typer.Argument(..., help="Calories eaten"),
    protein: float = typer.Option(0.0, "--protein", "-p", help="Protein (g)"),
    carbs: float = typer.Option(0.0, "--carbs", "-c", help="Carbs (g)"),
    fat: float = typer.Option(0.0, "--fat", "-f", help="Fat (g)"),
    date_str: Optional[str] = typer.Option(None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"),
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
) -> None:
    """Log manual intake for a day (overrides planned meals)."""
    log_date = parse_date(date_str)
    macros = macros_from_options(calories, protein, carbs, fat)
    with get_db().get_connection() as conn:
        profile = require_user(conn, user_id, "macros log", False)
        MacroLogQueries.log_macros(conn, profile.user_id, log_date, macros)  # type: ignore
    console.print(f"[green]Logged:[/green] {calories:.0f} kcal for {log_date}")


@macros_app.command("show")
def macros_show(
    date_str: Optional[str] = typer.Option(None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"),
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show consumed vs planned macros for a day."""
    from mealcoach.tracking.consumption import ConsumptionAggregator
    from mealcoach.tracking.stores import SqliteLogStore, SqliteRecipeCatalog

    day = parse_date(date_str)
    db = get_db()
    with db.get_connection() as conn:
        profile = require_user(conn, user_id, "macros show", json_output)

    aggregator = ConsumptionAggregator(SqliteLogStore(db), SqliteRecipeCatalog(db))
    consumed = aggregator.consumed_macros(profile.user_id, day)  # type: ignore
    planned = aggregator.planned_macros(profile.user_id, day)  # type: ignore

    if json_output:
        output_json({
            "success": True,
            "command": "macros show",
            "data": {
                "date": day.isoformat(),
                "consumed": consumed.to_dict(),
                "planned": planned.to_dict(),
            },
        })
        return

    table = Table(title=f"Macros for {day}")
    table.add_column("", style="cyan")
    table.add_column("Calories", justify="right")
    table.add_column("Protein", justify="right")
    table.add_column("Carbs", justify="right")
    table.add_column("Fat", justify="right")
    for label, m in (("Consumed", consumed), ("Planned", planned)):
        table.add_row(label, f"{m.calories:.0f}", f"{m.protein:.0f}g", f"{m.carbs:.0f}g", f"{m.fat:.0f}g")
    console.print(table)


# ============================================================================
# Recipe and Meal Plan Commands
# ============================================================================


@recipes_app.command("add")
def recipes_add(
    name: str = typer.Argument(..., help="Recipe name"),
    calories: float = typer.Option(..., "--calories", help="Calories per serving"),
    protein: float = typer.Option(..., "--protein", help="Protein per serving (g)"),
    carbs: float = typer.Option(..., "--carbs", help="Carbs per serving (g)"),
    fat: float = typer.Option(..., "--fat", help="Fat per serving (g)"),
) -> None:
    """Add a recipe with per-serving macros."""
    macros = macros_from_options(calories, protein, carbs, fat)
    try:
        with get_db().get_connection() as conn:
            recipe_id = RecipeQueries.add_recipe(conn, name, macros)
    except sqlite3.IntegrityError:
        console.print(f"[red]Recipe '{name}' already exists[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Added recipe {recipe_id}:[/green] {name}")


@recipes_app.command("list")
def recipes_list(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List recipes."""
    with get_db().get_connection() as conn:
        recipes = RecipeQueries.list_recipes(conn)

    if json_output:
        output_json({
            "success": True,
            "command": "recipes list",
            "data": {
                "recipes": [
                    {"recipe_id": rid, "name": name, "per_serving": m.to_dict()}
                    for rid, name, m in recipes
                ]
            },
        })
        return

    table = Table(title="Recipes")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("kcal", justify="right")
    table.add_column("P", justify="right")
    table.add_column("C", justify="right")
    table.add_column("F", justify="right")
    for rid, name, m in recipes:
        table.add_row(str(rid), name, f"{m.calories:.0f}", f"{m.protein:.0f}", f"{m.carbs:.0f}", f"{m.fat:.0f}")
    console.print(table)


@meals_app.command("add")
def meals_add(
    recipe_id: int = typer.Argument(..., help="Recipe ID"),
    servings: float = typer.Option(1.0, "--servings", "-s", help="Number of servings"),
    date_str: Optional[str] = typer.Option(None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"),
    eaten: bool = typer.Option(False, "--eaten", help="Mark as already eaten"),
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
) -> None:
    """Plan a meal for a day."""
    meal_date = parse_date(date_str)
    try:
        meal = PlannedMealEntry(
            date=meal_date,
            recipe_id=recipe_id,
            servings=servings,
            status=MealStatus.EATEN if eaten else MealStatus.PLANNED,
        )
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    with get_db().get_connection() as conn:
        profile = require_user(conn, user_id, "meals add", False)
        if RecipeQueries.get_macros_per_serving(conn, recipe_id) is None:
            console.print(f"[red]Recipe {recipe_id} not found[/red]")
            raise typer.Exit(1)
        meal_id = MealPlanQueries.add_meal(conn, profile.user_id, meal)  # type: ignore

    console.print(f"[green]Planned meal {meal_id}[/green] on {meal_date} ({meal.status.value})")


@meals_app.command("eat")
def meals_eat(
    meal_id: int = typer.Argument(..., help="Planned meal ID"),
    undo: bool = typer.Option(False, "--undo", help="Mark as planned again"),
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
) -> None:
    """Mark a planned meal as eaten."""
    status = MealStatus.PLANNED if undo else MealStatus.EATEN
    with get_db().get_connection() as conn:
        profile = require_user(conn, user_id, "meals eat", False)
        updated = MealPlanQueries.set_status(conn, profile.user_id, meal_id, status)  # type: ignore

    if not updated:
        console.print(f"[red]Meal {meal_id} not found[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Meal {meal_id}[/green] marked {status.value}")


# ============================================================================
# Check-in Commands
# ============================================================================


def build_weekly_checkin():
    """Wire the check-in to the sqlite stores, EMA smoother and configured recommender."""
    from mealcoach.coach.recommender import FormulaRecommender, RetryingRecommender
    from mealcoach.tracking.checkin import WeeklyCheckIn
    from mealcoach.tracking.ema import EMATrendSmoother
    from mealcoach.tracking.stores import (
        SqliteLogStore,
        SqliteProfileStore,
        SqliteRecipeCatalog,
    )

    settings = get_settings()
    db = get_db()
    recommender = RetryingRecommender(
        FormulaRecommender(),
        timeout_seconds=settings.recommender.timeout_seconds,
        max_retries=settings.recommender.max_retries,
        base_delay_seconds=settings.recommender.base_delay_seconds,
        jitter_factor=settings.recommender.jitter_factor,
    )
    profiles = SqliteProfileStore(db)
    return WeeklyCheckIn(
        log_store=SqliteLogStore(db),
        trend_smoother=EMATrendSmoother(),
        recipe_catalog=SqliteRecipeCatalog(db),
        recommender=recommender,
        profile_source=profiles,
        profile_store=profiles,
        max_workers=settings.checkin.max_workers,
    )


def checkin_response(result: CheckInResult) -> dict:
    """JSON envelope for a check-in result."""
    response: dict = {
        "success": result.success,
        "command": "checkin run",
        "data": {},
        "errors": [] if result.success else [result.message],
        "warnings": list(result.notes),
        "human_summary": result.message,
    }
    if result.failure is not None:
        response["data"]["failure"] = result.failure.value
    if result.progress is not None:
        response["data"]["progress"] = result.progress
        response["suggestions"] = ["Keep logging weight and food daily, then run the check-in again"]
    if result.estimate is not None:
        est = result.estimate
        response["data"].update({
            "tdee": est.new_tdee,
            "previous_tdee": result.previous_tdee,
            "average_daily_calories": round(est.average_daily_calories, 0),
            "weekly_weight_change_kg": round(est.actual_weekly_weight_change_kg, 3),
            "window_start": est.window_start.isoformat(),
            "window_end": est.window_end.isoformat(),
            "duration_days": est.duration_days,
            "days_with_calorie_data": est.days_with_calorie_data,
        })
    if result.recommendation is not None:
        response["data"]["recommendation"] = {
            "new_macro_targets": result.recommendation.new_macro_targets.to_dict(),
            "coaching_summary": result.recommendation.coaching_summary,
        }
    return response


@checkin_app.command("run")
def checkin_run(
    apply: bool = typer.Option(False, "--apply", help="Apply the recommended targets after a successful check-in"),
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Recalibrate TDEE from the last 21 days and recommend new macro targets."""
    db = get_db()
    with db.get_connection() as conn:
        profile = require_user(conn, user_id, "checkin run", json_output)

    result = build_weekly_checkin().run(profile.user_id)  # type: ignore

    if result.success and apply and result.recommendation is not None:
        with db.get_connection() as conn:
            UserQueries.set_macro_targets(
                conn, profile.user_id, result.recommendation.new_macro_targets  # type: ignore
            )

    if json_output:
        response = checkin_response(result)
        response["data"]["applied"] = bool(result.success and apply)
        output_json(response)
        if not result.success:
            raise typer.Exit(1)
        return

    if not result.success:
        console.print(Panel(result.message, title="Check-in", border_style="red"))
        if result.progress:
            console.print(f"[yellow]Progress:[/yellow] {result.progress}")
        raise typer.Exit(1)

    est = result.estimate
    console.print(f"[green]{result.message}[/green]")
    if est is not None:
        if result.previous_tdee is not None:
            console.print(f"  Previous TDEE: {result.previous_tdee:.0f} kcal/day")
        console.print(f"  Window: {est.window_start} to {est.window_end} ({est.duration_days} days)")
        console.print(
            f"  Average intake: {est.average_daily_calories:.0f} kcal/day "
            f"over {est.days_with_calorie_data} logged days"
        )
        console.print(f"  Trend change: {est.actual_weekly_weight_change_kg:+.2f} kg/week")

    if result.recommendation is not None:
        targets = result.recommendation.new_macro_targets
        table = Table(title="Recommended Targets")
        table.add_column("Calories", justify="right")
        table.add_column("Protein", justify="right")
        table.add_column("Carbs", justify="right")
        table.add_column("Fat", justify="right")
        table.add_row(
            f"{targets.calories:.0f}", f"{targets.protein:.0f}g", f"{targets.carbs:.0f}g", f"{targets.fat:.0f}g"
        )
        console.print(table)
        console.print(Panel(result.recommendation.coaching_summary, title="Coach", border_style="blue"))

    for note in result.notes:
        console.print(f"[yellow]Note:[/yellow] {note}")

    if apply:
        console.print("[green]Recommended targets applied.[/green]")
    else:
        console.print("[dim]Run with --apply to use these targets.[/dim]")


# ============================================================================
# Demo Data
# ============================================================================


@demo_app.command("seed")
def demo_seed(
    weight: float = typer.Option(80.0, "--weight", help="Starting weight (kg)"),
    tdee: float = typer.Option(2500.0, "--tdee", help="TDEE the data should imply"),
    goal: str = typer.Option("fatLoss", "--goal", "-g", help=f"One of {', '.join(VALID_GOALS)}"),
    days: int = typer.Option(21, "--days", help="Days of logs ending today"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed"),
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
) -> None:
    """Fill the log with realistic weight and intake data."""
    from mealcoach.tracking.sample_data import generate_sample_logs

    validate_goal(goal)
    weights, macro_logs = generate_sample_logs(weight, tdee, goal, days=days, seed=seed)

    with get_db().get_connection() as conn:
        profile = require_user(conn, user_id, "demo seed", False)
        for entry in weights:
            WeightQueries.add_weight(conn, profile.user_id, entry.weight_kg, entry.date, "sample")  # type: ignore
        for log in macro_logs:
            MacroLogQueries.log_macros(conn, profile.user_id, log.date, log.macros)  # type: ignore

    console.print(f"[green]Seeded {len(weights)} days[/green] of {goal} sample data")


if __name__ == "__main__":
    app()

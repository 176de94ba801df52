"""Tests for CLI commands."""

from __future__ import annotations

import json
from datetime import date

import pytest
from typer.testing import CliRunner

from mealcoach.cli import app
from mealcoach.config import settings as settings_module
from mealcoach.config.settings import Settings
from mealcoach.db import set_db
from mealcoach.tracking.queries import UserQueries

runner = CliRunner()


@pytest.fixture
def cli_db(temp_db, monkeypatch):
    """Point the CLI at a temporary database with default settings."""
    monkeypatch.setattr(settings_module, "_settings", Settings())
    set_db(temp_db)
    yield temp_db
    set_db(None)


def create_user(*extra: str) -> None:
    result = runner.invoke(
        app,
        ["user", "create", "--goal", "fatLoss", "--rate", "-0.5", "--protein", "150", "--fat", "60", *extra],
    )
    assert result.exit_code == 0, result.output


class TestMainCommands:
    """Tests for main CLI commands."""

    def test_help(self):
        """Test that --help works."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "check-in" in result.output.lower()

    @pytest.mark.parametrize("group", ["user", "weight", "macros", "recipes", "meals", "checkin", "demo"])
    def test_group_help(self, group, cli_db):
        """Test that every command group has help."""
        result = runner.invoke(app, [group, "--help"])
        assert result.exit_code == 0

    def test_weight_add_requires_value(self, cli_db):
        result = runner.invoke(app, ["weight", "add"])
        assert result.exit_code != 0


class TestUserCommands:
    """Tests for user subcommands."""

    def test_create_and_show(self, cli_db):
        create_user("--name", "Sam", "--tdee", "2400")

        result = runner.invoke(app, ["user", "show", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)["data"]
        assert data["name"] == "Sam"
        assert data["primary_goal"] == "fatLoss"
        assert data["tdee"] == 2400
        assert data["last_check_in_date"] is None

    def test_invalid_goal(self, cli_db):
        result = runner.invoke(app, ["user", "create", "--goal", "shred"])
        assert result.exit_code == 1

    def test_show_without_user(self, cli_db):
        result = runner.invoke(app, ["user", "show", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["success"] is False

    def test_explicit_user_zero_is_not_default(self, cli_db):
        """--user 0 looks up id 0 rather than falling back to the first user."""
        create_user()
        result = runner.invoke(app, ["user", "show", "--user", "0", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["success"] is False

    def test_targets(self, cli_db):
        create_user()
        result = runner.invoke(
            app, ["user", "targets", "--calories", "2100", "--protein", "160", "--carbs", "200", "--fat", "65"]
        )
        assert result.exit_code == 0

        with cli_db.get_connection() as conn:
            profile = UserQueries.get_default_user(conn)
        assert profile.calorie_target == 2100
        assert profile.fat_target == 65


class TestLoggingCommands:
    """Tests for weight, macro and meal logging."""

    def test_weight_add_and_list(self, cli_db):
        create_user()
        for day, kg in [("2024-03-01", "80.2"), ("2024-03-02", "80.0")]:
            result = runner.invoke(app, ["weight", "add", kg, "--date", day])
            assert result.exit_code == 0

        result = runner.invoke(app, ["weight", "list", "--json"])

        entries = json.loads(result.stdout)["data"]["entries"]
        assert [e["date"] for e in entries] == ["2024-03-01", "2024-03-02"]
        assert entries[0]["trend_kg"] is None

    def test_bad_date(self, cli_db):
        create_user()
        result = runner.invoke(app, ["weight", "add", "80", "--date", "03/01/2024"])
        assert result.exit_code == 1

    def test_manual_log_overrides_eaten_meals(self, cli_db):
        create_user()
        runner.invoke(
            app, ["recipes", "add", "Oats", "--calories", "300", "--protein", "10", "--carbs", "54", "--fat", "5"]
        )
        result = runner.invoke(app, ["meals", "add", "1", "--servings", "2", "--date", "2024-03-01", "--eaten"])
        assert result.exit_code == 0

        shown = runner.invoke(app, ["macros", "show", "--date", "2024-03-01", "--json"])
        data = json.loads(shown.stdout)["data"]
        assert data["consumed"]["calories"] == 600
        assert data["planned"]["calories"] == 600

        runner.invoke(app, ["macros", "log", "1800", "--protein", "120", "--date", "2024-03-01"])
        shown = runner.invoke(app, ["macros", "show", "--date", "2024-03-01", "--json"])
        data = json.loads(shown.stdout)["data"]
        assert data["consumed"]["calories"] == 1800
        assert data["planned"]["calories"] == 600

    def test_meal_for_unknown_recipe(self, cli_db):
        create_user()
        result = runner.invoke(app, ["meals", "add", "42"])
        assert result.exit_code == 1

    def test_eat_unknown_meal(self, cli_db):
        create_user()
        result = runner.invoke(app, ["meals", "eat", "42"])
        assert result.exit_code == 1


class TestCheckinCommands:
    """Tests for checkin run."""

    def test_insufficient_history(self, cli_db):
        create_user()
        result = runner.invoke(app, ["checkin", "run", "--json"])

        assert result.exit_code == 1
        response = json.loads(result.stdout)
        assert response["success"] is False
        assert response["data"]["failure"] == "data_insufficiency"
        assert response["data"]["progress"] == "0 of 14 days"

    def test_seeded_checkin_updates_tdee(self, cli_db):
        create_user("--tdee", "2400", "--calories", "2000", "--carbs", "200")
        seeded = runner.invoke(app, ["demo", "seed", "--seed", "42"])
        assert seeded.exit_code == 0, seeded.output

        result = runner.invoke(app, ["checkin", "run", "--json"])

        assert result.exit_code == 0, result.output
        response = json.loads(result.stdout)
        assert response["success"] is True
        data = response["data"]
        assert data["tdee"] > 0
        assert data["previous_tdee"] == 2400
        assert data["applied"] is False

        with cli_db.get_connection() as conn:
            profile = UserQueries.get_default_user(conn)
        assert profile.tdee == data["tdee"]
        assert profile.last_check_in_date == date.today()
        # Targets are untouched without --apply
        assert profile.calorie_target == 2000

    def test_apply_sets_targets(self, cli_db):
        create_user("--calories", "2000")
        runner.invoke(app, ["demo", "seed", "--seed", "42"])

        result = runner.invoke(app, ["checkin", "run", "--apply", "--json"])

        assert result.exit_code == 0, result.output
        targets = json.loads(result.stdout)["data"]["recommendation"]["new_macro_targets"]
        with cli_db.get_connection() as conn:
            profile = UserQueries.get_default_user(conn)
        assert profile.calorie_target == targets["calories"]
        assert profile.protein_target == 150
        assert profile.fat_target == 60

    def test_human_output(self, cli_db):
        create_user()
        runner.invoke(app, ["demo", "seed", "--seed", "1"])

        result = runner.invoke(app, ["checkin", "run"])

        assert result.exit_code == 0, result.output
        assert "TDEE has been updated" in result.output

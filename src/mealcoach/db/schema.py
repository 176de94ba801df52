"""SQLite database schema definitions."""

SCHEMA_SQL = """
-- Goal profile and active macro targets
CREATE TABLE IF NOT EXISTS user_profiles (
    user_id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT,
    primary_goal TEXT NOT NULL DEFAULT 'notSpecified',
    target_weight_change_rate_kg REAL NOT NULL DEFAULT 0,
    calorie_target REAL,
    protein_target REAL NOT NULL DEFAULT 0,
    carbs_target REAL,
    fat_target REAL NOT NULL DEFAULT 0,
    tdee REAL,
    last_check_in_date DATE,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Daily scale weight (trend is derived, never stored)
CREATE TABLE IF NOT EXISTS weight_log (
    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    weight_kg REAL NOT NULL,
    measured_at DATE NOT NULL,
    notes TEXT,
    UNIQUE (user_id, measured_at),
    FOREIGN KEY (user_id) REFERENCES user_profiles(user_id)
);

CREATE INDEX IF NOT EXISTS idx_weight_log_user_date ON weight_log(user_id, measured_at);

-- Manual intake override per day
CREATE TABLE IF NOT EXISTS manual_macros_log (
    user_id INTEGER NOT NULL,
    date DATE NOT NULL,
    calories REAL NOT NULL,
    protein REAL NOT NULL DEFAULT 0,
    carbs REAL NOT NULL DEFAULT 0,
    fat REAL NOT NULL DEFAULT 0,
    PRIMARY KEY (user_id, date),
    FOREIGN KEY (user_id) REFERENCES user_profiles(user_id)
);

-- Recipe catalog (macros per serving)
CREATE TABLE IF NOT EXISTS recipes (
    recipe_id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    calories REAL NOT NULL,
    protein REAL NOT NULL,
    carbs REAL NOT NULL,
    fat REAL NOT NULL
);

-- Planned meals and whether they were eaten
CREATE TABLE IF NOT EXISTS planned_meals (
    meal_id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    date DATE NOT NULL,
    recipe_id INTEGER NOT NULL,
    servings REAL NOT NULL CHECK (servings > 0),
    status TEXT NOT NULL DEFAULT 'planned' CHECK (status IN ('planned', 'eaten')),
    FOREIGN KEY (user_id) REFERENCES user_profiles(user_id),
    FOREIGN KEY (recipe_id) REFERENCES recipes(recipe_id)
);

CREATE INDEX IF NOT EXISTS idx_planned_meals_user_date ON planned_meals(user_id, date);
"""


def get_schema_sql() -> str:
    """Return the complete schema SQL."""
    return SCHEMA_SQL

import os


def env_bool(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "ensemble-dev-secret"

    # DB settings
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "ensemble_workspace")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_DIR = os.environ.get("LOG_DIR", "logs")

    # Scheduling / attendance rules
    UPCOMING_WINDOW = int(os.environ.get("UPCOMING_WINDOW", "10"))
    REQUIRE_TEAM_ADMIN = env_bool("REQUIRE_TEAM_ADMIN", "1")
    PRESENCE_OVERRIDE_POLICY = os.environ.get("PRESENCE_OVERRIDE_POLICY", "clear")

    AUTO_INIT_DB = env_bool("AUTO_INIT_DB", "0")


# Flat module-level names, read by create_app()
SECRET_KEY = Config.SECRET_KEY
DB_CONFIG = {
    "host": Config.DB_HOST,
    "port": Config.DB_PORT,
    "user": Config.DB_USER,
    "password": Config.DB_PASSWORD,
    "database": Config.DB_NAME,
}

LOG_LEVEL = Config.LOG_LEVEL
LOG_DIR = Config.LOG_DIR
UPCOMING_WINDOW = Config.UPCOMING_WINDOW
REQUIRE_TEAM_ADMIN = Config.REQUIRE_TEAM_ADMIN
PRESENCE_OVERRIDE_POLICY = Config.PRESENCE_OVERRIDE_POLICY
AUTO_INIT_DB = Config.AUTO_INIT_DB

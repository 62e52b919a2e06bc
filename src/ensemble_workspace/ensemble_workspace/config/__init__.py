import os


def get_settings_module() -> str:
    # Pick the settings module from APP_ENV, defaulting to development
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "ensemble_workspace.config.production"

    if env in {"test", "testing"}:
        return "ensemble_workspace.config.testing"

    return "ensemble_workspace.config.development"

import os

_ENVIRONMENTS = {
    "dev": "development",
    "development": "development",
    "test": "testing",
    "testing": "testing",
    "prod": "production",
    "production": "production",
}


def get_settings_module() -> str:
    """Settings module for this process.

    PAYROLL_SETTINGS_MODULE names a module directly (e.g. a site-specific
    config with another deduction cap); otherwise APP_ENV picks one of the
    bundled modules, falling back to development.
    """
    explicit = os.getenv("PAYROLL_SETTINGS_MODULE", "").strip()
    if explicit:
        return explicit

    env = os.getenv("APP_ENV", "development").strip().lower()
    return f"config.{_ENVIRONMENTS.get(env, 'development')}"

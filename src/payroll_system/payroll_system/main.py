from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .container import build_container
from .core.exceptions import NotFoundError, ValidationError
from .loans.controller import register as register_loans
from .payslips.controller import register as register_payslips
from .rules.controller import register as register_rules
from .timesheets.controller import register as register_timesheets

log = logging.getLogger(__name__)


def create_app(settings_module: str | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    log.info("payroll-system starting with settings=%s", settings_module)

    container = build_container(
        default_cap_percent=getattr(settings, "DEFAULT_DEDUCTION_CAP_PERCENT", "30"),
        id_width=int(getattr(settings, "ID_WIDTH", 6)),
    )
    app.extensions["payroll_container"] = container

    @app.errorhandler(NotFoundError)
    def handle_not_found(e: NotFoundError):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(ValidationError)
    def handle_validation(e: ValidationError):
        return jsonify({"error": str(e)}), 400

    register_rules(app, container)
    register_timesheets(app, container)
    register_payslips(app, container)
    register_loans(app, container)

    return app

from __future__ import annotations

from flask import Flask

from ..common.http import json_body, required, respond
from ..core.exceptions import NotFoundError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.rule_set_service

    @app.route("/api/rule-sets", methods=["GET"], endpoint="rule_sets_list")
    def rule_sets_list():
        return respond(service.list_rule_sets())

    @app.route("/api/rule-sets", methods=["POST"], endpoint="rule_sets_create")
    def rule_sets_create():
        data = json_body()
        name = required(data, "name")
        options = {k: v for k, v in data.items() if k not in {"name", "id"}}
        return respond(service.add_rule_set(name=name, **options), 201)

    @app.route("/api/rule-sets/<rule_set_id>", methods=["GET"], endpoint="rule_sets_detail")
    def rule_sets_detail(rule_set_id: str):
        rule_set = service.get_rule_set(rule_set_id)
        if not rule_set:
            raise NotFoundError(f"Rule set {rule_set_id} does not exist")
        return respond(rule_set)

    @app.route("/api/rule-sets/<rule_set_id>", methods=["PATCH"], endpoint="rule_sets_update")
    def rule_sets_update(rule_set_id: str):
        patch = {k: v for k, v in json_body().items() if k != "id"}
        return respond(service.update_rule_set(rule_set_id, **patch))

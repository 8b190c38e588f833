from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, required, respond, respond_transition
from ..core.exceptions import NotFoundError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.loan_service

    @app.route("/api/loans", methods=["POST"], endpoint="loans_create")
    def loans_create():
        data = json_body()
        loan = service.create_loan(
            employee_id=required(data, "employee_id"),
            loan_type=required(data, "type"),
            amount=required(data, "amount"),
            monthly_deduction=required(data, "monthly_deduction"),
            deduction_cap_percent=data.get("deduction_cap_percent"),
            approved_by=data.get("approved_by"),
            remarks=data.get("remarks"),
        )
        return respond(loan, 201)

    @app.route("/api/loans", methods=["GET"], endpoint="loans_list")
    def loans_list():
        employee_id = request.args.get("employee_id")
        if not employee_id:
            raise ValidationError("employee_id is required")
        if request.args.get("active") in ("1", "true"):
            return respond(service.get_active_by_employee(employee_id))
        return respond(service.get_by_employee(employee_id))

    @app.route("/api/loans/deductions", methods=["GET"], endpoint="loans_all_deductions")
    def loans_all_deductions():
        return respond(service.get_all_deductions())

    @app.route("/api/loans/<loan_id>", methods=["GET"], endpoint="loans_detail")
    def loans_detail(loan_id: str):
        loan = service.get(loan_id)
        if not loan:
            raise NotFoundError(f"Loan {loan_id} does not exist")
        return respond(loan)

    @app.route("/api/loans/<loan_id>/deductions", methods=["POST"], endpoint="loans_deduct")
    def loans_deduct(loan_id: str):
        data = json_body()
        return respond(service.record_deduction(loan_id, required(data, "payslip_id"), required(data, "amount")))

    @app.route("/api/loans/<loan_id>/capped-deductions", methods=["POST"], endpoint="loans_capped_deduct")
    def loans_capped_deduct(loan_id: str):
        data = json_body()
        outcome = service.record_capped_deduction(
            loan_id, required(data, "payslip_id"), required(data, "employee_net_pay")
        )
        return respond(outcome)

    @app.route("/api/loans/<loan_id>/freeze", methods=["POST"], endpoint="loans_freeze")
    def loans_freeze(loan_id: str):
        return respond_transition(service.freeze(loan_id))

    @app.route("/api/loans/<loan_id>/unfreeze", methods=["POST"], endpoint="loans_unfreeze")
    def loans_unfreeze(loan_id: str):
        return respond_transition(service.unfreeze(loan_id))

    @app.route("/api/loans/<loan_id>/cancel", methods=["POST"], endpoint="loans_cancel")
    def loans_cancel(loan_id: str):
        return respond_transition(service.cancel(loan_id))

    @app.route("/api/loans/<loan_id>/terms", methods=["PATCH"], endpoint="loans_terms")
    def loans_terms(loan_id: str):
        data = json_body()
        result = service.update_terms(
            loan_id,
            monthly_deduction=data.get("monthly_deduction"),
            deduction_cap_percent=data.get("deduction_cap_percent"),
            remarks=data.get("remarks"),
        )
        return respond_transition(result)

    @app.route("/api/loans/<loan_id>/schedule", methods=["POST"], endpoint="loans_schedule_generate")
    def loans_schedule_generate(loan_id: str):
        return respond(service.generate_schedule(loan_id), 201)

    @app.route("/api/loans/<loan_id>/schedule", methods=["GET"], endpoint="loans_schedule")
    def loans_schedule(loan_id: str):
        return respond(service.get_schedule(loan_id))

    @app.route("/api/loans/<loan_id>/balance-history", methods=["GET"], endpoint="loans_balance_history")
    def loans_balance_history(loan_id: str):
        return respond(service.get_balance_history(loan_id))

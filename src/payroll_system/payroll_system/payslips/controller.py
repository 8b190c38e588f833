from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import json_body, required, respond, respond_transition
from ..core.exceptions import NotFoundError, ValidationError
from ..container import Container
from .model import StatutoryDeductions


def _statutory(data: dict) -> StatutoryDeductions:
    return StatutoryDeductions(
        sss=data.get("sss_deduction", 0),
        philhealth=data.get("philhealth_deduction", 0),
        pagibig=data.get("pagibig_deduction", 0),
        withholding_tax=data.get("tax_deduction", 0),
    )


def register(app: Flask, container: Container) -> None:
    service = container.payslip_service

    @app.route("/api/payslips", methods=["POST"], endpoint="payslips_issue")
    def payslips_issue():
        data = json_body()
        issued_at = data.get("issued_at")
        payslip = service.issue(
            employee_id=required(data, "employee_id"),
            period_start=parse_iso_date(required(data, "period_start")),
            period_end=parse_iso_date(required(data, "period_end")),
            gross_pay=required(data, "gross_pay"),
            allowances=data.get("allowances", 0),
            deductions=_statutory(data),
            other_deductions=data.get("other_deductions", 0),
            loan_deduction=data.get("loan_deduction", 0),
            issued_at=parse_iso_date(issued_at) if issued_at else None,
            notes=data.get("notes"),
        )
        return respond(payslip, 201)

    @app.route("/api/payslips", methods=["GET"], endpoint="payslips_list")
    def payslips_list():
        employee_id = request.args.get("employee_id")
        status = request.args.get("status")
        if employee_id:
            rows = service.get_by_employee(employee_id)
            if status:
                wanted = {p.id for p in service.get_payslips_by_status(status)}
                rows = [p for p in rows if p.id in wanted]
        elif status:
            rows = service.get_payslips_by_status(status)
        else:
            rows = service.get_pending()
        return respond(rows)

    @app.route("/api/payslips/signed", methods=["GET"], endpoint="payslips_signed")
    def payslips_signed():
        return respond(service.get_signed_payslips())

    @app.route("/api/payslips/unsigned-published", methods=["GET"], endpoint="payslips_unsigned")
    def payslips_unsigned():
        return respond(service.get_unsigned_published())

    @app.route("/api/payslips/thirteenth-month", methods=["POST"], endpoint="payslips_thirteenth")
    def payslips_thirteenth():
        data = json_body()
        employees = data.get("employees")
        if not isinstance(employees, list):
            raise ValidationError("employees must be a list")
        pairs = [(required(e, "employee_id"), required(e, "annual_salary")) for e in employees]
        return respond(service.generate_thirteenth_month(pairs, year=data.get("year")), 201)

    @app.route("/api/payslips/<payslip_id>", methods=["GET"], endpoint="payslips_detail")
    def payslips_detail(payslip_id: str):
        payslip = service.get(payslip_id)
        if not payslip:
            raise NotFoundError(f"Payslip {payslip_id} does not exist")
        return respond(payslip)

    @app.route("/api/payslips/<payslip_id>/confirm", methods=["POST"], endpoint="payslips_confirm")
    def payslips_confirm(payslip_id: str):
        return respond_transition(service.confirm(payslip_id))

    @app.route("/api/payslips/<payslip_id>/publish", methods=["POST"], endpoint="payslips_publish")
    def payslips_publish(payslip_id: str):
        return respond_transition(service.publish(payslip_id))

    @app.route("/api/payslips/<payslip_id>/sign", methods=["POST"], endpoint="payslips_sign")
    def payslips_sign(payslip_id: str):
        return respond_transition(service.sign(payslip_id, required(json_body(), "signature_data")))

    @app.route(
        "/api/payslips/<payslip_id>/finance-confirmation",
        methods=["POST"],
        endpoint="payslips_finance_confirmation",
    )
    def payslips_finance_confirmation(payslip_id: str):
        data = json_body()
        result = service.confirm_paid_by_finance(
            payslip_id,
            confirmed_by=required(data, "confirmed_by"),
            method=required(data, "method"),
            reference=data.get("reference"),
        )
        return respond_transition(result)

    @app.route("/api/payslips/<payslip_id>/payment", methods=["POST"], endpoint="payslips_payment")
    def payslips_payment(payslip_id: str):
        data = json_body()
        result = service.record_payment(payslip_id, method=required(data, "method"), reference=data.get("reference"))
        return respond_transition(result)

    @app.route("/api/payslips/<payslip_id>/acknowledge", methods=["POST"], endpoint="payslips_acknowledge")
    def payslips_acknowledge(payslip_id: str):
        return respond_transition(service.acknowledge(payslip_id, required(json_body(), "employee_id")))

    @app.route("/api/payroll-runs", methods=["GET"], endpoint="runs_list")
    def runs_list():
        return respond(service.list_runs())

    @app.route("/api/payroll-runs/<issued_at>", methods=["GET"], endpoint="runs_detail")
    def runs_detail(issued_at: str):
        run = service.get_run(parse_iso_date(issued_at))
        if not run:
            raise NotFoundError(f"No payroll run for {issued_at}")
        return respond(run)

    @app.route("/api/payroll-runs/<issued_at>", methods=["POST"], endpoint="runs_open")
    def runs_open(issued_at: str):
        return respond(service.open_run(parse_iso_date(issued_at)), 201)

    @app.route("/api/payroll-runs/<issued_at>/lock", methods=["POST"], endpoint="runs_lock")
    def runs_lock(issued_at: str):
        data = request.get_json(silent=True) or {}
        return respond(service.lock_run(parse_iso_date(issued_at), data.get("admin_id")))

    @app.route("/api/payroll-runs/<issued_at>/publish", methods=["POST"], endpoint="runs_publish")
    def runs_publish(issued_at: str):
        return respond_transition(service.publish_run(parse_iso_date(issued_at)))

    @app.route("/api/payroll-runs/<issued_at>/paid", methods=["POST"], endpoint="runs_paid")
    def runs_paid(issued_at: str):
        return respond_transition(service.mark_run_paid(parse_iso_date(issued_at)))

    @app.route("/api/adjustments", methods=["POST"], endpoint="adjustments_create")
    def adjustments_create():
        data = json_body()
        adjustment = service.create_adjustment(
            payroll_run_id=required(data, "payroll_run_id"),
            employee_id=required(data, "employee_id"),
            adjustment_type=required(data, "adjustment_type"),
            reference_payslip_id=required(data, "reference_payslip_id"),
            amount=required(data, "amount"),
            reason=required(data, "reason"),
            created_by=required(data, "created_by"),
        )
        return respond(adjustment, 201)

    @app.route("/api/adjustments", methods=["GET"], endpoint="adjustments_list")
    def adjustments_list():
        return respond(service.list_adjustments(status=request.args.get("status")))

    @app.route("/api/adjustments/<adjustment_id>/approve", methods=["POST"], endpoint="adjustments_approve")
    def adjustments_approve(adjustment_id: str):
        return respond_transition(service.approve_adjustment(adjustment_id, required(json_body(), "approver_id")))

    @app.route("/api/adjustments/<adjustment_id>/reject", methods=["POST"], endpoint="adjustments_reject")
    def adjustments_reject(adjustment_id: str):
        return respond_transition(service.reject_adjustment(adjustment_id, required(json_body(), "approver_id")))

    @app.route("/api/adjustments/<adjustment_id>/apply", methods=["POST"], endpoint="adjustments_apply")
    def adjustments_apply(adjustment_id: str):
        return respond_transition(service.apply_adjustment(adjustment_id, required(json_body(), "run_id")))

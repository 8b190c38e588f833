from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import date_arg, json_body, required, respond, respond_transition
from ..core.exceptions import NotFoundError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.timesheet_service

    @app.route("/api/timesheets/compute", methods=["POST"], endpoint="timesheets_compute")
    def timesheets_compute():
        data = json_body()
        timesheet = service.compute_timesheet(
            employee_id=required(data, "employee_id"),
            work_date=parse_iso_date(required(data, "date")),
            rule_set_id=data.get("rule_set_id"),
            check_in=required(data, "check_in"),
            check_out=required(data, "check_out"),
            shift_start=required(data, "shift_start"),
            shift_end=required(data, "shift_end"),
            break_minutes=data.get("break_minutes", 0),
            shift_id=data.get("shift_id"),
        )
        return respond(timesheet)

    @app.route("/api/timesheets", methods=["GET"], endpoint="timesheets_list")
    def timesheets_list():
        employee_id = request.args.get("employee_id")
        work_date = date_arg(request.args.get("date"))
        if employee_id:
            rows = service.get_by_employee(employee_id)
            if work_date:
                rows = [t for t in rows if t.work_date == work_date]
        elif work_date:
            rows = service.get_by_date(work_date)
        else:
            raise ValidationError("employee_id or date is required")
        return respond(rows)

    @app.route("/api/timesheets/pending", methods=["GET"], endpoint="timesheets_pending")
    def timesheets_pending():
        return respond(service.get_pending_approval())

    @app.route("/api/timesheets/overtime-pending", methods=["GET"], endpoint="timesheets_overtime_pending")
    def timesheets_overtime_pending():
        return respond(service.get_overtime_awaiting_approval())

    @app.route("/api/timesheets/summary", methods=["GET"], endpoint="timesheets_summary")
    def timesheets_summary():
        employee_id = request.args.get("employee_id")
        if not employee_id:
            raise ValidationError("employee_id is required")
        start = parse_iso_date(request.args.get("start", ""))
        end = parse_iso_date(request.args.get("end", ""))
        return respond(service.summarize_period(employee_id, start, end))

    @app.route("/api/timesheets/<timesheet_id>", methods=["GET"], endpoint="timesheets_detail")
    def timesheets_detail(timesheet_id: str):
        timesheet = service.get(timesheet_id)
        if not timesheet:
            raise NotFoundError(f"Timesheet {timesheet_id} does not exist")
        return respond(timesheet)

    @app.route("/api/timesheets/<timesheet_id>/submit", methods=["POST"], endpoint="timesheets_submit")
    def timesheets_submit(timesheet_id: str):
        return respond_transition(service.submit(timesheet_id))

    @app.route("/api/timesheets/<timesheet_id>/approve", methods=["POST"], endpoint="timesheets_approve")
    def timesheets_approve(timesheet_id: str):
        return respond_transition(service.approve(timesheet_id, required(json_body(), "approver_id")))

    @app.route("/api/timesheets/<timesheet_id>/reject", methods=["POST"], endpoint="timesheets_reject")
    def timesheets_reject(timesheet_id: str):
        return respond_transition(service.reject(timesheet_id, required(json_body(), "approver_id")))

"""Payroll System package.

The time-to-pay core is organized by feature modules (rules, timesheets,
payslips, loans, ...) with a thin Flask controller layer over service and
repository layers that own each aggregate.
"""

"""Payroll totals as a pure function of the stored inputs.

``derive`` is called before every persist. It reads only input fields, so running it
twice on the same record yields identical totals. Every amount is rounded to cents before
it is summed, so the stored columns satisfy ``net == gross - total_deductions`` exactly.
"""

from __future__ import annotations

from dataclasses import replace

from ..core.enums import AmountType
from .model import Epf, Etf, Payroll, PayrollLine


def round_money(value: float) -> float:
    return round(value, 2)


def calculate_line(line: PayrollLine, base_salary: float) -> PayrollLine:
    if line.type == AmountType.PERCENTAGE:
        amount = base_salary * line.amount / 100
    else:
        amount = line.amount
    return replace(line, calculated_amount=round_money(amount))


def derive(payroll: Payroll) -> Payroll:
    base = round_money(payroll.base_salary)

    allowances = tuple(calculate_line(a, base) for a in payroll.allowances)
    total_allowances = round_money(sum(a.calculated_amount for a in allowances))
    gross = round_money(base + total_allowances + round_money(payroll.bonus) + round_money(payroll.overtime.amount))

    epf_base = base + total_allowances
    employee_epf = round_money(epf_base * payroll.epf.employee_percentage / 100)
    employer_epf = round_money(epf_base * payroll.epf.employer_percentage / 100)
    epf = Epf(
        employee_percentage=payroll.epf.employee_percentage,
        employer_percentage=payroll.epf.employer_percentage,
        employee_contribution=employee_epf,
        employer_contribution=employer_epf,
        total_contribution=round_money(employee_epf + employer_epf),
    )
    etf = Etf(
        percentage=payroll.etf.percentage,
        employer_contribution=round_money(epf_base * payroll.etf.percentage / 100),
    )

    deductions = tuple(calculate_line(d, base) for d in payroll.deductions)
    # employer EPF/ETF are not paid by the employee and stay out of the deductions
    total_deductions = round_money(
        employee_epf
        + sum(d.calculated_amount for d in deductions)
        + round_money(payroll.late_deductions.amount)
        + round_money(payroll.early_leave_deductions.amount)
        + round_money(payroll.leave_deductions.amount)
        + round_money(payroll.tax)
    )

    return replace(
        payroll,
        allowances=allowances,
        deductions=deductions,
        total_allowances=total_allowances,
        gross_salary=gross,
        epf=epf,
        etf=etf,
        total_deductions=total_deductions,
        net_salary=round_money(gross - total_deductions),
    )

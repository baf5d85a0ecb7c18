"""TimePay: HR, attendance and payroll back end."""

__version__ = "1.0.0"

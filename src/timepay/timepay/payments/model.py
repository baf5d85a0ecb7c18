from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.constants import DEFAULT_CURRENCY
from ..core.enums import PaymentGateway, PaymentMethod, PaymentStatus


@dataclass(frozen=True)
class Payment:
    """Disbursement of one approved payroll. ``amount`` is frozen at initiation."""

    payment_id: int
    payroll_id: int
    employee_id: int
    amount: float
    method: PaymentMethod
    gateway: PaymentGateway = PaymentGateway.MANUAL
    currency: str = DEFAULT_CURRENCY
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: Optional[str] = None
    reference: Optional[str] = None
    bank_details: dict[str, Any] = field(default_factory=dict)
    gateway_response: dict[str, Any] = field(default_factory=dict)
    processed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    processed_by: Optional[int] = None
    approved_by: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

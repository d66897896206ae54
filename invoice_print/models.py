"""Value types passed between the normalizer, renderers and dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class LineItem:
    name: str
    price: str
    quantity: int
    subtotal: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "price": self.price,
            "quantity": str(self.quantity),
            "subtotal": self.subtotal,
        }


@dataclass(frozen=True)
class InvoiceDocument:
    invoice_id: str
    customer_name: str
    date: str
    items: Tuple[LineItem, ...]
    total: str

    def to_template_context(self) -> Dict[str, Any]:
        return {
            "invoiceId": self.invoice_id,
            "customerName": self.customer_name,
            "date": self.date,
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
        }


class PrintTargetKind(str, Enum):
    NONE = "none"
    LOCAL = "local"
    CLOUD_API = "cloudApi"


@dataclass(frozen=True)
class PrintTarget:
    kind: PrintTargetKind = PrintTargetKind.NONE
    printer_name: Optional[str] = None
    printer_id: Optional[str] = None

    @classmethod
    def none(cls) -> "PrintTarget":
        return cls(PrintTargetKind.NONE)

    @classmethod
    def local(cls, printer_name: Optional[str] = None) -> "PrintTarget":
        return cls(PrintTargetKind.LOCAL, printer_name=printer_name)

    @classmethod
    def cloud(cls, printer_id: str) -> "PrintTarget":
        return cls(PrintTargetKind.CLOUD_API, printer_id=printer_id)


@dataclass(frozen=True)
class PrintResult:
    success: bool
    message: str
    job_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "message": self.message, "jobId": self.job_id}

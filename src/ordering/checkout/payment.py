"""Payment proof handed to the committer by the payment verifier.

The gateway signature has already been verified by the time an order is
committed. Here we only insist that all three identifiers are present.
"""

from dataclasses import dataclass

from protean.exceptions import ValidationError


@dataclass(frozen=True)
class PaymentProof:
    order_id: str
    payment_id: str
    signature: str

    @classmethod
    def from_mapping(cls, data) -> "PaymentProof":
        data = data or {}
        return cls(
            order_id=data.get("order_id") or data.get("payment_order_id") or "",
            payment_id=data.get("payment_id") or "",
            signature=data.get("signature") or data.get("payment_signature") or "",
        )

    def ensure_present(self) -> "PaymentProof":
        missing = {
            name: [f"{name} is required"]
            for name in ("order_id", "payment_id", "signature")
            if not str(getattr(self, name) or "").strip()
        }
        if missing:
            raise ValidationError(missing)
        return self

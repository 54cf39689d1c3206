"""
Contract (rate card) schemas.
"""
from pydantic import BaseModel
from typing import Optional, Dict, Any


# Keys produced by the AI contract extractor -> rate card fields
EXTRACTED_KEY_ALIASES = {
    "providerName": "provider_name",
    "zoneARate": "zone_a_rate",
    "zoneBRate": "zone_b_rate",
    "zoneCRate": "zone_c_rate",
    "codPercentage": "cod_fee_percentage",
    "rtoFlatFee": "rto_flat_fee",
    "fuelSurchargePercentage": "fuel_surcharge_percentage",
    "docketCharge": "docket_charge",
    "gstPercentage": "gst_percentage",
}

_NUMERIC_FIELDS = (
    "zone_a_rate",
    "zone_b_rate",
    "zone_c_rate",
    "cod_fee_percentage",
    "rto_flat_fee",
)


class ContractRules(BaseModel):
    """Negotiated rate card. The audit engine only reads it."""
    provider_name: Optional[str] = None
    zone_a_rate: float
    zone_b_rate: float
    zone_c_rate: float
    cod_fee_percentage: float
    rto_flat_fee: float = 0.0
    # Passed through for display; not used by the audit engine
    fuel_surcharge_percentage: Optional[float] = None
    docket_charge: Optional[float] = None
    gst_percentage: Optional[float] = None

    class Config:
        frozen = True

    def rate_for_zone(self, zone: Any) -> float:
        """Base rate per kg for a zone letter; 0 for anything outside A/B/C."""
        key = str(zone).strip().upper() if zone is not None else ""
        return {
            "A": self.zone_a_rate,
            "B": self.zone_b_rate,
            "C": self.zone_c_rate,
        }.get(key, 0.0)

    @classmethod
    def from_extracted(cls, data: Dict[str, Any]) -> "ContractRules":
        """
        Build a rate card from an extractor record.

        Accepts snake_case keys or the extractor's camelCase keys. Missing or
        unparseable core values default to 0, matching the extractor prompt.
        """
        values: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            values[EXTRACTED_KEY_ALIASES.get(key, key)] = value

        for field in _NUMERIC_FIELDS:
            try:
                values[field] = float(values.get(field) or 0)
            except (TypeError, ValueError):
                values[field] = 0.0

        provider = values.get("provider_name")
        values["provider_name"] = (str(provider).strip() or None) if provider else None
        return cls(**{k: v for k, v in values.items() if k in cls.model_fields})


class ContractNormalizeRequest(BaseModel):
    extracted: Dict[str, Any]

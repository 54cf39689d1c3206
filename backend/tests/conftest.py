import os

# Keep tests off any real database before the app modules read settings
os.environ["DATABASE_URL"] = "sqlite://"

import pytest

from courier_audit.schemas.contract import ContractRules
from courier_audit.services.storage import InMemoryStorage, StorageUnavailable


@pytest.fixture
def contract():
    return ContractRules(
        provider_name="Delhivery",
        zone_a_rate=40,
        zone_b_rate=55,
        zone_c_rate=75,
        cod_fee_percentage=1.5,
        rto_flat_fee=30,
    )


@pytest.fixture
def storage():
    return InMemoryStorage()


def canonical_row(awb, order_type="Prepaid", billed_weight=1.0, actual_weight=1.0,
                  billed_zone="A", actual_zone="A", amount=40.0):
    return {
        "AWB": awb,
        "OrderType": order_type,
        "BilledWeight": billed_weight,
        "ActualWeight": actual_weight,
        "BilledZone": billed_zone,
        "ActualZone": actual_zone,
        "TotalBilledAmount": amount,
    }


class FlakyStorage(InMemoryStorage):
    """In-memory store whose reads can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail_reads = False

    def get(self, key):
        if self.fail_reads:
            raise StorageUnavailable(f"Could not read {key}")
        return super().get(key)

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
import argparse
import sys

from sqlalchemy import delete, select

if __package__ is None or __package__ == "":
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from fleetgate.db.session import get_session_factory
from fleetgate.models.customer import Customer
from fleetgate.models.device_command import DeviceCommand
from fleetgate.models.pickup_code import PickupCode


DEMO_PREFIX = "[DEMO]"

# (name, plan, days until end date, suspended)
DEMO_CUSTOMERS = [
    ("Active studio", "pro", 30, False),
    ("Expiring shop", "basic", 5, False),
    ("Grace travel", "basic", -2, False),
    ("Degraded kitchen", "trial", -5, False),
    ("Stopped gallery", "trial", -20, False),
    ("Suspended agency", "pro", 60, True),
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed demo customers covering every grace status.")
    parser.add_argument("--codes-per-customer", type=int, default=2)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    session_factory = get_session_factory()

    with session_factory() as db:
        demo_customers = db.scalars(select(Customer).where(Customer.customer_name.like(f"{DEMO_PREFIX}%"))).all()
        demo_ids = [customer.id for customer in demo_customers]
        if demo_ids:
            demo_codes = select(PickupCode.pickup_code).where(PickupCode.customer_id.in_(demo_ids))
            db.execute(delete(DeviceCommand).where(DeviceCommand.pickup_code.in_(demo_codes)))
            db.execute(delete(PickupCode).where(PickupCode.customer_id.in_(demo_ids)))
            db.execute(delete(Customer).where(Customer.id.in_(demo_ids)))

        today = datetime.now(UTC).date()
        created_codes: list[str] = []
        for index, (name, plan, days_left, suspended) in enumerate(DEMO_CUSTOMERS):
            customer = Customer(
                customer_name=f"{DEMO_PREFIX} {name}",
                plan=plan,
                start_date=today - timedelta(days=30),
                end_date=today + timedelta(days=days_left),
                is_suspended=suspended,
            )
            db.add(customer)
            db.flush()

            for seq in range(1, args.codes_per_customer + 1):
                code = f"XN-DEMO{index + 1}-{seq:02d}-0000"
                db.add(PickupCode(pickup_code=code, customer_id=customer.id, is_active=True))
                created_codes.append(code)

        db.commit()

    print(f"Demo data seeded: {len(DEMO_CUSTOMERS)} customers, {len(created_codes)} pickup codes.")
    for code in created_codes:
        print(f"  {code}")


if __name__ == "__main__":
    main()

#!/usr/bin/env python
"""Seed a development database with demo departments, users and licenses."""

import asyncio
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import func, select

from licence_analytics.database import get_async_session_maker
from licence_analytics.models.domain.license import BillingCycle, UserStatus
from licence_analytics.models.orm import AssignmentORM, DepartmentORM, LicenseORM, UserORM

DEPARTMENTS = ["Finanzas", "Tecnologia", "Recursos Humanos", "Operaciones"]

LICENSES = [
    # provider, plan, billing cycle, unit cost, installment cost, seats, used, days to expiry
    ("Microsoft", "E3", BillingCycle.MONTHLY, "1200.00", "100.00", 50, 42, 200),
    ("Microsoft", "E5", BillingCycle.YEARLY, "3600.00", "3600.00", 10, 10, 20),
    ("Adobe", "Creative Cloud", BillingCycle.MONTHLY, "800.00", "80.00", 15, 9, 90),
    ("Atlassian", "Jira Cloud", BillingCycle.YEARLY, "2400.00", "2400.00", 30, 31, 400),
    ("Slack", "Business+", BillingCycle.MONTHLY, "300.00", "25.00", 60, 12, -15),
    ("Zoom", "Pro", BillingCycle.QUARTERLY, "450.00", "150.00", 20, 18, 7),
]


async def seed() -> bool:
    """Insert demo rows unless licenses already exist."""
    async_session = get_async_session_maker()
    today = date.today()

    async with async_session() as session:
        existing = (await session.execute(select(func.count(LicenseORM.id)))).scalar_one()
        if existing:
            print(f"Database already holds {existing} licenses, skipping seed")
            return False

        departments = [DepartmentORM(name=name) for name in DEPARTMENTS]
        session.add_all(departments)
        await session.flush()

        users = [
            UserORM(
                name=f"Usuario {i}",
                username=f"usuario{i}",
                status=UserStatus.ACTIVE if i % 5 else UserStatus.INACTIVE,
                department_id=departments[i % len(departments)].id,
            )
            for i in range(1, 21)
        ]
        session.add_all(users)
        await session.flush()

        licenses = []
        for i, (provider, plan, cycle, unit, installment, seats, used, days) in enumerate(LICENSES):
            licenses.append(
                LicenseORM(
                    provider=provider,
                    plan=plan,
                    billing_cycle=cycle,
                    unit_cost=Decimal(unit),
                    installment_cost=Decimal(installment),
                    total_seats=seats,
                    used_seats=used,
                    active=days > 0,
                    start_date=today - timedelta(days=365),
                    expiration=today + timedelta(days=days),
                    department_id=departments[i % len(departments)].id,
                )
            )
        session.add_all(licenses)
        await session.flush()

        for i, user in enumerate(users):
            session.add(AssignmentORM(user_id=user.id, license_id=licenses[i % len(licenses)].id))

        await session.commit()
        print(
            f"Seeded {len(departments)} departments, {len(users)} users, "
            f"{len(licenses)} licenses"
        )
        return True


if __name__ == "__main__":
    success = asyncio.run(seed())
    sys.exit(0 if success else 1)

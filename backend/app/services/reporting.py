"""
Reporting aggregator.

Folds journeys into fuel and mileage totals, overall and per truck/driver.
"""

from typing import Dict, Iterable

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from backend.app.models.journey import Journey


def _mileage_delta(journey) -> float:
    """Distance driven; only positive end-start deltas count."""
    if journey.mileage_start is None or journey.mileage_end is None:
        return 0.0
    delta = journey.mileage_end - journey.mileage_start
    return delta if delta > 0 else 0.0


def _bucket(buckets: Dict[int, dict], key: int) -> dict:
    return buckets.setdefault(key, {"journeys": 0, "mileage": 0.0, "fuel": 0.0})


def summarize_journeys(journeys: Iterable) -> dict:
    total_fuel = 0.0
    total_mileage = 0.0
    count = 0
    per_truck: Dict[int, dict] = {}
    per_driver: Dict[int, dict] = {}

    for journey in journeys:
        count += 1
        fuel = journey.fuel_volume or 0.0
        mileage = _mileage_delta(journey)
        total_fuel += fuel
        total_mileage += mileage

        for buckets, key in ((per_truck, journey.truck_id), (per_driver, journey.driver_id)):
            if key is None:
                continue
            bucket = _bucket(buckets, key)
            bucket["journeys"] += 1
            bucket["mileage"] += mileage
            bucket["fuel"] += fuel

    return {
        "total_fuel": total_fuel,
        "total_mileage": total_mileage,
        "journeys_count": count,
        "per_truck": per_truck,
        "per_driver": per_driver,
    }


class ReportingService:

    @staticmethod
    async def summary(db: AsyncSession) -> dict:
        result = await db.execute(
            select(
                Journey.truck_id, Journey.driver_id,
                Journey.mileage_start, Journey.mileage_end, Journey.fuel_volume
            ).order_by(Journey.id)
        )
        return summarize_journeys(result.all())

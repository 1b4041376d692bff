"""Booking recency scoring component."""

import pandas as pd

from .base import BaseScorer, FactorRule


class BookingScorer(BaseScorer):
    """
    Score based on RECENT_BOOKING_COUNT (bookings in the trailing window).

    A subscriber who stopped booking services is paying for nothing.

    Points:
    - 0 bookings: +20 (no recent bookings)
    - 1-3 bookings: 0
    - > 3 bookings: -5 (active booking behavior)
    """

    name = "bookings"

    @property
    def required_columns(self) -> list[str]:
        return ["RECENT_BOOKING_COUNT"]

    def rules(self, df: pd.DataFrame) -> list[tuple[pd.Series, FactorRule]]:
        bookings = df["RECENT_BOOKING_COUNT"]
        return [
            (
                bookings == 0,
                FactorRule(
                    "No recent bookings",
                    self.config.no_recent_bookings_delta,
                    "No services booked recently",
                ),
            ),
            (
                bookings > self.config.active_booking_threshold,
                FactorRule(
                    "Active booking behavior",
                    self.config.active_booking_delta,
                    f"Booked more than {self.config.active_booking_threshold} services recently",
                ),
            ),
        ]

"""Push notification copy for customers and drivers."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class Template:
    title: str
    body: str
    priority: Literal["default", "normal", "high"] = "high"


def _tzs(amount: int) -> str:
    return f"{amount:,} TZS"


class NotificationTemplates:
    @staticmethod
    def new_request(distance_km: float, fare: int, vehicle_type: str) -> Template:
        return Template(
            title="New Ride Request!",
            body=f"{vehicle_type} needed - {distance_km:.1f}km - {_tzs(fare)}",
        )

    @staticmethod
    def price_offer(amount: int) -> Template:
        return Template(title="New Price Offer", body=f"Customer offered {_tzs(amount)}")

    @staticmethod
    def counteroffer(amount: int) -> Template:
        return Template(title="Driver Counteroffer", body=f"Driver proposed {_tzs(amount)}")

    @staticmethod
    def offer_accepted(amount: int) -> Template:
        return Template(title="Offer Accepted", body=f"Price agreed at {_tzs(amount)}")

    @staticmethod
    def offer_rejected() -> Template:
        return Template(title="Offer Declined", body="Your price offer was declined")

    @staticmethod
    def ride_accepted() -> Template:
        return Template(
            title="Driver Found!",
            body="A driver accepted your ride. They're on the way!",
        )

    @staticmethod
    def status_changed(status: str) -> Template:
        if status == "arrived":
            return Template(
                title="Driver Arrived",
                body="Your driver has arrived at the pickup location",
            )
        if status == "in_progress":
            return Template(
                title="Trip Started",
                body="Your items are on the way to the destination",
                priority="normal",
            )
        return Template(title="Trip Update", body=f"Your trip is now {status.replace('_', ' ')}")

    @staticmethod
    def trip_completed(fare: int) -> Template:
        return Template(
            title="Trip Completed",
            body=f"Delivered successfully! Fare: {_tzs(fare)}",
            priority="normal",
        )

    @staticmethod
    def driver_trip_completed(earnings: int) -> Template:
        return Template(
            title="Trip Completed",
            body=f"Earned {_tzs(earnings)}. Great job!",
            priority="normal",
        )

    @staticmethod
    def trip_cancelled(reason: str) -> Template:
        body = "Your trip was cancelled"
        if reason:
            body = f"{body}: {reason}"
        return Template(title="Trip Cancelled", body=body)

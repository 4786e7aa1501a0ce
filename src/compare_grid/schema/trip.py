"""Field definitions for the trip-option comparison grid."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..formatting import calculate_nights, grand_total, price_per_person
from .fields import FieldSchema, GridSchema

ROOM_TYPES: tuple[str, ...] = (
    "Standard",
    "Deluxe",
    "Junior Suite",
    "Suite",
    "Villa",
    "Overwater Bungalow",
)
MEAL_PLANS: tuple[str, ...] = (
    "Room Only",
    "Breakfast",
    "Half Board",
    "Full Board",
    "All Inclusive",
)

PRICE_COMPONENTS: tuple[str, ...] = (
    "packagePrice",
    "flightsTotal",
    "prePostHotelsTotal",
    "additionalCosts",
)


def _grand_total(entity: Mapping[str, Any]) -> float:
    return grand_total(*(entity.get(key) for key in PRICE_COMPONENTS))


def _price_per_person(entity: Mapping[str, Any]) -> int:
    return price_per_person(entity.get("grandTotal"), entity.get("guests"))


def _duration(entity: Mapping[str, Any]) -> int | None:
    start = entity.get("startDate")
    end = entity.get("endDate")
    if not start or not end:
        return None
    return calculate_nights(start, end)


TRIP_FIELDS: tuple[FieldSchema, ...] = (
    FieldSchema("destination", "Destination", "text"),
    FieldSchema("resort", "Resort", "text"),
    FieldSchema("roomType", "Room Type", "select", options=ROOM_TYPES),
    FieldSchema("mealPlan", "Meal Plan", "select", options=MEAL_PLANS),
    FieldSchema("startDate", "Start Date", "date"),
    FieldSchema("endDate", "End Date", "date"),
    FieldSchema("duration", "Duration", "number", compute=_duration, unit="nights"),
    FieldSchema("guests", "Guests", "number"),
    FieldSchema("packagePrice", "Package", "price"),
    FieldSchema("flightsTotal", "Flights", "price"),
    FieldSchema("prePostHotelsTotal", "Pre/Post Hotels", "price"),
    FieldSchema("additionalCosts", "Additional Costs", "price"),
    FieldSchema("grandTotal", "Grand Total", "price", compute=_grand_total),
    FieldSchema("pricePerPerson", "Per Person", "price", compute=_price_per_person),
    FieldSchema("inclusions", "Inclusions", "list"),
    FieldSchema("exclusions", "Exclusions", "list"),
    FieldSchema("itinerary", "Itinerary", "list"),
)

TRIP_DEPENDENCIES: dict[str, tuple[str, ...]] = {
    "grandTotal": PRICE_COMPONENTS,
    "pricePerPerson": ("grandTotal", "guests"),
    "duration": ("startDate", "endDate"),
}


def trip_schema() -> GridSchema:
    return GridSchema.build(TRIP_FIELDS, TRIP_DEPENDENCIES)

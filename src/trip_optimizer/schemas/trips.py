"""Trip, location and driver payload schemas shared by every endpoint."""

from __future__ import annotations

from datetime import date, time
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.domain import Driver, Location, Trip


def _coerce_identifier(value: Any) -> Any:
    # Booking systems send numeric ids; the service treats every id as text.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class LocationModel(BaseModel):
    address: str = Field(..., min_length=1)
    postcode: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(None, ge=-180.0, le=180.0)

    def to_domain(self) -> Location:
        return Location(
            address=self.address,
            postcode=self.postcode,
            latitude=self.latitude,
            longitude=self.longitude,
        )

    @classmethod
    def from_domain(cls, location: Location) -> "LocationModel":
        return cls(
            address=location.address,
            postcode=location.postcode,
            latitude=location.latitude,
            longitude=location.longitude,
        )


class TripModel(BaseModel):
    trip_id: str
    pickup: LocationModel
    dropoff: LocationModel
    pickup_time: time
    trip_date: Optional[date] = None
    passenger_count: int = Field(default=1, ge=1)
    driver_id: Optional[str] = None

    @field_validator("trip_id", "driver_id", mode="before")
    @classmethod
    def _ids_as_text(cls, value: Any) -> Any:
        return _coerce_identifier(value)

    def to_domain(self) -> Trip:
        return Trip(
            trip_id=self.trip_id,
            pickup=self.pickup.to_domain(),
            dropoff=self.dropoff.to_domain(),
            pickup_time=self.pickup_time,
            trip_date=self.trip_date,
            passenger_count=self.passenger_count,
            driver_id=self.driver_id,
        )

    @classmethod
    def from_domain(cls, trip: Trip) -> "TripModel":
        return cls(
            trip_id=trip.trip_id,
            pickup=LocationModel.from_domain(trip.pickup),
            dropoff=LocationModel.from_domain(trip.dropoff),
            pickup_time=trip.pickup_time,
            trip_date=trip.trip_date,
            passenger_count=trip.passenger_count,
            driver_id=trip.driver_id,
        )


class DriverModel(BaseModel):
    driver_id: str
    vehicle_capacity: int = Field(default=8, ge=1)
    home: Optional[LocationModel] = None

    @field_validator("driver_id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        return _coerce_identifier(value)

    def to_domain(self) -> Driver:
        return Driver(
            driver_id=self.driver_id,
            vehicle_capacity=self.vehicle_capacity,
            home=self.home.to_domain() if self.home else None,
        )

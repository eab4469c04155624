"""Domain models for trips, drivers and the places they visit."""

from dataclasses import dataclass
from datetime import date, time
from typing import Iterator, Literal, Optional

StopRole = Literal["pickup", "dropoff"]


@dataclass(slots=True)
class Location:
    """A free-text place, optionally carrying a postcode and resolved coordinates."""

    address: str
    postcode: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def provider_query(self) -> str:
        """Text sent to the distance-matrix provider for this location."""
        if self.postcode and self.postcode.strip():
            return self.postcode.strip()
        return self.address


@dataclass(frozen=True, slots=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(slots=True)
class Stop:
    """A point visited during a trip."""

    location: Location
    role: StopRole
    trip_id: str


@dataclass(slots=True)
class Trip:
    """A passenger journey: the unit that is sequenced and packed into vehicles."""

    trip_id: str
    pickup: Location
    dropoff: Location
    pickup_time: time
    trip_date: Optional[date] = None
    passenger_count: int = 1
    driver_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.passenger_count < 1:
            raise ValueError(f"Trip {self.trip_id} must carry at least one passenger.")

    def stops(self) -> Iterator[Stop]:
        yield Stop(location=self.pickup, role="pickup", trip_id=self.trip_id)
        yield Stop(location=self.dropoff, role="dropoff", trip_id=self.trip_id)


@dataclass(slots=True)
class Driver:
    driver_id: str
    vehicle_capacity: int = 8
    home: Optional[Location] = None


@dataclass(frozen=True, slots=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Date range start {self.start} is after end {self.end}.")

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

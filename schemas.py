from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from services.grouping import GroupedEvent, Location, PriceRange


class LocationOut(BaseModel):
    venue: str
    city: str
    state: str = ""
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class PriceRangeOut(BaseModel):
    min: float = 0
    max: float = 0
    currency: str = "GBP"


class EventOut(BaseModel):
    id: str = Field(..., description="Group key: normalized title + '__' + venue")
    title: str
    description: str = ""
    location: LocationOut
    price: PriceRangeOut
    category: str
    genre: Optional[str] = None
    sub_genre: Optional[str] = None
    platform: str
    image: str
    url: str = ""
    availability: str = Field(..., description="available | low | sold-out")
    promoter: Optional[str] = None
    external_id: Optional[str] = None
    occurrence_dates: List[str] = Field(default_factory=list)
    occurrence_times: List[str] = Field(default_factory=list)
    display_date: str = ""
    display_time: str = ""
    rating: Optional[float] = None
    attendees: Optional[int] = None
    relevance_score: Optional[int] = None

    @classmethod
    def from_event(cls, e: GroupedEvent) -> "EventOut":
        return cls.model_validate(asdict(e))

    def to_event(self) -> GroupedEvent:
        data = self.model_dump(exclude={"location", "price"})
        return GroupedEvent(
            location=Location(**self.location.model_dump()),
            price=PriceRange(**self.price.model_dump()),
            **data,
        )


class EventsResponse(BaseModel):
    count: int
    items: List[EventOut]
    errors: List[str] = Field(default_factory=list)
    explanation: Optional[str] = None
    debug: Optional[Dict[str, Any]] = None


class AISearchRequest(BaseModel):
    query: str
    # optional: events on screen, returned filtered and ranked by the intent
    available_events: List[EventOut] = Field(default_factory=list)


class AISearchResponse(BaseModel):
    success: bool = True
    search_params: Dict[str, Any] = Field(default_factory=dict)
    explanation: str
    items: Optional[List[EventOut]] = None


class ChatRequest(BaseModel):
    message: str
    conversation_history: List[Dict[str, str]] = Field(default_factory=list)
    available_events: List[EventOut] = Field(default_factory=list)


class ChatResponse(BaseModel):
    message: str
    suggested_event_ids: Optional[List[str]] = None


class LoginRequest(BaseModel):
    user_id: str
    username: Optional[str] = None


class FavouriteIn(BaseModel):
    event: EventOut

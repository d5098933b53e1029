"""
Core Record Models for Trip Budget Tracker

These models define the schemas for the four stored collections:
trip days, members, expenses and incomes.

Each entity comes in three shapes:
1. The stored record (has an id, everything required)
2. A *Create model - what the user submits for a new record
3. A *Update model - a partial patch, every field optional

DESIGN DECISION: Field constraints (positive amounts, minimum text
lengths) live on the input models. Input is rejected at validation
time, never at the store layer.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# MEMBERS
# =============================================================================

class MemberCreate(BaseModel):
    """A new trip participant."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        min_length=2,
        max_length=100,
        description="Display name"
    )
    role: str = Field(
        ...,
        min_length=3,
        max_length=100,
        description="Role on the trip (Organizer, Driver, ...)"
    )


class MemberUpdate(BaseModel):
    """Partial update for a member."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    role: Optional[str] = Field(default=None, min_length=3, max_length=100)


class Member(MemberCreate):
    """A stored trip participant."""

    id: str = Field(..., min_length=1, description="Store-generated identifier")


# =============================================================================
# EXPENSES AND INCOMES
# =============================================================================

class LedgerEntryCreate(BaseModel):
    """
    What a user submits when logging money against the trip.

    The member name is not part of the input - it is looked up
    from the member record when the entry is written.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    member_id: str = Field(
        ...,
        min_length=1,
        description="Member this entry belongs to"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Amount, strictly positive"
    )
    purpose: str = Field(
        ...,
        min_length=3,
        max_length=200,
        description="What the money was for"
    )
    timestamp: Optional[dt.datetime] = Field(
        default=None,
        description="When it happened; assigned by the store if omitted"
    )


class LedgerEntryUpdate(BaseModel):
    """Partial update for an expense or income."""
    model_config = ConfigDict(str_strip_whitespace=True)

    member_id: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    purpose: Optional[str] = Field(default=None, min_length=3, max_length=200)
    timestamp: Optional[dt.datetime] = None


class LedgerEntry(BaseModel):
    """
    A stored money record.

    NOTE: member_name is denormalized - captured at write time and
    NOT kept in sync when the member is renamed later. Historical
    entries keep the name the member had when they were logged.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    member_id: str = Field(..., min_length=1)
    member_name: str = Field(default="", max_length=100)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    purpose: str = Field(..., min_length=3, max_length=200)
    timestamp: dt.datetime


class Expense(LedgerEntry):
    """Money spent; counts against the remaining budget."""


class Income(LedgerEntry):
    """Money received; adds to the remaining budget."""


# =============================================================================
# TRIP DAYS
# =============================================================================

class TripDayCreate(BaseModel):
    """A planned day of the trip."""
    model_config = ConfigDict(str_strip_whitespace=True)

    label: str = Field(
        default="",
        max_length=100,
        description="Human label, e.g. 'Day 1 - Valparai'"
    )
    date: dt.date
    places: str = Field(
        ...,
        min_length=3,
        max_length=500,
        description="Free-text list of places to visit"
    )
    budget: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Budget allocated to this day"
    )


class TripDayUpdate(BaseModel):
    """Partial update for a trip day."""
    model_config = ConfigDict(str_strip_whitespace=True)

    label: Optional[str] = Field(default=None, max_length=100)
    date: Optional[dt.date] = None
    places: Optional[str] = Field(default=None, min_length=3, max_length=500)
    budget: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)


class TripDay(TripDayCreate):
    """A stored trip day."""

    id: str = Field(..., min_length=1)

    @property
    def display_label(self) -> str:
        """Label to show, falling back to the formatted date."""
        return self.label or self.date.strftime("%a, %d %b %Y")

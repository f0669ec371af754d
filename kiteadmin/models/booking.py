from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

BOOKING_FIELDS = ("client_id", "trip_id", "booking_date", "status", "participants")


# ----------------------------------------------------
# 1. ENUMERADOR DE STATUS
# Estados possíveis de uma reserva.
# ----------------------------------------------------
class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# ----------------------------------------------------
# 2. MODELO Pydantic para Reserva (Booking)
# ----------------------------------------------------
class BookingIn(BaseModel):
    """
    Reserva de um cliente em uma viagem.
    """
    client_id: Optional[int] = Field(None, description="ID do cliente.")
    trip_id: Optional[int] = Field(None, description="ID da viagem reservada.")

    booking_date: Optional[date] = Field(None, description="Data da reserva (Formato YYYY-MM-DD).")

    status: BookingStatus = Field(BookingStatus.PENDING, description="Status atual da reserva.")

    participants: int = Field(1, ge=1, description="Número de participantes.")

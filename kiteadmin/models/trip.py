from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

TRIP_FIELDS = ("name", "description", "start_date", "end_date", "price", "hotel_id", "max_participants")


class TripIn(BaseModel):
    """
    Uma viagem (pacote) com datas, preço e hotel opcional.
    """
    name: Optional[str] = None
    description: Optional[str] = None

    # Apenas a data (Formato YYYY-MM-DD)
    start_date: Optional[date] = Field(None, description="Data de início da viagem.")
    end_date: Optional[date] = Field(None, description="Data de término da viagem.")

    price: Optional[float] = Field(None, ge=0.0, description="Preço por participante.")

    # Chave "estrangeira" sem restrição no banco
    hotel_id: Optional[int] = None
    max_participants: Optional[int] = Field(None, ge=0)

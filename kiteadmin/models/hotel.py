from typing import Optional

from pydantic import BaseModel

HOTEL_FIELDS = ("name", "location", "address", "phone", "email", "website", "pix", "notes")


class HotelIn(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    pix: Optional[str] = None  # chave PIX para pagamento
    notes: Optional[str] = None

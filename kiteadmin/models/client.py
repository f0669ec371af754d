from typing import Optional

from pydantic import BaseModel

CLIENT_FIELDS = ("name", "email", "phone", "address", "nationality", "notes", "cpf", "birth_date")


class ClientIn(BaseModel):
    # Todos opcionais: no PUT, campo ausente vira NULL (sobrescrita completa)
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    nationality: Optional[str] = None
    notes: Optional[str] = None
    cpf: Optional[str] = None
    birth_date: Optional[str] = None

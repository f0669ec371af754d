from fastapi import APIRouter, Depends

from kiteadmin.auth_utils import require_authenticated, require_role
from kiteadmin.database import Database, get_db
from kiteadmin.errors import NotFound, ValidationError
from kiteadmin.models.hotel import HOTEL_FIELDS, HotelIn

router = APIRouter(
    prefix="/api/hotels",
    tags=["hotels"],
    dependencies=[Depends(require_authenticated)],
)

can_edit = Depends(require_role("admin", "manager"))

_COLUMNS = ", ".join(HOTEL_FIELDS)
_MARKS = ", ".join("?" for _ in HOTEL_FIELDS)
_ASSIGN = ", ".join(f"{field} = ?" for field in HOTEL_FIELDS)


def _values(payload: HotelIn) -> list:
    if not payload.name or not payload.name.strip():
        raise ValidationError("Name is required")
    data = payload.model_dump(mode="json")
    return [data[field] for field in HOTEL_FIELDS]


# Rota 1: Listar Hotéis
@router.get("", name="list_hotels")
def list_hotels(db: Database = Depends(get_db)):
    return db.query_all("SELECT * FROM hotels ORDER BY name")


# Rota 2: Detalhes de um Hotel
@router.get("/{hotel_id}", name="show_hotel")
def show_hotel(hotel_id: int, db: Database = Depends(get_db)):
    hotel = db.query_one("SELECT * FROM hotels WHERE id = ?", (hotel_id,))
    if hotel is None:
        raise NotFound("Hotel not found")
    return hotel


# Rota 3: Cadastro de Hotel
@router.post("", name="create_hotel", dependencies=[can_edit])
def create_hotel(payload: HotelIn, db: Database = Depends(get_db)):
    result = db.execute(f"INSERT INTO hotels ({_COLUMNS}) VALUES ({_MARKS})", _values(payload))
    return show_hotel(result.inserted_id, db)


# Rota 4: Atualização (sobrescreve todos os campos editáveis)
@router.put("/{hotel_id}", name="update_hotel", dependencies=[can_edit])
def update_hotel(hotel_id: int, payload: HotelIn, db: Database = Depends(get_db)):
    result = db.execute(
        f"UPDATE hotels SET {_ASSIGN} WHERE id = ?", [*_values(payload), hotel_id]
    )
    if result.rows_affected == 0:
        raise NotFound("Hotel not found")
    return show_hotel(hotel_id, db)


# Rota 5: Deletar Hotel
@router.delete("/{hotel_id}", name="delete_hotel", dependencies=[can_edit])
def delete_hotel(hotel_id: int, db: Database = Depends(get_db)):
    # Viagens com este hotel_id ficam com hotel_name nulo na listagem
    db.execute("DELETE FROM hotels WHERE id = ?", (hotel_id,))
    return {"message": "Hotel deleted successfully"}

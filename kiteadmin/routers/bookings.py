from fastapi import APIRouter, Depends

from kiteadmin.auth_utils import require_authenticated, require_role
from kiteadmin.database import Database, get_db
from kiteadmin.errors import NotFound, ValidationError
from kiteadmin.models.booking import BOOKING_FIELDS, BookingIn

router = APIRouter(
    prefix="/api/bookings",
    tags=["bookings"],
    dependencies=[Depends(require_authenticated)],
)

can_edit = Depends(require_role("admin", "manager"))

BOOKING_SELECT = """
    SELECT b.*,
           c.name AS client_name, c.email AS client_email,
           t.name AS trip_name, t.start_date, t.end_date, t.price
    FROM bookings b
    LEFT JOIN clients c ON b.client_id = c.id
    LEFT JOIN trips t ON b.trip_id = t.id
"""

_COLUMNS = ", ".join(BOOKING_FIELDS)
_MARKS = ", ".join("?" for _ in BOOKING_FIELDS)
_ASSIGN = ", ".join(f"{field} = ?" for field in BOOKING_FIELDS)


def _values(payload: BookingIn) -> list:
    # Não verifica lotação, conflito de datas nem se cliente/viagem existem
    missing = [
        field
        for field in ("client_id", "trip_id", "booking_date")
        if getattr(payload, field) is None
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    data = payload.model_dump(mode="json")
    return [data[field] for field in BOOKING_FIELDS]


@router.get("", name="list_bookings")
def list_bookings(db: Database = Depends(get_db)):
    return db.query_all(BOOKING_SELECT + " ORDER BY b.booking_date DESC")


@router.get("/{booking_id}", name="show_booking")
def show_booking(booking_id: int, db: Database = Depends(get_db)):
    booking = db.query_one(BOOKING_SELECT + " WHERE b.id = ?", (booking_id,))
    if booking is None:
        raise NotFound("Booking not found")
    return booking


# Qualquer usuário logado pode criar reservas
@router.post("", name="create_booking")
def create_booking(payload: BookingIn, db: Database = Depends(get_db)):
    result = db.execute(f"INSERT INTO bookings ({_COLUMNS}) VALUES ({_MARKS})", _values(payload))
    return show_booking(result.inserted_id, db)


@router.put("/{booking_id}", name="update_booking", dependencies=[can_edit])
def update_booking(booking_id: int, payload: BookingIn, db: Database = Depends(get_db)):
    result = db.execute(
        f"UPDATE bookings SET {_ASSIGN} WHERE id = ?", [*_values(payload), booking_id]
    )
    if result.rows_affected == 0:
        raise NotFound("Booking not found")
    return show_booking(booking_id, db)


@router.delete("/{booking_id}", name="delete_booking", dependencies=[can_edit])
def delete_booking(booking_id: int, db: Database = Depends(get_db)):
    db.execute("DELETE FROM bookings WHERE id = ?", (booking_id,))
    return {"message": "Booking deleted successfully"}

from fastapi import APIRouter, Depends

from kiteadmin.auth_utils import require_authenticated, require_role
from kiteadmin.database import Database, get_db
from kiteadmin.errors import NotFound, ValidationError
from kiteadmin.models.trip import TRIP_FIELDS, TripIn

router = APIRouter(
    prefix="/api/trips",
    tags=["trips"],
    dependencies=[Depends(require_authenticated)],
)

can_edit = Depends(require_role("admin", "manager"))

# LEFT JOIN: viagem com hotel apagado continua aparecendo, com hotel_name nulo
TRIP_SELECT = """
    SELECT t.*, h.name AS hotel_name, h.location AS hotel_location
    FROM trips t
    LEFT JOIN hotels h ON t.hotel_id = h.id
"""

_COLUMNS = ", ".join(TRIP_FIELDS)
_MARKS = ", ".join("?" for _ in TRIP_FIELDS)
_ASSIGN = ", ".join(f"{field} = ?" for field in TRIP_FIELDS)


def _values(payload: TripIn) -> list:
    missing = [
        field
        for field in ("name", "start_date", "end_date", "price")
        if getattr(payload, field) in (None, "")
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    if payload.end_date < payload.start_date:
        raise ValidationError("end_date must be on or after start_date")

    data = payload.model_dump(mode="json")
    return [data[field] for field in TRIP_FIELDS]


@router.get("", name="list_trips")
def list_trips(db: Database = Depends(get_db)):
    return db.query_all(TRIP_SELECT + " ORDER BY t.start_date")


@router.get("/{trip_id}", name="show_trip")
def show_trip(trip_id: int, db: Database = Depends(get_db)):
    trip = db.query_one(TRIP_SELECT + " WHERE t.id = ?", (trip_id,))
    if trip is None:
        raise NotFound("Trip not found")
    return trip


@router.post("", name="create_trip", dependencies=[can_edit])
def create_trip(payload: TripIn, db: Database = Depends(get_db)):
    result = db.execute(f"INSERT INTO trips ({_COLUMNS}) VALUES ({_MARKS})", _values(payload))
    return show_trip(result.inserted_id, db)


@router.put("/{trip_id}", name="update_trip", dependencies=[can_edit])
def update_trip(trip_id: int, payload: TripIn, db: Database = Depends(get_db)):
    result = db.execute(f"UPDATE trips SET {_ASSIGN} WHERE id = ?", [*_values(payload), trip_id])
    if result.rows_affected == 0:
        raise NotFound("Trip not found")
    return show_trip(trip_id, db)


@router.delete("/{trip_id}", name="delete_trip", dependencies=[can_edit])
def delete_trip(trip_id: int, db: Database = Depends(get_db)):
    db.execute("DELETE FROM trips WHERE id = ?", (trip_id,))
    return {"message": "Trip deleted successfully"}

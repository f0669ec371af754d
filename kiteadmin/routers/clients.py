from fastapi import APIRouter, Depends

from kiteadmin.auth_utils import require_authenticated, require_role
from kiteadmin.database import Database, get_db
from kiteadmin.errors import NotFound, ValidationError
from kiteadmin.models.client import CLIENT_FIELDS, ClientIn

router = APIRouter(
    prefix="/api/clients",
    tags=["clients"],
    dependencies=[Depends(require_authenticated)],
)

can_edit = Depends(require_role("admin", "manager"))

_COLUMNS = ", ".join(CLIENT_FIELDS)
_MARKS = ", ".join("?" for _ in CLIENT_FIELDS)
_ASSIGN = ", ".join(f"{field} = ?" for field in CLIENT_FIELDS)


def _values(payload: ClientIn) -> list:
    if not payload.name or not payload.name.strip():
        raise ValidationError("Name is required")
    data = payload.model_dump(mode="json")
    return [data[field] for field in CLIENT_FIELDS]


# Rota 1: Listar Clientes
@router.get("", name="list_clients")
def list_clients(db: Database = Depends(get_db)):
    return db.query_all("SELECT * FROM clients ORDER BY name")


# Rota 2: Detalhes de um Cliente
@router.get("/{client_id}", name="show_client")
def show_client(client_id: int, db: Database = Depends(get_db)):
    client = db.query_one("SELECT * FROM clients WHERE id = ?", (client_id,))
    if client is None:
        raise NotFound("Client not found")
    return client


# Rota 3: Cadastro de Cliente
@router.post("", name="create_client", dependencies=[can_edit])
def create_client(payload: ClientIn, db: Database = Depends(get_db)):
    result = db.execute(f"INSERT INTO clients ({_COLUMNS}) VALUES ({_MARKS})", _values(payload))
    return show_client(result.inserted_id, db)


# Rota 4: Atualização (sobrescreve todos os campos editáveis)
@router.put("/{client_id}", name="update_client", dependencies=[can_edit])
def update_client(client_id: int, payload: ClientIn, db: Database = Depends(get_db)):
    result = db.execute(
        f"UPDATE clients SET {_ASSIGN} WHERE id = ?", [*_values(payload), client_id]
    )
    if result.rows_affected == 0:
        raise NotFound("Client not found")
    return show_client(client_id, db)


# Rota 5: Deletar Cliente
@router.delete("/{client_id}", name="delete_client", dependencies=[can_edit])
def delete_client(client_id: int, db: Database = Depends(get_db)):
    # Reservas que apontam para o cliente continuam existindo
    db.execute("DELETE FROM clients WHERE id = ?", (client_id,))
    return {"message": "Client deleted successfully"}

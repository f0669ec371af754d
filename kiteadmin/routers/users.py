import logging

from fastapi import APIRouter, Depends

from kiteadmin.auth_utils import (
    ROLES,
    SEED_ADMIN_USERNAME,
    create_user_account,
    require_authenticated,
    require_role,
)
from kiteadmin.database import Database, get_db
from kiteadmin.errors import DuplicateUsername, NotFound, ValidationError
from kiteadmin.models.user import SignupRequest, UserUpdate
from kiteadmin.sessions import SessionData

logger = logging.getLogger(__name__)

# Todas as rotas de usuários são exclusivas do admin
router = APIRouter(
    prefix="/api/users",
    tags=["users"],
    dependencies=[Depends(require_role("admin"))],
)

USER_COLUMNS = "id, username, role, created_at"


def count_admins(db: Database) -> int:
    row = db.query_one("SELECT COUNT(*) AS count FROM users WHERE role = ?", ("admin",))
    return int(row["count"]) if row else 0


@router.get("", name="list_users")
def list_users(db: Database = Depends(get_db)):
    return db.query_all(f"SELECT {USER_COLUMNS} FROM users ORDER BY username")


@router.get("/{user_id}", name="show_user")
def show_user(user_id: int, db: Database = Depends(get_db)):
    user = db.query_one(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,))
    if user is None:
        raise NotFound("User not found")
    return user


@router.post("", name="create_user")
def create_user(payload: SignupRequest, db: Database = Depends(get_db)):
    account = create_user_account(db, payload.username, payload.password, payload.role or "user")
    return show_user(account["id"], db)


@router.put("/{user_id}", name="update_user")
def update_user(user_id: int, payload: UserUpdate, db: Database = Depends(get_db)):
    username, role = payload.username, payload.role
    if not username or not role:
        raise ValidationError("Username and role are required")
    if role not in ROLES:
        raise ValidationError("Invalid role. Must be admin, manager, or user")
    if role == "admin":
        raise ValidationError(
            "Cannot change role to admin. Only the default admin user can have admin role."
        )

    # 1. Estado atual do usuário (lido agora, não da sessão)
    current_user = db.query_one("SELECT role, username FROM users WHERE id = ?", (user_id,))
    if current_user is None:
        raise NotFound("User not found")

    # 2. O admin padrão não muda de papel nem de nome
    if current_user["username"] == SEED_ADMIN_USERNAME:
        raise ValidationError("Cannot change the default admin user's role.")

    # 3. Nunca deixar o sistema sem admin
    if current_user["role"] == "admin" and count_admins(db) <= 1:
        raise ValidationError("Cannot change role. At least one admin user is required.")

    if username != current_user["username"]:
        taken = db.query_one(
            "SELECT id FROM users WHERE username = ? AND id <> ?", (username, user_id)
        )
        if taken:
            raise DuplicateUsername()

    db.execute("UPDATE users SET username = ?, role = ? WHERE id = ?", (username, role, user_id))
    logger.info("Usuário %s atualizado: %s (%s)", user_id, username, role)
    return {"id": user_id, "username": username, "role": role}


@router.delete("/{user_id}", name="delete_user")
def delete_user(
    user_id: int,
    db: Database = Depends(get_db),
    current: SessionData = Depends(require_authenticated),
):
    if user_id == current.user_id:
        raise ValidationError("Cannot delete your own account")

    user = db.query_one("SELECT role, username FROM users WHERE id = ?", (user_id,))
    if user is not None and user["role"] == "admin" and count_admins(db) <= 1:
        raise ValidationError("Cannot delete the last admin user")
    if user is not None and user["username"] == SEED_ADMIN_USERNAME:
        raise ValidationError("Cannot delete the default admin user")

    db.execute("DELETE FROM users WHERE id = ?", (user_id,))
    logger.info("Usuário %s removido", user_id)
    return {"message": "User deleted successfully"}

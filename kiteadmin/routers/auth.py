import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from kiteadmin.auth_utils import (
    create_user_account,
    get_current_session,
    verify_and_upgrade_password,
)
from kiteadmin.database import Database, get_db
from kiteadmin.errors import InvalidCredentials, StoreError, ValidationError
from kiteadmin.models.user import LoginRequest, SignupRequest
from kiteadmin.sessions import SessionData, SessionStore, get_session_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


# --- ROTA 1: LOGIN ---
@router.post("/login", name="login")
def login(
    request: Request,
    payload: LoginRequest,
    db: Database = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
):
    """Confere usuário e senha e abre uma sessão no servidor."""
    if not payload.username or not payload.password:
        raise ValidationError("Username and password are required")

    user = db.query_one("SELECT * FROM users WHERE username = ?", (payload.username,))
    if user is None:
        logger.info("Login recusado para '%s'", payload.username)
        raise InvalidCredentials()
    valid, new_hash = verify_and_upgrade_password(payload.password, user["password"])
    if not valid:
        logger.info("Login recusado para '%s'", payload.username)
        raise InvalidCredentials()
    if new_hash:
        # senha do servidor antigo (bcrypt): regrava no esquema atual
        db.execute("UPDATE users SET password = ? WHERE id = ?", (new_hash, user["id"]))
        logger.info("Hash de senha de '%s' atualizado", user["username"])

    role = user["role"] or "user"
    old_sid = request.session.get("sid")
    if old_sid:
        store.destroy(old_sid)

    # A sessão é gravada antes da resposta: a próxima requisição já a enxerga
    settings = request.app.state.settings
    sid = store.create(
        SessionData(user_id=user["id"], username=user["username"], role=role),
        settings.session_max_age,
    )
    request.session["sid"] = sid
    logger.info("Login de '%s' (%s)", user["username"], role)
    return {"message": "Login successful", "username": user["username"], "role": role}


# --- ROTA 2: LOGOUT ---
@router.post("/logout", name="logout")
def logout(request: Request, store: SessionStore = Depends(get_session_store)):
    """Destrói a sessão atual, exista ela ou não."""
    sid = request.session.get("sid")
    request.session.clear()
    if sid:
        try:
            store.destroy(sid)
        except StoreError as exc:
            logger.error("Erro ao destruir sessão: %s", exc.original)
            raise StoreError(exc.original, "Error logging out") from exc
    return {"message": "Logout successful"}


# --- ROTA 3: CADASTRO ---
@router.post("/signup", name="signup")
def signup(
    payload: SignupRequest,
    db: Database = Depends(get_db),
    current: Optional[SessionData] = Depends(get_current_session),
):
    """Cria uma conta. Só um admin logado pode escolher o papel 'manager'."""
    if payload.role == "admin":
        raise ValidationError("Cannot create admin accounts. Only the default admin user can be admin.")

    role = "user"
    if payload.role in ("manager", "user") and current is not None and current.role == "admin":
        role = payload.role

    account = create_user_account(db, payload.username, payload.password, role)
    return {"message": "Account created successfully", "username": account["username"], "role": role}


# --- ROTA 4: STATUS DA AUTENTICAÇÃO ---
@router.get("/auth/status", name="auth_status")
def auth_status(request: Request, store: SessionStore = Depends(get_session_store)):
    """Nunca falha: sem sessão válida responde authenticated=false."""
    try:
        current = get_current_session(request, store)
    except StoreError as exc:
        logger.error("Erro ao consultar sessão: %s", exc.original)
        current = None

    if current is None:
        return {"authenticated": False}
    return {"authenticated": True, "username": current.username, "role": current.role}

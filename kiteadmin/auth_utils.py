import logging
from typing import Optional, Tuple

from fastapi import Depends, Request
from passlib.context import CryptContext

from kiteadmin.database import Database
from kiteadmin.errors import DuplicateUsername, Forbidden, Unauthorized, ValidationError
from kiteadmin.sessions import SessionData, SessionStore, get_session_store

logger = logging.getLogger(__name__)

# Configura o algoritmo de hashing (lento e com salt).
# bcrypt fica só para conferir as senhas gravadas pelo servidor antigo.
pwd_context = CryptContext(schemes=["scrypt", "bcrypt"], deprecated="auto")

SEED_ADMIN_USERNAME = "admin"
ROLES = ("admin", "manager", "user")
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica se a senha pura corresponde ao hash salvo."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # hash em formato desconhecido nunca confere
        logger.warning("Hash de senha em formato não reconhecido")
        return False


def verify_and_upgrade_password(
    plain_password: str, hashed_password: str
) -> Tuple[bool, Optional[str]]:
    """Como `verify_password`, mas devolve também o hash novo quando o atual
    usa um esquema obsoleto (bcrypt), para ser regravado."""
    try:
        return pwd_context.verify_and_update(plain_password, hashed_password)
    except ValueError:
        logger.warning("Hash de senha em formato não reconhecido")
        return False, None


def get_password_hash(password: str) -> str:
    """Gera um hash para a senha pura."""
    return pwd_context.hash(password)


def ensure_seed_admin(db: Database, password: str) -> None:
    """Garante o usuário 'admin' padrão, sempre com papel admin.

    Pode rodar a cada inicialização: cria se faltar, devolve o papel
    admin se alguém o tiver alterado no banco.
    """
    admin_user = db.query_one("SELECT id, role FROM users WHERE username = ?", (SEED_ADMIN_USERNAME,))

    if admin_user is None:
        db.execute(
            "INSERT INTO users (username, password, role) VALUES (?, ?, ?) "
            "ON CONFLICT (username) DO NOTHING",
            (SEED_ADMIN_USERNAME, get_password_hash(password), "admin"),
        )
        logger.info("Usuário 'admin' padrão criado com sucesso.")
    elif admin_user["role"] != "admin":
        db.execute(
            "UPDATE users SET role = ? WHERE username = ?", ("admin", SEED_ADMIN_USERNAME)
        )
        logger.warning("Papel do usuário 'admin' restaurado para admin.")
    else:
        logger.info("Usuário 'admin' já existe.")


def validate_credentials(username: Optional[str], password: Optional[str]) -> None:
    if not username or not password:
        raise ValidationError("Username and password are required")
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters long")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def create_user_account(db: Database, username: str, password: str, role: str = "user") -> dict:
    """Valida e grava uma nova conta. Nunca cria admin."""
    validate_credentials(username, password)
    if role == "admin":
        raise ValidationError("Cannot create admin accounts. Only the default admin user can be admin.")
    if role not in ROLES:
        raise ValidationError("Invalid role. Must be manager or user")

    if db.query_one("SELECT id FROM users WHERE username = ?", (username,)):
        raise DuplicateUsername()

    result = db.execute(
        "INSERT INTO users (username, password, role) VALUES (?, ?, ?)",
        (username, get_password_hash(password), role),
    )
    logger.info("Conta '%s' criada com papel %s", username, role)
    return {"id": result.inserted_id, "username": username, "role": role}


# --- Sessão e guardas de rota ---
def get_current_session(
    request: Request, store: SessionStore = Depends(get_session_store)
) -> Optional[SessionData]:
    """Sessão válida anexada à requisição, ou None."""
    sid = request.session.get("sid")
    if not sid:
        return None
    current = store.get(sid)
    if current is None:
        # expirou ou foi destruída: o cookie não serve mais
        request.session.clear()
        return None
    settings = request.app.state.settings
    if settings.session_rolling:
        store.touch(sid, settings.session_max_age)
    return current


def require_authenticated(
    current: Optional[SessionData] = Depends(get_current_session),
) -> SessionData:
    """Exige usuário logado (401 caso contrário)."""
    if current is None:
        raise Unauthorized()
    return current


def require_role(*allowed_roles: str):
    """Exige um dos papéis listados. Não há hierarquia: admin precisa ser listado."""
    allowed = frozenset(allowed_roles)

    def dependency(current: SessionData = Depends(require_authenticated)) -> SessionData:
        if current.role not in allowed:
            raise Forbidden()
        return current

    return dependency

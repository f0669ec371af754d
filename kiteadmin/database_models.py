import logging

from sqlalchemy import Column, Date, DateTime, Float, Integer, Text, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base

from kiteadmin.database import Database
from kiteadmin.errors import StoreError

logger = logging.getLogger(__name__)

# Os modelos só descrevem o esquema; as rotas consultam via `Database`.
Base = declarative_base()

# hotel_id, client_id e trip_id são inteiros simples, sem FOREIGN KEY:
# apagar um hotel/cliente/viagem não apaga nem bloqueia quem aponta para ele.


# 1. Usuários do sistema
class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(Text, unique=True, nullable=False)
    password = Column(Text, nullable=False)  # sempre o hash
    role = Column(Text, server_default="user")
    created_at = Column(DateTime, server_default=func.current_timestamp())


# 2. Clientes
class Client(Base):
    __tablename__ = "clients"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    email = Column(Text)
    phone = Column(Text)
    address = Column(Text)
    nationality = Column(Text)
    notes = Column(Text)
    cpf = Column(Text)
    birth_date = Column(Text)
    created_at = Column(DateTime, server_default=func.current_timestamp())


# 3. Hotéis
class Hotel(Base):
    __tablename__ = "hotels"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    location = Column(Text)
    address = Column(Text)
    phone = Column(Text)
    email = Column(Text)
    website = Column(Text)
    pix = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, server_default=func.current_timestamp())


# 4. Viagens (trips)
class Trip(Base):
    __tablename__ = "trips"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    description = Column(Text)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    price = Column(Float, nullable=False)
    hotel_id = Column(Integer)
    max_participants = Column(Integer)
    created_at = Column(DateTime, server_default=func.current_timestamp())


# 5. Reservas
class Booking(Base):
    __tablename__ = "bookings"
    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, nullable=False)
    trip_id = Column(Integer, nullable=False)
    booking_date = Column(Date, nullable=False)
    status = Column(Text, server_default="pending")
    participants = Column(Integer, server_default="1")
    created_at = Column(DateTime, server_default=func.current_timestamp())


# Colunas que surgiram depois do esquema original: (tabela, coluna, tipo)
ADDITIVE_COLUMNS = [
    ("users", "role", "TEXT DEFAULT 'user'"),
    ("clients", "nationality", "TEXT"),
    ("clients", "notes", "TEXT"),
    ("clients", "cpf", "TEXT"),
    ("clients", "birth_date", "TEXT"),
    ("hotels", "website", "TEXT"),
    ("hotels", "pix", "TEXT"),
    ("hotels", "notes", "TEXT"),
]


def add_missing_columns(db: Database) -> None:
    """Aplica as colunas aditivas; rodar de novo não muda nada."""
    for table, column, ddl in ADDITIVE_COLUMNS:
        if db.kind == "postgres":
            db.execute(f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {column} {ddl}")
            continue
        # SQLite não tem "IF NOT EXISTS" aqui: ignora só coluna duplicada
        try:
            db.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}")
        except StoreError as exc:
            if "duplicate column" not in str(exc.detail).lower():
                raise
        else:
            logger.info("Coluna %s.%s adicionada", table, column)


def init_schema(db: Database) -> None:
    """CREATE TABLE IF NOT EXISTS para todas as tabelas + colunas novas."""
    try:
        Base.metadata.create_all(bind=db.engine)
    except SQLAlchemyError as exc:
        raise StoreError(getattr(exc, "orig", None) or exc) from exc
    add_missing_columns(db)
    logger.info("Esquema do banco pronto (%s)", db.kind)

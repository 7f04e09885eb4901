import importlib

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from electrosense.config import settings

Base = declarative_base()

# Every module holding ORM tables; imported before create_all so metadata is populated.
MODEL_MODULES = [
    "electrosense.models.product",
    "electrosense.models.category",
    "electrosense.models.order",
    "electrosense.models.cart",
    "electrosense.models.cart_item",
    "electrosense.models.user",
]


def make_engine(url: str) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # sessions are used from worker threads (TestClient, scheduler jobs)
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(url, future=True, echo=False, connect_args=connect_args)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


DATABASE_URL = settings.DATABASE_URL
engine = make_engine(DATABASE_URL)
SessionLocal = make_session_factory(engine)


def init_db(bind: Engine = None, reset: bool = None):
    """
    Create all tables on `bind` (the application engine by default).

    When `reset` is true (or RESET_DB is set and `reset` is not given) the
    tables are dropped first.
    """
    from electrosense.utils.logging import get_logger

    log = get_logger("db")
    bind = bind if bind is not None else engine
    if reset is None:
        reset = settings.RESET_DB

    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset:
        log.info("Resetting database tables")
        Base.metadata.drop_all(bind=bind)
    Base.metadata.create_all(bind=bind)
    log.info("Database initialized (%d tables)", len(Base.metadata.tables))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

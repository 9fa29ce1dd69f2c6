import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from careerfair.config import get_settings

logger = logging.getLogger(__name__)

Base = declarative_base()

# execution option asking SQLite for the write lock up front
WRITE_LOCK_OPTION = "careerfair_write_lock"


def make_engine(url: str, busy_timeout: float | None = None):
    """
    Build an engine for the appointment store.

    SQLite runs in WAL mode with plain deferred transactions, so readers never
    wait on each other or on a booking. Sessions that call ``begin_write``
    open their transaction with BEGIN IMMEDIATE instead: the read-check-insert
    of a booking then holds the write lock and concurrent bookers queue behind
    it for up to ``busy_timeout`` seconds. Other backends rely on the partial
    unique indexes declared on the appointments table.
    """
    if busy_timeout is None:
        busy_timeout = get_settings().DB_BUSY_TIMEOUT
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(
        url, connect_args={"check_same_thread": False, "timeout": busy_timeout}
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        # pysqlite would otherwise emit its own deferred BEGIN
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys = ON")
        dbapi_connection.execute("PRAGMA journal_mode = WAL")

    @event.listens_for(engine, "begin")
    def _begin(conn):
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


engine = make_engine(get_settings().DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def begin_write(db: Session):
    """
    Start a writer transaction on ``db``. Any open read transaction is
    committed first so the write lock is taken before the first read.
    """
    if db.in_transaction():
        db.commit()
    db.connection(execution_options={WRITE_LOCK_OPTION: True})


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Per-company booking policies are plain data on the company rows.
COMPANY_SEED = [
    {
        "id": "c-anton-paar",
        "name": "Anton Paar",
        "industry": "Technology",
        "package_type": "Platinum",
        "interview_unit": "standard",
        "positions": ["Software Engineer", "Data Scientist", "Product Manager", "UX Designer"],
        "website": "https://www.anton-paar.com/at-de/",
    },
    {
        "id": "c-siemens",
        "name": "Siemens",
        "industry": "Technology",
        "package_type": "Platinum",
        "interview_unit": "standard",
        "positions": ["Cloud Engineer", "Software Developer", "AI Engineer"],
        "website": "https://www.siemens.com/at/de.html",
        # waiting for a valid contract
        "booking_enabled": False,
    },
    {
        "id": "c-netconomy",
        "name": "Netconomy",
        "industry": "E-commerce/Cloud",
        "package_type": "Gold",
        "interview_unit": "quick",
        "positions": ["DevOps Engineer", "Business Analyst", "Solutions Architect"],
        "website": "https://netconomy.net/",
        "special_requirements": ["visa-interest-confirmation"],
    },
    {
        "id": "c-ssi-schaefer",
        "name": "SSI SCHÄFER",
        "industry": "Automotive/Energy",
        "package_type": "Gold",
        "interview_unit": "quick",
        "positions": ["Mechanical Engineer", "Software Engineer", "Manufacturing Engineer"],
        "website": "https://www.ssi-schaefer.com/en-de/",
    },
    {
        "id": "c-beyond-now",
        "name": "Beyond Now",
        "industry": "Technology",
        "package_type": "Platinum",
        "interview_unit": "quick",
        "capacity_per_slot": 1,
        "positions": ["iOS Developer", "Machine Learning Engineer"],
        "website": "https://www.beyondnow.com/en/",
    },
    {
        "id": "c-oebb",
        "name": "ÖBB",
        "industry": "Transport",
        "package_type": "Silver",
        "interview_unit": "quick",
        "positions": ["Frontend Developer", "Data Engineer"],
        "website": "https://www.oebb.at/en/",
        "special_requirements": ["language-confirmation"],
    },
]


def seed_companies(db: Session) -> int:
    """Insert the fair's companies that are not present yet. Returns how many were added."""
    from careerfair.models import Company

    begin_write(db)
    added = 0
    for data in COMPANY_SEED:
        if db.get(Company, data["id"]) is None:
            db.add(Company(**data))
            added += 1
    db.commit()
    return added


def init_db(bind=None, seed: bool | None = None):
    # Import models here to create tables
    from careerfair import models  # noqa: F401

    bind = bind or engine
    Base.metadata.create_all(bind=bind)

    if seed is None:
        seed = get_settings().SEED_COMPANIES
    if not seed:
        return
    db = Session(bind=bind)
    try:
        added = seed_companies(db)
        if added:
            logger.info(f"[Seed] Added {added} companies")
    finally:
        db.close()

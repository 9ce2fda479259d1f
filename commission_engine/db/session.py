from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from commission_engine.core.config import SQLALCHEMY_DATABASE_URI, SQL_ECHO

is_sqlite = SQLALCHEMY_DATABASE_URI.startswith("sqlite")

engine = create_engine(
    SQLALCHEMY_DATABASE_URI,
    pool_pre_ping=True,
    echo=SQL_ECHO,
    connect_args={"check_same_thread": False} if is_sqlite else {},
)

if is_sqlite:
    # Records, tracking rows and audits reference each other by id; SQLite only checks that when asked
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

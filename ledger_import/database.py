from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from ledger_import.db_models import Base


def build_session_factory(database_url: str, password: str | None = None) -> sessionmaker[Session]:
    url = make_url(database_url)
    if password and not url.drivername.startswith("sqlite"):
        url = url.set(password=password)

    connect_args: dict[str, object] = {}
    if url.drivername.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(url, future=True, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

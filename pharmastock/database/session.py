from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from pharmastock.database.engine import engine


def make_session_factory(bind: Engine) -> sessionmaker:
    """Sessions keep loaded rows after commit so responses can be built from them."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
    )


SessionLocal = make_session_factory(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

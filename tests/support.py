from pharmastock.core.constants import ReasonCode
from pharmastock.database.base import Base
from pharmastock.database.engine import build_engine
from pharmastock.database.session import make_session_factory
from pharmastock.models import import_all_models
from pharmastock.services import item_service, stock_ledger


def make_sessionmaker(database_url="sqlite:///:memory:"):
    import_all_models()
    engine = build_engine(database_url)
    Base.metadata.create_all(bind=engine)
    return engine, make_session_factory(engine)


def make_item(db, name="Paracetamol", form="TABLET", expiry_date=None, stock=0, actor_id="tester"):
    item = item_service.create_item(db, name=name, form=form, expiry_date=expiry_date)
    if stock:
        stock_ledger.apply_adjustment(db, item.id, stock, ReasonCode.PURCHASE, actor_id=actor_id)
    return item

from datetime import date
from decimal import Decimal

from norden.models import Event, Expense
from norden.services import EventData, ExpenseData, save_event


def test_total_follows_quantity_and_unit_price():
    expense = Expense(type="Flete", quantity=2, unit_price=500)
    assert expense.total == Decimal("1000")

    expense.quantity = 3
    assert expense.total == Decimal("1500")

    expense.unit_price = Decimal("12.5")
    assert expense.total == Decimal("37.5")


def test_changing_type_keeps_total():
    expense = Expense(type="Flete", quantity=4, unit_price=25)
    expense.type = "Transporte"
    assert expense.total == Decimal("100")


def test_total_loaded_from_the_database_is_kept(db):
    event = save_event(db, EventData(
        date=date(2026, 6, 1),
        agreed_price=Decimal("1000"),
        expenses=[ExpenseData("Sillas", Decimal("10"), Decimal("20"))],
    ))
    event_id = event.id

    # simulate a direct database edit
    db.execute(Expense.__table__.update().values(total=Decimal("999")))
    db.commit()
    db.expire_all()

    stored = db.get(Event, event_id)
    assert stored.expenses[0].total == Decimal("999")
    assert stored.expenses[0].quantity == Decimal("10")

import io

import pytest

from pizzastore import (
    AccessGuard,
    AccountManager,
    Console,
    DatabaseManager,
    OrderManager,
    Role,
    Session,
)


class ScriptedConsole(Console):
    """console fed from a list of answers, output kept in memory"""
    def __init__(self, answers=()):
        self.answers = list(answers)
        super().__init__(self._next_answer, io.StringIO())

    def _next_answer(self, prompt):
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)

    def feed(self, *answers):
        self.answers.extend(answers)

    @property
    def output(self):
        return self.stream.getvalue()


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    monkeypatch.setenv("NO_COLOR", "1")


def _populate(db, with_orders=True):
    for row in [
        ("alice", "pw", "customer", None, "555-0001"),
        ("bob", "hunter2", "customer", "Soda", "555-0002"),
        ("dana", "drive", "driver", None, "555-0003"),
        ("mona", "boss", "manager", None, "555-0004"),
    ]:
        db.execute_write(
            "INSERT INTO Users(login, password, role, favoriteItems, phoneNum) VALUES(?,?,?,?,?);", row
        )
    for row in [
        ("Margherita", "entree", "9.50", "cheese and tomato", "dough, tomato, mozzarella"),
        ("Soda", "drinks", "1.25", "fizzy", "water, sugar"),
        ("Garlic Bread", "sides", "4.99", "garlicky", "bread, garlic"),
    ]:
        db.execute_write(
            "INSERT INTO Items(itemName, typeOfItem, price, description, ingredients) VALUES(?,?,?,?,?);", row
        )
    for row in [(1, "1 Main St", "Riverside", "CA", "yes", 4.5), (2, "2 Oak Ave", "Corona", "CA", "no", 3.0)]:
        db.execute_write(
            "INSERT INTO Store(storeID, address, city, state, isOpen, reviewScore) VALUES(?,?,?,?,?,?);", row
        )
    if with_orders:
        for row in [
            (3, "bob", 2, "2.50", "2024-01-01 10:00:00", "complete"),
            (7, "alice", 1, "9.50", "2024-01-02 10:00:00", "complete"),
        ]:
            db.execute_write(
                "INSERT INTO FoodOrder(orderID, login, storeID, totalPrice, orderTimestamp, orderStatus) "
                "VALUES(?,?,?,?,?,?);",
                row
            )
        db.execute_write("INSERT INTO ItemsInOrder(orderID, itemName, quantity) VALUES (3, 'Soda', 2);")
        db.execute_write("INSERT INTO ItemsInOrder(orderID, itemName, quantity) VALUES (7, 'Margherita', 1);")


@pytest.fixture
def db():
    database = DatabaseManager(":memory:", seed=False)
    _populate(database)
    yield database
    database.close()


@pytest.fixture
def empty_history_db():
    database = DatabaseManager(":memory:", seed=False)
    _populate(database, with_orders=False)
    yield database
    database.close()


@pytest.fixture
def console():
    return ScriptedConsole()


@pytest.fixture
def accounts(db, console):
    return AccountManager(db, console)


@pytest.fixture
def orders(db, console, accounts):
    return OrderManager(db, console, accounts, AccessGuard(db))


@pytest.fixture
def alice():
    return Session("alice", Role.CUSTOMER)


@pytest.fixture
def bob():
    return Session("bob", Role.CUSTOMER)


@pytest.fixture
def driver():
    return Session("dana", Role.DRIVER)


@pytest.fixture
def manager():
    return Session("mona", Role.MANAGER)

#!/usr/bin/env python3.13
#
#  pizzastore 🍕
#  numbered-menu client for the pizza store database:
#  customers order, drivers deliver, managers run the place
#
# --sql is used for syntax highlighting inline sql queries

import argparse
import atexit
import configparser
import logging
import os
import signal
import sqlite3
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Sequence

from dotenv import load_dotenv
from termcolor import cprint, colored
from colorama import just_fix_windows_console as enable_windows_ansi_interpretation

logger = logging.getLogger(__name__)

# constants
MAX_LOGIN_LENGTH = 50
MAX_PASSWORD_LENGTH = 30
MAX_PHONE_LENGTH = 20
MAX_STATUS_LENGTH = 50
MAX_ITEM_NAME_LENGTH = 50
NULL_MARKER = "null"
NULL_WIDTH = 4
COLUMN_SEPARATOR = " | "
RECENT_ORDER_LIMIT = 5
INITIAL_ORDER_STATUS = "incomplete"
ITEM_TYPES = ("entree", "sides", "drinks")

# errors
class PizzaStoreError(Exception):
    """base for everything the client reports back to the user"""

class ValidationError(PizzaStoreError):
    """input out of bounds, empty, or naming something that does not exist"""

class PricingError(ValidationError):
    """an item price is missing or unparseable"""

class EmptyOrderHistory(ValidationError):
    """no previous order to derive the next order id from"""

class BackendError(PizzaStoreError):
    """query or connectivity failure carrying the backend's diagnostic"""

class ConsistencyFailure(BackendError):
    """a multi-statement write failed part way through and was rolled back"""

class AuthorizationDenied(PizzaStoreError):
    """the session's role may not see or do this"""

class AuthenticationFailed(PizzaStoreError):
    """unknown login or wrong password"""

# helpers
def safe_int(value: str, minimum: int | None = None):
    """return int value or none if invalid / below minimum"""
    try:
        v = int(value)
        if minimum is not None and v < minimum:
            return None
        return v
    except ValueError:
        return None

def parse_boolean_input(answer: str) -> bool | None:
    """parse y/n style input; none if it is neither"""
    a = answer.lower().strip()
    if a in ("y", "yes"):
        return True
    if a in ("n", "no"):
        return False
    return None

# configuration
class Config:
    """ini file + environment configuration, with defaults for everything"""
    def __init__(self, config_file: str | os.PathLike = "pizzastore.ini"):
        load_dotenv()
        self.config = configparser.ConfigParser()
        self._set_defaults()
        self.path = Path(config_file)
        if self.path.exists():
            self.config.read(self.path)
        env_db = os.getenv("PIZZASTORE_DB")
        if env_db:
            self.config["database"]["path"] = env_db

    def _set_defaults(self):
        self.config["database"] = {
            "path": "pizzastore.db",
            "bootstrap": "true",
            "seed": "true",
            "timeout": "5.0",
        }
        self.config["logging"] = {
            "level": "INFO",
            "file": "logs/pizzastore.log",
        }

    @property
    def database_path(self) -> str:
        return self.config["database"].get("path")

    @property
    def timeout(self) -> float:
        return self.config["database"].getfloat("timeout", 5.0)

    def should_bootstrap(self) -> bool:
        return self.config["database"].getboolean("bootstrap", True)

    def should_seed(self) -> bool:
        return self.config["database"].getboolean("seed", True)

    def setup_logging(self):
        """log to a file; the terminal belongs to the menu"""
        log_config = self.config["logging"]
        level = getattr(logging, log_config.get("level", "INFO").upper(), logging.INFO)
        log_file = log_config.get("file", "logs/pizzastore.log")
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            handlers=[logging.FileHandler(log_file)],
        )

# terminal
class Console:
    """where prompts are read from and where output goes (swappable for scripted sessions)"""
    def __init__(self, input_fn: Callable[[str], str] = input, stream=None):
        self._input = input_fn
        self._stream = stream

    @property
    def stream(self):
        return self._stream if self._stream is not None else sys.stdout

    def ask(self, prompt: str, color: str | None = "magenta") -> str:
        return self._input(colored(prompt, color) if color else prompt).strip()

    def say(self, text: str = "", color: str | None = None, attrs: list[str] | None = None):
        cprint(text, color, attrs=attrs, file=self.stream)

    def error(self, text: str):
        self.say(text, "red")

    def warn(self, text: str):
        self.say(text, "yellow")

    def success(self, text: str):
        self.say(text, "green")

    def ask_yes_no(self, prompt: str) -> bool:
        """keep asking until the answer is y or n"""
        while True:
            answer = parse_boolean_input(self.ask(f"{prompt} (y/n)? ", None))
            if answer is not None:
                return answer
            self.error("please enter 'y' or 'n'.")

    def ask_int(self, prompt: str, minimum: int | None = 1) -> int:
        while True:
            value = safe_int(self.ask(prompt, None), minimum)
            if value is not None:
                return value
            self.error("your input is invalid!")

    def ask_text(self, item: str, max_length: int) -> str:
        """non-empty text no longer than max_length"""
        while True:
            value = self.ask(f"please enter {item} (1-{max_length} characters): ")
            if not value:
                self.error(f"{item} cannot be empty!"); continue
            if len(value) > max_length:
                self.error(f"{item} cannot be greater than {max_length} characters!"); continue
            return value

    def ask_money(self, prompt: str) -> Decimal:
        while True:
            raw = self.ask(prompt, None)
            try:
                amount = Decimal(raw)
            except InvalidOperation:
                self.error("your input is invalid!"); continue
            if not amount.is_finite():
                self.error("your input is invalid!"); continue
            if amount < 0:
                self.error("amount cannot be negative!"); continue
            return amount

# result formatting
def _cell_text(cell) -> str:
    return NULL_MARKER if cell is None else str(cell)

def format_table(columns: Sequence[str], rows: Sequence[Sequence[str | None]]) -> list[str]:
    """
    render rows under their column names, each column as wide as its widest
    entry (header included, null cells count as 4). no rows, no lines.
    """
    if not rows:
        return []
    widths = [len(name) for name in columns]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], NULL_WIDTH if cell is None else len(str(cell)))
    lines = ["".join(f"{name:<{widths[i]}}{COLUMN_SEPARATOR}" for i, name in enumerate(columns))]
    for row in rows:
        lines.append("".join(
            f"{_cell_text(cell):<{widths[i]}}{COLUMN_SEPARATOR}" for i, cell in enumerate(row)
        ))
    return lines

def format_and_print(columns: Sequence[str], rows: Sequence[Sequence[str | None]],
                     console: "Console | None" = None) -> int:
    """print a result table and return its row count"""
    console = console or Console()
    for line in format_table(columns, rows):
        console.say(line)
    return len(rows)

# database layer
class DatabaseManager:
    """own the sqlite connection; every statement in the client goes through here"""
    def __init__(self, path: str = "pizzastore.db", timeout: float = 5.0,
                 bootstrap: bool = True, seed: bool = True):
        try:
            self.conn = sqlite3.connect(path, timeout=timeout)
        except sqlite3.Error as e:
            raise BackendError(f"unable to connect to {path}: {e}") from e
        self.conn.row_factory = sqlite3.Row
        self.conn.autocommit = True
        self.execute_write("--sql\nPRAGMA foreign_keys=ON;")
        logger.info(f"connected to database {path}")
        if bootstrap:
            self._create_schema()
        if seed:
            self._seed_demo_data()

    @classmethod
    def from_config(cls, config: Config) -> "DatabaseManager":
        return cls(
            config.database_path,
            timeout=config.timeout,
            bootstrap=config.should_bootstrap(),
            seed=config.should_seed(),
        )

    def close(self):
        self.conn.close()

    def _backend_error(self, e: sqlite3.Error) -> BackendError:
        logger.error(f"statement failed: {e}")
        return BackendError(str(e))

    def execute_write(self, statement: str, params: Sequence = ()) -> int:
        """run an insert / update / delete / ddl statement, return affected row count"""
        try:
            return self.conn.execute(statement, params).rowcount
        except sqlite3.Error as e:
            raise self._backend_error(e) from e

    def execute_read_columns(self, statement: str, params: Sequence = ()) -> tuple[list[str], list[list[str | None]]]:
        """run a query, return column names and fully buffered stringified rows"""
        try:
            cur = self.conn.execute(statement, params)
            columns = [d[0] for d in cur.description or ()]
            rows = [[None if v is None else str(v) for v in row] for row in cur.fetchall()]
        except sqlite3.Error as e:
            raise self._backend_error(e) from e
        return columns, rows

    def execute_read(self, statement: str, params: Sequence = ()) -> list[list[str | None]]:
        return self.execute_read_columns(statement, params)[1]

    def execute_read_count(self, statement: str, params: Sequence = ()) -> int:
        return len(self.execute_read(statement, params))

    @contextmanager
    def transaction(self):
        """
        one unit of work under the database write lock, taken before the first
        read; commit on success, roll back on any exception
        """
        self.execute_write("--sql\nBEGIN IMMEDIATE;")
        try:
            yield self
            self.execute_write("--sql\nCOMMIT;")
        except BaseException:
            if self.conn.in_transaction:
                self.conn.execute("--sql\nROLLBACK;")
            raise

    def _create_schema(self):
        """create the store relations if missing (development bootstrap)"""
        try:
            self.conn.executescript(
                """--sql
                CREATE TABLE IF NOT EXISTS Users (
                    login VARCHAR(50) PRIMARY KEY,
                    password VARCHAR(30) NOT NULL, -- plaintext, the store never hashed them
                    role VARCHAR(20) NOT NULL CHECK (role IN ('customer', 'driver', 'manager')),
                    favoriteItems TEXT,
                    phoneNum VARCHAR(20)
                );
                CREATE TABLE IF NOT EXISTS Items (
                    itemName VARCHAR(50) PRIMARY KEY,
                    typeOfItem VARCHAR(20) NOT NULL,
                    price NUMERIC(6,2) NOT NULL CHECK (price >= 0),
                    description TEXT,
                    ingredients TEXT
                );
                CREATE TABLE IF NOT EXISTS Store (
                    storeID INTEGER PRIMARY KEY,
                    address TEXT NOT NULL,
                    city TEXT NOT NULL,
                    state TEXT NOT NULL,
                    isOpen TEXT NOT NULL DEFAULT 'yes',
                    reviewScore REAL
                );
                CREATE TABLE IF NOT EXISTS FoodOrder (
                    orderID INTEGER PRIMARY KEY,
                    login VARCHAR(50) NOT NULL REFERENCES Users(login),
                    storeID INTEGER NOT NULL REFERENCES Store(storeID),
                    totalPrice NUMERIC(8,2) NOT NULL,
                    orderTimestamp TIMESTAMP NOT NULL,
                    orderStatus TEXT
                );
                CREATE TABLE IF NOT EXISTS ItemsInOrder (
                    orderID INTEGER NOT NULL REFERENCES FoodOrder(orderID),
                    itemName VARCHAR(50) NOT NULL REFERENCES Items(itemName),
                    quantity INTEGER NOT NULL CHECK (quantity >= 1),
                    PRIMARY KEY (orderID, itemName)
                );
                """
            )
        except sqlite3.Error as e:
            raise self._backend_error(e) from e
        logger.info("schema ready")

    def _seed_demo_data(self):
        """seed catalog, stores, a manager and one historical order, once"""
        items = [
            ("Margherita", "entree", "12.99", "tomato, mozzarella, basil", "dough, tomato, mozzarella, basil"),
            ("Pepperoni", "entree", "14.50", "the classic", "dough, tomato, mozzarella, pepperoni"),
            ("Veg Supreme", "entree", "13.75", "all the garden", "dough, tomato, peppers, olives, onion"),
            ("Garlic Bread", "sides", "4.99", "buttery and loud", "bread, garlic, butter"),
            ("Wings", "sides", "7.25", "six pieces", "chicken, hot sauce"),
            ("Soda", "drinks", "1.25", "fizzy", "carbonated water, sugar"),
            ("Lemonade", "drinks", "2.50", "fresh squeezed", "lemon, water, sugar"),
        ]
        stores = [
            (1, "123 Main St", "Riverside", "CA", "yes", 4.5),
            (2, "77 Canyon Rd", "Corona", "CA", "yes", 3.9),
        ]
        try:
            with self.transaction():
                self.conn.executemany(
                    "INSERT OR IGNORE INTO Items(itemName, typeOfItem, price, description, ingredients) VALUES(?,?,?,?,?);",
                    items
                )
                self.conn.executemany(
                    "INSERT OR IGNORE INTO Store(storeID, address, city, state, isOpen, reviewScore) VALUES(?,?,?,?,?,?);",
                    stores
                )
                self.conn.execute(
                    "INSERT OR IGNORE INTO Users(login, password, role, favoriteItems, phoneNum) VALUES(?,?,?,?,?);",
                    ("admin", "admin", "manager", None, "555-0100")
                )
                # order ids are derived from the newest order, so an empty store gets one to start from
                if self.conn.execute("SELECT 1 FROM FoodOrder LIMIT 1;").fetchone() is None:
                    self.conn.execute(
                        """--sql
                        INSERT INTO FoodOrder(orderID, login, storeID, totalPrice, orderTimestamp, orderStatus)
                        VALUES (1, 'admin', 1, '12.99', '2024-01-01 12:00:00', 'complete');
                        """
                    )
                    self.conn.execute(
                        "INSERT INTO ItemsInOrder(orderID, itemName, quantity) VALUES (1, 'Margherita', 1);"
                    )
        except sqlite3.Error as e:
            raise self._backend_error(e) from e

# sessions / roles
class Role(Enum):
    CUSTOMER = "customer"
    DRIVER = "driver"
    MANAGER = "manager"

    @classmethod
    def parse(cls, value: str | None) -> "Role":
        """stored roles may carry char padding"""
        return cls((value or "").strip())

@dataclass(frozen=True)
class Session:
    login: str
    role: Role

class AccessGuard:
    """decide which orders a session may see and which operations it may run"""
    UNRESTRICTED = (Role.MANAGER, Role.DRIVER)

    def __init__(self, db: DatabaseManager):
        self.db = db

    @classmethod
    def can_view_any(cls, role: Role) -> bool:
        return role in cls.UNRESTRICTED

    def order_filter(self, session: Session) -> tuple[str, tuple]:
        """where clause restricting order listings to what the session may see"""
        if self.can_view_any(session.role):
            return "", ()
        return " WHERE login = ?", (session.login,)

    def check_order(self, session: Session, order_id: int):
        """customers only see their own orders"""
        if self.can_view_any(session.role):
            return
        owned = self.db.execute_read_count(
            "SELECT orderID FROM FoodOrder WHERE orderID = ? AND login = ?;",
            (order_id, session.login)
        )
        if owned == 0:
            raise AuthorizationDenied("you do not have access to this order.")

    @staticmethod
    def require(session: Session | None, *roles: Role):
        if session is None or session.role not in roles:
            raise AuthorizationDenied("insufficient privileges")

# accounts/auth
class AccountManager:
    """users, logins and the current session (plaintext passwords, as the store has them)"""
    PROFILE_COLUMNS = {"password": "password", "phone number": "phoneNum", "favorite items": "favoriteItems"}

    def __init__(self, db: DatabaseManager, console: Console):
        self.db = db
        self.console = console
        self.session: Session | None = None

    def resolve_role(self, login: str) -> Role:
        rows = self.db.execute_read("SELECT role FROM Users WHERE login = ?;", (login,))
        if not rows:
            raise AuthenticationFailed(f"{login} does not exist!")
        try:
            return Role.parse(rows[0][0])
        except ValueError:
            raise AuthenticationFailed(f"{login} has no valid role") from None

    def authenticate(self, login: str, password: str) -> Role:
        """check credentials (exact, case-sensitive) and return the caller's role"""
        rows = self.db.execute_read("SELECT password FROM Users WHERE login = ?;", (login,))
        if not rows:
            raise AuthenticationFailed(f"{login} does not exist!")
        stored = rows[0][0]
        if stored is None or password != stored.strip():
            raise AuthenticationFailed("wrong password!")
        return self.resolve_role(login)

    def login(self):
        """interactive login"""
        if self.session is not None:
            self.console.warn("already logged in"); return
        login = self.console.ask_text("login", MAX_LOGIN_LENGTH)
        password = self.console.ask_text("password", MAX_PASSWORD_LENGTH)
        try:
            role = self.authenticate(login, password)
        except AuthenticationFailed as e:
            self.console.error(str(e)); return
        except BackendError as e:
            self.console.error(f"error getting user login information: {e}"); return
        self.session = Session(login, role)
        logger.info(f"{login} logged in as {role.value}")
        prefix = f"{role.value} " if role is not Role.CUSTOMER else ""
        self.console.success(f"welcome {prefix}{colored(login, 'yellow', attrs=['bold'])}!")

    def logout(self):
        if self.session is None:
            self.console.error("no user logged in"); return
        logger.info(f"{self.session.login} logged out")
        self.console.success(f"logged out {self.session.login}")
        self.session = None

    def create_user(self, login: str, password: str, phone: str, role: Role = Role.CUSTOMER):
        self.db.execute_write(
            "INSERT INTO Users(login, password, role, favoriteItems, phoneNum) VALUES(?,?,?,NULL,?);",
            (login, password, role.value, phone)
        )

    def register(self):
        """interactive 'create user': new accounts are always customers"""
        try:
            existing = {(r[0] or "").strip() for r in self.db.execute_read("SELECT login FROM Users;")}
        except BackendError as e:
            self.console.error(f"error getting existing logins: {e}"); return
        while True:
            login = self.console.ask_text("login", MAX_LOGIN_LENGTH)
            if login not in existing:
                break
            self.console.error("this login already exists! please try a different login.")
        password = self.console.ask_text("password", MAX_PASSWORD_LENGTH)
        phone = self.console.ask_text("phone number", MAX_PHONE_LENGTH)
        try:
            self.create_user(login, password, phone)
        except BackendError as e:
            self.console.error(f"error inserting user: {e}"); return
        logger.info(f"created user {login}")
        self.console.success("user created successfully!")

    def view_profile(self):
        try:
            columns, rows = self.db.execute_read_columns(
                "SELECT login, password, favoriteItems, phoneNum FROM Users WHERE login = ?;",
                (self.session.login,)
            )
        except BackendError as e:
            self.console.error(f"error getting login information: {e}"); return
        format_and_print(columns, rows, self.console)

    def update_profile_field(self, login: str, label: str, value: str) -> int:
        column = self.PROFILE_COLUMNS[label]
        return self.db.execute_write(f"UPDATE Users SET {column} = ? WHERE login = ?;", (value, login))

    def update_profile(self):
        """walk password, phone number, favorite items; each behind a y/n"""
        for label in self.PROFILE_COLUMNS:
            if not self.console.ask_yes_no(f"would you like to update your {label}"):
                continue
            if label == "password":
                value = self.console.ask_text(label, MAX_PASSWORD_LENGTH)
            elif label == "phone number":
                value = self.console.ask_text(label, MAX_PHONE_LENGTH)
            else:
                value = self.console.ask("please enter your favorite items: ")
            try:
                self.update_profile_field(self.session.login, label, value)
            except BackendError as e:
                self.console.error(f"error updating {label}: {e}"); continue
            self.console.success(f"successfully updated {label}!")

    # manager administration
    def set_user_role(self, login: str, role: Role) -> int:
        return self.db.execute_write("UPDATE Users SET role = ? WHERE login = ?;", (role.value, login))

    def admin_update_user(self):
        """change another user's role"""
        try:
            AccessGuard.require(self.session, Role.MANAGER)
        except AuthorizationDenied as e:
            self.console.error(str(e)); return
        login = self.console.ask_text("login", MAX_LOGIN_LENGTH)
        raw = self.console.ask(f"new role ({'/'.join(r.value for r in Role)}): ").lower()
        try:
            role = Role.parse(raw)
        except ValueError:
            self.console.error("invalid role"); return
        if login == self.session.login and role is not Role.MANAGER:
            self.console.error("cannot demote yourself"); return
        try:
            updated = self.set_user_role(login, role)
        except BackendError as e:
            self.console.error(f"error updating user: {e}"); return
        if updated:
            logger.info(f"{self.session.login} set role of {login} to {role.value}")
            self.console.success(f"{login} is now a {role.value}")
        else:
            self.console.error(f"{login} does not exist!")

# ordering
@dataclass
class QuoteLine:
    item_name: str
    quantity: int
    unit_price: str
    line_cents: int

@dataclass
class Quote:
    lines: list[QuoteLine] = field(default_factory=list)
    total_cents: int = 0

@dataclass
class PlacedOrder:
    order_id: int
    store_id: int
    quantities: dict[str, int]
    quote: Quote

    @property
    def total_cents(self) -> int:
        return self.quote.total_cents

class OrderScope(Enum):
    ALL = "all"
    RECENT = "recent"
    BY_ID = "by_id"

def aggregate_selections(selections: Iterable[tuple[str, int]]) -> dict[str, int]:
    """fold repeated (item, quantity) entries into one total per item, first-entry order"""
    quantities: dict[str, int] = {}
    for item_name, quantity in selections:
        if quantity < 1:
            raise ValidationError(f"quantity of {item_name} must be at least 1")
        quantities[item_name] = quantities.get(item_name, 0) + quantity
    return quantities

def price_to_cents(price) -> int:
    """unit price in integer cents, half a cent rounds up"""
    if price is None:
        raise PricingError("price is missing")
    try:
        amount = Decimal(str(price).strip())
    except InvalidOperation:
        raise PricingError(f"price {price!r} is not a number") from None
    if not amount.is_finite() or amount < 0:
        raise PricingError(f"price {price!r} is not a valid amount")
    try:
        return int((amount * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        raise PricingError(f"price {price!r} is too large") from None

def cents_to_price(cents: int) -> str:
    dollars, remainder = divmod(cents, 100)
    return f"{dollars}.{remainder:02d}"

def format_cents(cents: int) -> str:
    return f"${cents_to_price(cents)}"

def color_money(cents: int) -> str:
    """format cents as green money string"""
    return colored(format_cents(cents), "green")

def quote_order(db: DatabaseManager, quantities: dict[str, int]) -> Quote:
    """price every line in cents; the first unpriceable item sinks the whole quote"""
    quote = Quote()
    for item_name, quantity in quantities.items():
        rows = db.execute_read("SELECT price FROM Items WHERE itemName = ?;", (item_name,))
        if not rows:
            raise PricingError(f"no price for {item_name}")
        unit_price = rows[0][0]
        line_cents = price_to_cents(unit_price) * quantity
        quote.lines.append(QuoteLine(item_name, quantity, unit_price, line_cents))
        quote.total_cents += line_cents
    return quote

class OrderSequencer:
    """derive the next order id and write header + line items as one unit"""
    def __init__(self, db: DatabaseManager):
        self.db = db

    def next_order_id(self) -> int:
        rows = self.db.execute_read("SELECT orderID FROM FoodOrder ORDER BY orderID DESC LIMIT 1;")
        if not rows:
            raise EmptyOrderHistory("no previous order to derive the next order id from")
        try:
            return int(rows[0][0]) + 1
        except (TypeError, ValueError):
            raise BackendError(f"unreadable order id {rows[0][0]!r}") from None

    def submit(self, login: str, store_id: int, quantities: dict[str, int], total_cents: int) -> int:
        """
        id derivation, header insert and line item inserts share one
        transaction. a failure after the header went in is reported as a
        ConsistencyFailure once everything has been rolled back.
        """
        if not quantities:
            raise ValidationError("an order needs at least one item")
        order_id = None
        header_written = False
        try:
            with self.db.transaction():
                order_id = self.next_order_id()
                self.db.execute_write(
                    """--sql
                    INSERT INTO FoodOrder(orderID, login, storeID, totalPrice, orderTimestamp, orderStatus)
                    VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP, ?);
                    """,
                    (order_id, login, store_id, cents_to_price(total_cents), INITIAL_ORDER_STATUS)
                )
                header_written = True
                for item_name, quantity in quantities.items():
                    self.db.execute_write(
                        "INSERT INTO ItemsInOrder(orderID, itemName, quantity) VALUES (?, ?, ?);",
                        (order_id, item_name, quantity)
                    )
        except BackendError as e:
            if not header_written:
                raise
            logger.error(f"order #{order_id} rolled back: {e}")
            raise ConsistencyFailure(f"order #{order_id} rolled back, nothing was written: {e}") from e
        return order_id

# order management
class OrderManager:
    """placing orders, looking at them, and the menu / store listings"""
    MENU_FILTERS = {
        1: ("all items", "", ()),
        2: ("entrees", " WHERE typeOfItem = ?", ("entree",)),
        3: ("sides", " WHERE typeOfItem = ?", ("sides",)),
        4: ("drinks", " WHERE typeOfItem = ?", ("drinks",)),
    }
    MENU_ORDERINGS = {
        1: ("default order", ""),
        2: ("price (low to high)", " ORDER BY price ASC"),
        3: ("price (high to low)", " ORDER BY price DESC"),
    }

    def __init__(self, db: DatabaseManager, console: Console, account_manager: AccountManager,
                 guard: AccessGuard | None = None, sequencer: OrderSequencer | None = None):
        self.db = db
        self.console = console
        self.account_manager = account_manager
        self.guard = guard or AccessGuard(db)
        self.sequencer = sequencer or OrderSequencer(db)

    @property
    def session(self) -> Session | None:
        return self.account_manager.session

    # lookups
    def item_catalog(self) -> list[str]:
        return [(r[0] or "").strip() for r in self.db.execute_read("SELECT itemName FROM Items;")]

    def store_exists(self, store_id: int) -> bool:
        return self.db.execute_read_count("SELECT storeID FROM Store WHERE storeID = ?;", (store_id,)) > 0

    def order_exists(self, order_id: int) -> bool:
        return self.db.execute_read_count("SELECT orderID FROM FoodOrder WHERE orderID = ?;", (order_id,)) > 0

    # placing orders
    def place_order(self, login: str, store_id: int, selections: Iterable[tuple[str, int]]) -> PlacedOrder:
        """validate, aggregate, price and write an order"""
        if not self.store_exists(store_id):
            raise ValidationError(f"store id {store_id} does not exist!")
        catalog = set(self.item_catalog())
        selections = list(selections)
        for item_name, _ in selections:
            if item_name not in catalog:
                raise ValidationError(f"item {item_name} does not exist!")
        quantities = aggregate_selections(selections)
        if not quantities:
            raise ValidationError("an order needs at least one item")
        quote = quote_order(self.db, quantities)
        order_id = self.sequencer.submit(login, store_id, quantities, quote.total_cents)
        logger.info(f"order #{order_id} placed by {login} at store {store_id} for {format_cents(quote.total_cents)}")
        return PlacedOrder(order_id, store_id, quantities, quote)

    def collect_selections(self) -> list[tuple[str, int]]:
        """prompt for items until the user is done; unknown items are asked again"""
        catalog = set(self.item_catalog())
        selections = []
        while True:
            while True:
                item_name = self.console.ask("\nplease enter the name of the item you want to order: ", None)
                if item_name in catalog:
                    break
                self.console.error(f"item {item_name} does not exist!")
            quantity = self.console.ask_int(f"please enter the quantity of {item_name} you want to order: ")
            selections.append((item_name, quantity))
            if not self.console.ask_yes_no("would you like to order more items"):
                return selections

    def take_order(self):
        """interactive 'place order'"""
        while True:
            store_id = self.console.ask_int("\nplease enter the store id that you want to order from: ")
            try:
                if self.store_exists(store_id):
                    break
            except BackendError as e:
                self.console.error(f"error fetching store ids: {e}"); return
            self.console.error(f"store id {store_id} does not exist!")
        try:
            selections = self.collect_selections()
            placed = self.place_order(self.session.login, store_id, selections)
        except BackendError as e:
            self.console.error(f"error placing order: {e}"); return
        except ValidationError as e:
            self.console.error(f"order not placed: {e}"); return
        self.console.say("\nyou ordered:")
        for line in placed.quote.lines:
            self.console.say(f"item: {line.item_name}, quantity: {line.quantity}, price: {cents_to_price(price_to_cents(line.unit_price))}")
        self.console.say(f"the total price is: {color_money(placed.total_cents)}")
        self.console.success(f"order #{placed.order_id} placed")

    # viewing orders
    def view_orders(self, session: Session, scope: OrderScope, order_id: int | None = None) -> int:
        """print the orders the session may see, return the number of rows shown"""
        if scope is OrderScope.BY_ID:
            return self._show_order(session, order_id)
        clause, params = self.guard.order_filter(session)
        statement = "SELECT orderID FROM FoodOrder" + clause
        if scope is OrderScope.RECENT:
            statement += " ORDER BY orderTimestamp DESC, orderID DESC LIMIT ?"
            params += (RECENT_ORDER_LIMIT,)
        else:
            statement += " ORDER BY orderID"
        columns, rows = self.db.execute_read_columns(statement + ";", params)
        return format_and_print(columns, rows, self.console)

    def _show_order(self, session: Session, order_id: int | None) -> int:
        if order_id is None or not self.order_exists(order_id):
            raise ValidationError(f"order id {order_id} does not exist!")
        self.guard.check_order(session, order_id)
        columns, rows = self.db.execute_read_columns(
            """--sql
            SELECT orderID AS "Order ID", orderStatus AS "Status", orderTimestamp AS "Order Timestamp"
            FROM FoodOrder WHERE orderID = ?;
            """,
            (order_id,)
        )
        format_and_print(columns, rows, self.console)
        columns, rows = self.db.execute_read_columns(
            'SELECT itemName AS "Order Items", quantity AS "Quantity" FROM ItemsInOrder WHERE orderID = ?;',
            (order_id,)
        )
        return format_and_print(columns, rows, self.console)

    def _view(self, scope: OrderScope, order_id: int | None = None):
        try:
            count = self.view_orders(self.session, scope, order_id)
        except (AuthorizationDenied, ValidationError) as e:
            self.console.error(str(e)); return
        except BackendError as e:
            self.console.error(f"error fetching order information: {e}"); return
        if count == 0 and scope is not OrderScope.BY_ID:
            self.console.warn("no orders found")

    def view_all_orders(self):
        self._view(OrderScope.ALL)

    def view_recent_orders(self):
        self._view(OrderScope.RECENT)

    def _ask_existing_order_id(self, prompt: str) -> int | None:
        while True:
            order_id = self.console.ask_int(prompt)
            try:
                if self.order_exists(order_id):
                    return order_id
            except BackendError as e:
                self.console.error(f"error fetching order ids: {e}"); return None
            self.console.error(f"order id {order_id} does not exist!")

    def view_order_info(self):
        order_id = self._ask_existing_order_id("please enter the order id: ")
        if order_id is not None:
            self._view(OrderScope.BY_ID, order_id)

    # order status (drivers + managers)
    def set_order_status(self, order_id: int, status: str) -> int:
        return self.db.execute_write(
            "UPDATE FoodOrder SET orderStatus = ? WHERE orderID = ?;",
            (status, order_id)
        )

    def update_order_status(self):
        try:
            AccessGuard.require(self.session, Role.DRIVER, Role.MANAGER)
        except AuthorizationDenied as e:
            self.console.error(str(e)); return
        order_id = self._ask_existing_order_id("please enter the order id for the order you want to update: ")
        if order_id is None:
            return
        status = self.console.ask_text("the new status", MAX_STATUS_LENGTH)
        try:
            self.set_order_status(order_id, status)
        except BackendError as e:
            self.console.error(f"error updating order status: {e}"); return
        logger.info(f"{self.session.login} set order #{order_id} to {status}")
        self.console.success(f"order #{order_id} is now {status}")

    # menu + stores
    def view_menu(self):
        """filter / sort the menu until the user quits"""
        while True:
            self.console.say("\nplease select the type of menu you would like to see:")
            for key, (label, _, _) in self.MENU_FILTERS.items():
                self.console.say(f"{key}. {label}")
            self.console.say("5. items under a certain price")
            self.console.say("9. quit")
            choice = self.console.ask_int("please make your choice: ")
            if choice == 9:
                return
            if choice in self.MENU_FILTERS:
                _, clause, params = self.MENU_FILTERS[choice]
            elif choice == 5:
                max_price = self.console.ask_money("please enter the maximum price: ")
                clause, params = " WHERE price <= ?", (float(max_price),)
            else:
                self.console.error("unrecognized choice!"); continue

            self.console.say("\nin what order would you like the menu?")
            for key, (label, _) in self.MENU_ORDERINGS.items():
                self.console.say(f"{key}. {label}")
            ordering = self.MENU_ORDERINGS.get(self.console.ask_int("please make your choice: "))
            if ordering is None:
                self.console.error("unrecognized choice!"); continue

            self.console.say("\nour offerings", "green", attrs=["bold"])
            try:
                columns, rows = self.db.execute_read_columns(
                    'SELECT typeOfItem AS "Type", itemName AS "Item", price AS "Price", '
                    'description AS "Description", ingredients AS "Ingredients" FROM Items'
                    + clause + ordering[1] + ";",
                    params
                )
            except BackendError as e:
                self.console.error(f"error fetching menu items: {e}"); return
            if format_and_print(columns, rows, self.console) == 0:
                self.console.warn("no items found for the selected criteria!")

    def view_stores(self):
        try:
            columns, rows = self.db.execute_read_columns("SELECT * FROM Store ORDER BY storeID;")
        except BackendError as e:
            self.console.error(f"error fetching store information: {e}"); return
        format_and_print(columns, rows, self.console)

    # manager administration
    def add_menu_item(self, name: str, type_of_item: str, price: Decimal, description: str, ingredients: str):
        if type_of_item not in ITEM_TYPES:
            raise ValidationError(f"item type must be one of {', '.join(ITEM_TYPES)}")
        self.db.execute_write(
            "INSERT INTO Items(itemName, typeOfItem, price, description, ingredients) VALUES(?,?,?,?,?);",
            (name, type_of_item, cents_to_price(price_to_cents(price)), description, ingredients)
        )

    def update_item_price(self, name: str, price: Decimal) -> int:
        return self.db.execute_write(
            "UPDATE Items SET price = ? WHERE itemName = ?;",
            (cents_to_price(price_to_cents(price)), name)
        )

    def admin_update_menu(self):
        """add an item or change a price"""
        try:
            AccessGuard.require(self.session, Role.MANAGER)
        except AuthorizationDenied as e:
            self.console.error(str(e)); return
        self.console.say("\n1. add item\n2. change item price\n9. back")
        choice = self.console.ask_int("please make your choice: ")
        if choice == 9:
            return
        try:
            if choice == 1:
                name = self.console.ask_text("item name", MAX_ITEM_NAME_LENGTH)
                type_of_item = self.console.ask(f"item type ({'/'.join(ITEM_TYPES)}): ").lower()
                price = self.console.ask_money("price: ")
                description = self.console.ask("description: ")
                ingredients = self.console.ask("ingredients: ")
                self.add_menu_item(name, type_of_item, price, description, ingredients)
                self.console.success("menu item added")
            elif choice == 2:
                name = self.console.ask_text("item name", MAX_ITEM_NAME_LENGTH)
                price = self.console.ask_money("new price: ")
                if self.update_item_price(name, price):
                    self.console.success("updated")
                else:
                    self.console.error("not found")
            else:
                self.console.error("unrecognized choice!")
        except ValidationError as e:
            self.console.error(str(e))
        except BackendError as e:
            self.console.error(f"error updating menu: {e}")

# command infrastructure
class Command:
    """bind a menu number to a function, optionally restricted to some roles"""
    def __init__(self, key: int, function: Callable, description: str, roles: tuple[Role, ...] | None = None):
        self.key = key
        self._fn = function
        self.description = description
        self.roles = roles

    def allowed(self, session: Session | None) -> bool:
        return self.roles is None or (session is not None and session.role in self.roles)

    def execute(self):
        return self._fn()

class MenuParser:
    """numbered menus: one while anonymous, one (role gated) while logged in"""
    def __init__(self, console: Console, account_manager: AccountManager):
        self.console = console
        self.account_manager = account_manager
        self.running = True
        self.anonymous_commands: list[Command] = [
            Command(1, account_manager.register, "create user"),
            Command(2, account_manager.login, "log in"),
            Command(9, self.quit, "< exit"),
        ]
        self.user_commands: list[Command] = []

    def visible_commands(self) -> list[Command]:
        session = self.account_manager.session
        commands = self.user_commands if session is not None else self.anonymous_commands
        return [c for c in commands if c.allowed(session)]

    def show_menu(self):
        self.console.say("\nmain menu", None, attrs=["bold"])
        self.console.say("---------")
        for cmd in self.visible_commands():
            if cmd.key >= 20:
                self.console.say(".........................")
            self.console.say(f"{colored(str(cmd.key), 'blue')}. {cmd.description}")

    def parse_and_execute(self, raw: str):
        """run the command behind a menu number"""
        choice = safe_int(raw)
        if choice is None:
            self.console.error("your input is invalid!"); return
        cmd = next((c for c in self.visible_commands() if c.key == choice), None)
        if cmd is None:
            self.console.error("unrecognized choice!"); return
        return cmd.execute()

    def quit(self):
        self.running = False

    def start_repl(self):
        """main loop; ends on exit or when input runs out"""
        while self.running:
            self.show_menu()
            try:
                self.parse_and_execute(self.console.ask("please make your choice: ", "blue"))
            except EOFError:
                self.console.say()
                break

# application wiring
class Application:
    """bootstrap objects & wire the menus"""
    def __init__(self, config: Config | None = None, console: Console | None = None,
                 db: DatabaseManager | None = None):
        self.console = console or Console()
        self.db = db or DatabaseManager.from_config(config or Config())
        atexit.register(self.db.close)
        self.account_manager = AccountManager(self.db, self.console)
        self.guard = AccessGuard(self.db)
        self.order_manager = OrderManager(self.db, self.console, self.account_manager, self.guard)
        self.parser = MenuParser(self.console, self.account_manager)

        staff = (Role.DRIVER, Role.MANAGER)
        managers = (Role.MANAGER,)
        self.parser.user_commands += [
            Command(1, self.account_manager.view_profile, "view profile"),
            Command(2, self.account_manager.update_profile, "update profile"),
            Command(3, self.order_manager.view_menu, "view menu"),
            Command(4, self.order_manager.take_order, "place order"),
            Command(5, self.order_manager.view_all_orders, "view full order id history"),
            Command(6, self.order_manager.view_recent_orders, f"view past {RECENT_ORDER_LIMIT} order ids"),
            Command(7, self.order_manager.view_order_info, "view order information"),
            Command(8, self.order_manager.view_stores, "view stores"),
            Command(9, self.order_manager.update_order_status, "update order status", staff),
            Command(10, self.order_manager.admin_update_menu, "update menu", managers),
            Command(11, self.account_manager.admin_update_user, "update user", managers),
            Command(20, self.account_manager.logout, "log out"),
        ]

    def run(self):
        self.console.say("""
*******************************************************
              pizzastore 🍕 user interface
*******************************************************""", "green", attrs=["bold"])
        self.parser.start_repl()
        self.console.say("disconnecting from database... done\n\nbye!")

# signal handler
class SignalHandler:
    """ctrl+c ends the session without a traceback"""
    @staticmethod
    def sigint(_, __):
        cprint("\nbye!", "yellow")
        sys.exit(0)

# entry point
def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="pizza store client")
    parser.add_argument("--config", default="pizzastore.ini", help="path to configuration file")
    parser.add_argument("--db", help="sqlite database file (overrides configuration)")
    return parser

def main(argv: Sequence[str] | None = None) -> int:
    """entrypoint wrapper"""
    args = build_arg_parser().parse_args(argv)
    config = Config(args.config)
    if args.db:
        config.config["database"]["path"] = args.db
    config.setup_logging()
    # fix windows terminal misinterpreting ansi escape sequences
    enable_windows_ansi_interpretation()
    signal.signal(signal.SIGINT, SignalHandler.sigint)
    try:
        app = Application(config)
    except BackendError as e:
        cprint(f"error - unable to connect to database: {e}", "red", file=sys.stderr)
        return 1
    app.run()
    return 0

if __name__ == "__main__":
    sys.exit(main())

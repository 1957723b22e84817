import pytest

from conftest import ScriptedConsole
from pizzastore import OrderManager, ValidationError, aggregate_selections


def test_repeats_accumulate():
    selections = [("Margherita", 2), ("Soda", 1), ("Margherita", 1)]
    assert aggregate_selections(selections) == {"Margherita": 3, "Soda": 1}


def test_keys_are_the_distinct_items_in_first_entry_order():
    selections = [("Soda", 1), ("Wings", 4), ("Soda", 2), ("Margherita", 1), ("Wings", 1)]
    result = aggregate_selections(selections)
    assert list(result) == ["Soda", "Wings", "Margherita"]
    for name in result:
        assert result[name] == sum(q for n, q in selections if n == name)


def test_empty_selection_is_empty_map():
    assert aggregate_selections([]) == {}


def test_non_positive_quantity_rejected():
    with pytest.raises(ValidationError):
        aggregate_selections([("Soda", 0)])


def test_collect_selections_rejects_unknown_items(db, accounts):
    console = ScriptedConsole(["Calzone", "Soda", "2", "y", "Soda", "1", "n"])
    orders = OrderManager(db, console, accounts)
    selections = orders.collect_selections()
    assert selections == [("Soda", 2), ("Soda", 1)]
    assert "item Calzone does not exist!" in console.output
    assert aggregate_selections(selections) == {"Soda": 3}


def test_collect_selections_reprompts_bad_quantity(db, accounts):
    console = ScriptedConsole(["Margherita", "zero", "-1", "2", "maybe", "n"])
    orders = OrderManager(db, console, accounts)
    assert orders.collect_selections() == [("Margherita", 2)]
    assert console.output.count("your input is invalid!") == 2
    assert "please enter 'y' or 'n'." in console.output

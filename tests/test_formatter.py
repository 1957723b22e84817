from pizzastore import format_and_print, format_table


def test_widths_cover_header_and_cells():
    lines = format_table(["id", "name"], [["1", "Margherita"], ["12", None]])
    assert lines == [
        "id | name       | ",
        "1  | Margherita | ",
        "12 | null       | ",
    ]


def test_short_cells_take_header_width():
    lines = format_table(["Quantity"], [["3"], ["12"]])
    assert lines[0] == "Quantity | "
    assert lines[1] == "3        | "


def test_null_only_column_is_at_least_four_wide():
    lines = format_table(["x"], [[None], [None]])
    assert lines == ["x    | ", "null | ", "null | "]


def test_alignment_does_not_depend_on_row_order():
    rows = [["a", "long value"], ["bbbbbb", None], ["c", "v"]]
    forward = format_table(["k", "v"], rows)
    backward = format_table(["k", "v"], list(reversed(rows)))
    assert forward[0] == backward[0]
    assert sorted(forward[1:]) == sorted(backward[1:])
    assert len({len(line) for line in forward}) == 1


def test_rows_are_left_untouched():
    rows = [["1", None], ["2", "x"]]
    format_table(["a", "b"], rows)
    assert rows == [["1", None], ["2", "x"]]


def test_no_rows_prints_nothing(console):
    assert format_table(["orderID"], []) == []
    assert format_and_print(["orderID"], [], console) == 0
    assert console.output == ""


def test_format_and_print_returns_row_count(console):
    assert format_and_print(["orderID"], [["7"], ["8"]], console) == 2
    assert console.output.splitlines() == ["orderID | ", "7       | ", "8       | "]

from utils.parser import parse_dimacs, read_cnf


def test_header_and_comments_skipped():
    text = "c example\np cnf 3 2\n1 -2 0\n2 3 0\n"
    assert parse_dimacs(text) == [[1, -2], [2, 3]]


def test_clause_spanning_lines():
    assert parse_dimacs("1 2\n-3 0 4\n0") == [[1, 2, -3], [4]]


def test_lone_zero_is_empty_clause():
    assert parse_dimacs("1 0\n0\n") == [[1], []]


def test_unterminated_clause_kept():
    assert parse_dimacs("1 -2 0\n3") == [[1, -2], [3]]


def test_duplicates_collapsed():
    assert parse_dimacs("1 1 -2 1 0") == [[1, -2]]


def test_satlib_trailer_ignored():
    assert parse_dimacs("1 2 0\n%\n0\n\n") == [[1, 2]]


def test_read_cnf(tmp_path):
    path = tmp_path / "f.cnf"
    path.write_text("p cnf 2 2\n1 0\n-1 2 0\n")
    assert read_cnf(str(path)) == [[1], [-1, 2]]

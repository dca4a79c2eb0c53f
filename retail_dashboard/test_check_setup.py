"""
Tests for the setup check command
"""

from retail_dashboard import check_setup


def run(keyword="phone"):
    lines = []
    code = check_setup.run_checks(keyword, out=lines.append)
    return code, "\n".join(lines)


def test_reports_count_and_search(add_transactions):
    add_transactions(
        {"product_name": "Smartphone", "customer_name": "Asha"},
        {"product_name": "Laptop", "customer_name": "Ravi"},
    )
    code, output = run()
    assert code == 0
    assert "Found 2 transactions" in output
    assert "Search for 'phone' found 1 results" in output
    assert "Customer: Asha" in output


def test_warns_on_empty_store():
    code, output = run()
    assert code == 0
    assert "database is empty" in output


def test_fails_when_store_unreachable(monkeypatch):
    monkeypatch.setattr(check_setup, "check_database_connection", lambda: False)
    code, output = run()
    assert code == 1
    assert "Database connection failed" in output


def test_main_parses_keyword(add_transactions, capsys):
    add_transactions({"product_name": "Wool Scarf"})
    assert check_setup.main(["--keyword", "scarf"]) == 0
    assert "Search for 'scarf' found 1 results" in capsys.readouterr().out

import pytest

from fitstat.shared.validators import (
    clean_string_list,
    validate_choice,
    validate_email,
    validate_url,
    validate_weekdays,
)


def test_validate_email():
    assert validate_email("  Mia@FitStat.Test ") == "mia@fitstat.test"
    assert validate_email(None) is None
    with pytest.raises(ValueError):
        validate_email("mia@fitstat")


def test_validate_url():
    assert validate_url("https://example.com/a.jpg") == "https://example.com/a.jpg"
    with pytest.raises(ValueError):
        validate_url("ftp://example.com")


def test_validate_choice():
    assert validate_choice("Beginner", ("Beginner", "Advanced"), "Difficulty") == "Beginner"
    with pytest.raises(ValueError, match="Difficulty must be one of: Beginner, Advanced"):
        validate_choice("Expert", ("Beginner", "Advanced"), "Difficulty")


def test_validate_weekdays_normalizes():
    assert validate_weekdays(["monday", "MONDAY", " friday"]) == ["Monday", "Friday"]
    with pytest.raises(ValueError):
        validate_weekdays(["Funday"])


def test_clean_string_list():
    assert clean_string_list([" yoga", "yoga", "", "hiit"]) == ["yoga", "hiit"]
    with pytest.raises(ValueError):
        clean_string_list(["a", "b", "c"], max_items=2)

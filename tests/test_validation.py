import pytest
from hypothesis import given, strategies as st
from pydantic import ValidationError

from bookstore.models import MAX_YEAR, MIN_YEAR, CreateBook, UpdateBook

VALID = {"title": "t", "author": "a", "year": 2000, "genre": "g", "price": 1.0}


@given(
    st.one_of(
        st.floats(max_value=0, exclude_max=True, allow_nan=False, allow_infinity=False),
        st.floats(min_value=1000, exclude_min=True, allow_nan=False, allow_infinity=False),
    )
)
def test_create_book_rejects_price_out_of_range(price):
    with pytest.raises(ValidationError):
        CreateBook(**{**VALID, "price": price})


@given(st.integers(min_value=0, max_value=100000).map(lambda cents: cents / 100))
def test_update_book_accepts_price_in_range(price):
    assert UpdateBook(**{**VALID, "price": price}).price == price


@given(st.text(min_size=101, max_size=300).filter(lambda s: s.strip()))
def test_title_longer_than_limit_is_rejected(title):
    with pytest.raises(ValidationError):
        CreateBook(**{**VALID, "title": title})


@pytest.mark.parametrize("field", ["title", "author"])
@pytest.mark.parametrize("value", ["", "   "])
def test_required_text_fields_reject_blank(field, value):
    with pytest.raises(ValidationError):
        CreateBook(**{**VALID, field: value})


def test_title_at_limit_is_accepted():
    assert len(CreateBook(**{**VALID, "title": "t" * 100}).title) == 100


def test_genre_limit():
    assert CreateBook(**{**VALID, "genre": "g" * 50}).genre == "g" * 50
    with pytest.raises(ValidationError):
        CreateBook(**{**VALID, "genre": "g" * 51})


def test_update_book_carries_optional_id():
    assert UpdateBook(**VALID).id is None
    assert UpdateBook(**VALID, id=3).id == 3


def test_create_book_ignores_client_id():
    assert "id" not in CreateBook(**VALID, id=0).model_dump()


@pytest.mark.parametrize("price", [0.001, 10.005, 999.999])
def test_price_rejects_fractional_cents(price):
    with pytest.raises(ValidationError):
        CreateBook(**{**VALID, "price": price})


@given(st.one_of(st.integers(max_value=MIN_YEAR - 1), st.integers(min_value=MAX_YEAR + 1)))
def test_year_outside_bounds_is_rejected(year):
    with pytest.raises(ValidationError):
        CreateBook(**{**VALID, "year": year})


def test_year_bounds_are_inclusive():
    assert CreateBook(**{**VALID, "year": MIN_YEAR}).year == MIN_YEAR
    assert CreateBook(**{**VALID, "year": MAX_YEAR}).year == MAX_YEAR

import title_matcher


def test_empty_and_whitespace_titles_are_empty():
    assert title_matcher.is_empty("")
    assert title_matcher.is_empty("   ")
    assert title_matcher.is_empty(None)


def test_non_empty_title_is_not_empty():
    # the guard must reject empty titles, not accept only empty ones
    assert not title_matcher.is_empty("Book 1")
    assert not title_matcher.is_empty("  x  ")


def test_equality_is_exact_and_case_sensitive():
    assert title_matcher.equals("Book 1", "Book 1")
    assert not title_matcher.equals("Book 1", "book 1")
    assert not title_matcher.equals("Book 1", None)

"""Tests for the repositories' projection reads."""

from datetime import timedelta

import pytest

from library_lending.database import (
    BookRepository,
    MemberRepository,
    TransactionRepository,
)


@pytest.fixture
def three_books(make_book):
    return [make_book(title=title) for title in ("Beloved", "Atonement", "Carrie")]


def test_get_by_id_returns_projection(db_session, three_books):
    repo = BookRepository(db_session)

    book = repo.get_by_id(three_books[0].id)

    assert book.title == "Beloved"
    assert repo.get_by_id(999) is None


def test_exists_and_count(db_session, three_books):
    repo = BookRepository(db_session)

    assert repo.exists(three_books[1].id) is True
    assert repo.exists(12345) is False
    assert repo.count() == 3


def test_member_projection_carries_policy(db_session, make_member):
    member = make_member()

    projection = MemberRepository(db_session).get_by_id(member.id)

    assert projection.borrowing_limit == 5
    assert projection.loan_period_days == 21


def test_next_membership_number(db_session, make_member):
    make_member()

    assert MemberRepository(db_session).next_membership_number(2025) == "MEM20250002"


def test_member_history_is_most_recent_first(db_session, lending, make_book, make_member, clock):
    member = make_member()
    first = lending.borrow_book(make_book(title="First").id, member.id)
    clock.advance(days=2)
    second = lending.borrow_book(make_book(title="Second").id, member.id)

    history = TransactionRepository(db_session).get_member_history(member.id)

    assert [t.id for t in history] == [second.id, first.id]
    assert history[0].book.title == "Second"


def test_active_pair_check(db_session, lending, make_book, make_member, clock):
    book, member = make_book(), make_member()
    repo = TransactionRepository(db_session)
    assert repo.has_active_borrowing(book.id, member.id) is False

    loan = lending.borrow_book(book.id, member.id)
    assert repo.has_active_borrowing(book.id, member.id) is True

    clock.advance(days=1)
    lending.return_book(loan.id)
    assert repo.has_active_borrowing(book.id, member.id) is False


def test_history_projection_flags_overdue(registry, lending, make_book, make_member, clock):
    member = make_member(membership_type="student")
    lending.borrow_book(make_book(title="Late One").id, member.id)
    clock.advance(days=14, hours=1)
    clock.advance(days=3)

    (entry,) = registry.get_member_history(member.id)

    assert entry.book_title == "Late One"
    assert entry.member_name == member.full_name
    assert entry.membership_number == member.membership_number
    assert entry.is_overdue is True
    assert entry.days_overdue == 3
    assert entry.due_date - entry.borrow_date == timedelta(days=14)

"""Tests for the lending engine: the borrow and return flows.

Covers the gate order, the counters kept in step with the ledger, due dates
and fines, post-commit events and the optimistic concurrency retry.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from library_lending import errors
from library_lending.config import reset_config
from library_lending.database.repository import ConcurrencyConflictError
from library_lending.database.schema import Book as BookDB
from library_lending.database.schema import BorrowingTransaction as TransactionDB
from library_lending.database.schema import Member as MemberDB
from library_lending.errors import LendingError
from library_lending.events import BookBorrowed, BookReturned
from library_lending.rules import BookStatusEnum, BorrowingStatusEnum, MembershipTypeEnum
from library_lending.services.lending import LendingService
from library_lending.services.registry import RegistryService


def reload(session, model, id):
    session.expire_all()
    return session.get(model, id)


def transaction_count(session) -> int:
    return session.scalar(select(func.count()).select_from(TransactionDB))


class TestBorrowGates:
    def test_missing_book(self, lending, make_member):
        member = make_member()

        assert lending.borrow_book(404, member.id) == errors.book_not_found(404)

    def test_missing_member(self, lending, make_book):
        book = make_book()

        assert lending.borrow_book(book.id, 404) == errors.member_not_found(404)

    def test_book_is_checked_before_member(self, lending):
        assert lending.borrow_book(1, 1).code == "Book.NotFound"

    def test_already_borrowed(self, lending, make_book, make_member, db_session):
        book, member = make_book(total_copies=2), make_member()
        lending.borrow_book(book.id, member.id)

        error = lending.borrow_book(book.id, member.id)

        assert error.code == "BorrowingTransaction.AlreadyBorrowed"
        assert error.status == 409
        assert reload(db_session, BookDB, book.id).available_copies == 1
        assert reload(db_session, MemberDB, member.id).active_borrowings_count == 1

    def test_inactive_member(self, lending, registry, make_book, make_member):
        book, member = make_book(), make_member()
        registry.deactivate_member(member.id)

        error = lending.borrow_book(book.id, member.id)

        assert error.code == "Member.NotActive"
        assert error.status == 403

    def test_student_limit(self, lending, make_book, make_member, db_session):
        student = make_member(membership_type=MembershipTypeEnum.STUDENT)
        books = [make_book() for _ in range(4)]

        for book in books[:3]:
            assert not isinstance(lending.borrow_book(book.id, student.id), LendingError)

        error = lending.borrow_book(books[3].id, student.id)

        assert error.code == "Member.BorrowingLimitExceeded"
        assert reload(db_session, MemberDB, student.id).active_borrowings_count == 3
        assert reload(db_session, BookDB, books[3].id).available_copies == 2
        assert transaction_count(db_session) == 3

    def test_rejection_persists_nothing_and_raises_no_event(
        self, lending, make_book, make_member, publisher, db_session
    ):
        book, member = make_book(total_copies=1), make_member()
        lending.borrow_book(book.id, member.id)
        other = make_member()
        publisher.events.clear()

        error = lending.borrow_book(book.id, other.id)

        assert error.code == "BorrowingTransaction.BookNotAvailable"
        assert publisher.events == []
        assert transaction_count(db_session) == 1
        assert reload(db_session, MemberDB, other.id).active_borrowings_count == 0


class TestBorrow:
    def test_borrow_updates_all_three_entities(self, lending, make_book, make_member, clock, db_session):
        book, member = make_book(total_copies=2), make_member()

        transaction = lending.borrow_book(book.id, member.id)

        assert transaction.book_id == book.id
        assert transaction.member_id == member.id
        assert transaction.status == BorrowingStatusEnum.ACTIVE
        assert transaction.borrow_date == clock()
        assert transaction.due_date == clock() + timedelta(days=21)
        assert transaction.fine_amount == Decimal("0.00")
        assert transaction.return_date is None

        stored_book = reload(db_session, BookDB, book.id)
        assert stored_book.available_copies == 1
        assert stored_book.status == BookStatusEnum.AVAILABLE
        assert reload(db_session, MemberDB, member.id).active_borrowings_count == 1

    @pytest.mark.parametrize(
        ("membership_type", "days"),
        [
            (MembershipTypeEnum.STUDENT, 14),
            (MembershipTypeEnum.SENIOR, 21),
            (MembershipTypeEnum.STAFF, 30),
        ],
    )
    def test_due_date_follows_membership(self, lending, make_book, make_member, membership_type, days):
        member = make_member(membership_type=membership_type)

        transaction = lending.borrow_book(make_book().id, member.id)

        assert transaction.loan_period_days == days

    def test_borrow_event(self, lending, make_book, make_member, publisher):
        book, member = make_book(), make_member()

        transaction = lending.borrow_book(book.id, member.id)

        (event,) = publisher.of_type(BookBorrowed)
        assert event == BookBorrowed(
            book_id=book.id,
            member_id=member.id,
            transaction_id=transaction.id,
            borrow_date=transaction.borrow_date,
            due_date=transaction.due_date,
        )

    def test_single_copy_hand_over(self, lending, make_book, make_member, db_session):
        book = make_book(total_copies=1)
        first, second = make_member(), make_member()

        loan = lending.borrow_book(book.id, first.id)
        assert reload(db_session, BookDB, book.id).status == BookStatusEnum.ALL_BORROWED
        assert lending.borrow_book(book.id, second.id).code == (
            "BorrowingTransaction.BookNotAvailable"
        )

        lending.return_book(loan.id)
        handed_over = lending.borrow_book(book.id, second.id)

        assert not isinstance(handed_over, LendingError)
        assert reload(db_session, BookDB, book.id).available_copies == 0

    def test_publisher_failure_does_not_roll_back(self, db_session, clock, make_book, make_member):
        class BrokenPublisher:
            def publish(self, event):
                raise RuntimeError("sink down")

        book, member = make_book(), make_member()
        service = LendingService(db_session, BrokenPublisher(), clock)

        transaction = service.borrow_book(book.id, member.id)

        assert not isinstance(transaction, LendingError)
        assert transaction_count(db_session) == 1
        assert reload(db_session, MemberDB, member.id).active_borrowings_count == 1


class TestReturn:
    def test_on_time_return(self, lending, make_book, make_member, clock, publisher, db_session):
        book, member = make_book(total_copies=1), make_member()
        loan = lending.borrow_book(book.id, member.id)
        clock.advance(days=21)

        returned = lending.return_book(loan.id)

        assert returned.status == BorrowingStatusEnum.RETURNED
        assert returned.return_date == clock()
        assert returned.fine_amount == Decimal("0.00")

        stored_book = reload(db_session, BookDB, book.id)
        assert stored_book.available_copies == 1
        assert stored_book.status == BookStatusEnum.AVAILABLE
        assert reload(db_session, MemberDB, member.id).active_borrowings_count == 0

        (event,) = publisher.of_type(BookReturned)
        assert event.was_overdue is False
        assert event.fine_amount == Decimal("0.00")

    def test_five_days_late(self, lending, make_book, make_member, clock, publisher, db_session):
        loan = lending.borrow_book(make_book().id, make_member().id)
        clock.advance(days=21 + 5)

        returned = lending.return_book(loan.id)

        assert returned.fine_amount == Decimal("10.00")
        stored = reload(db_session, TransactionDB, loan.id)
        assert stored.fine_amount == Decimal("10.00")

        (event,) = publisher.of_type(BookReturned)
        assert event.was_overdue is True
        assert event.fine_amount == Decimal("10.00")
        assert event.transaction_id == loan.id

    def test_missing_transaction(self, lending):
        error = lending.return_book(31)

        assert error == errors.transaction_not_found(31)
        assert error.status == 404

    def test_double_return(self, lending, make_book, make_member, db_session):
        book = make_book(total_copies=2)
        loan = lending.borrow_book(book.id, make_member().id)
        lending.return_book(loan.id)

        error = lending.return_book(loan.id)

        assert error.code == "BorrowingTransaction.NotActive"
        assert reload(db_session, BookDB, book.id).available_copies == 2

    def test_overdue_marked_transaction_cannot_be_returned(
        self, lending, make_book, make_member, clock, db_session
    ):
        book, member = make_book(), make_member()
        loan = lending.borrow_book(book.id, member.id)
        clock.advance(days=30)

        stored = reload(db_session, TransactionDB, loan.id)
        stored.mark_as_overdue(clock())
        db_session.commit()

        error = lending.return_book(loan.id)

        assert error.code == "BorrowingTransaction.NotActive"
        assert reload(db_session, MemberDB, member.id).active_borrowings_count == 1

    def test_inactive_member_can_still_return(self, lending, registry, make_book, make_member):
        member = make_member()
        loan = lending.borrow_book(make_book().id, member.id)
        registry.deactivate_member(member.id)

        returned = lending.return_book(loan.id)

        assert returned.status == BorrowingStatusEnum.RETURNED


class TestConcurrency:
    def _racing_clock(self, db_manager, clock, book_id, rival_member_id):
        """Clock whose first reading lets a rival borrow the same book first."""
        raced = []

        def read():
            if not raced:
                raced.append(True)
                rival_session = db_manager.create_session()
                try:
                    rival = LendingService(rival_session, clock=clock)
                    assert not isinstance(rival.borrow_book(book_id, rival_member_id), LendingError)
                finally:
                    rival_session.close()
            return clock()

        return read

    def _setup(self, db_manager, clock):
        from library_lending.models.book import BookCreate
        from library_lending.models.member import MemberRegister
        from library_lending.services.catalog import CatalogService

        session = db_manager.create_session()
        try:
            book = CatalogService(session).create_book(
                BookCreate(
                    isbn="9780000000017",
                    title="Last Copy",
                    author="Anon",
                    publisher="Press",
                    publication_year=2001,
                    genre="Fiction",
                    total_copies=1,
                )
            )
            registry = RegistryService(session, clock=clock)
            members = [
                registry.register_member(
                    MemberRegister(
                        first_name="Racer",
                        last_name=str(n),
                        email=f"racer{n}@readers.org",
                        phone="0612345678",
                        address="Tangier",
                    )
                )
                for n in range(2)
            ]
            return book, members
        finally:
            session.close()

    def test_lost_race_is_retried_and_sees_no_copy(self, db_manager, clock, publisher):
        book, (winner, loser) = self._setup(db_manager, clock)
        session = db_manager.create_session()

        try:
            service = LendingService(
                session,
                publisher,
                clock=self._racing_clock(db_manager, clock, book.id, winner.id),
                max_retries=3,
            )
            result = service.borrow_book(book.id, loser.id)

            assert result == errors.book_not_available()
            assert publisher.events == []
            assert reload(session, BookDB, book.id).available_copies == 0
            assert reload(session, MemberDB, loser.id).active_borrowings_count == 0
            assert transaction_count(session) == 1
        finally:
            session.close()

    def test_retries_are_bounded(self, db_manager, clock):
        book, (winner, loser) = self._setup(db_manager, clock)
        session = db_manager.create_session()

        try:
            service = LendingService(
                session,
                clock=self._racing_clock(db_manager, clock, book.id, winner.id),
                max_retries=1,
            )
            with pytest.raises(ConcurrencyConflictError):
                service.borrow_book(book.id, loser.id)

            assert transaction_count(session) == 1
        finally:
            session.close()

    def test_zero_retries_is_rejected(self, db_session):
        with pytest.raises(ValueError):
            LendingService(db_session, max_retries=0)

    def test_retry_limit_defaults_to_config(self, db_session, monkeypatch):
        monkeypatch.setenv("LIBRARY_LENDING_MAX_COMMIT_RETRIES", "4")
        reset_config()

        assert LendingService(db_session).max_retries == 4

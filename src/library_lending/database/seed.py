"""
Sample data for the Library Lending MCP Server.

Everything is created through the services, so the generated catalog,
registry and ledger satisfy the same rules as live traffic: copy counters,
active-loan counters and fines all come from real borrow/return flows.
Some loans are backdated so the database contains overdue and fined
transactions.
"""

import logging
import random
from datetime import datetime, timedelta

from faker import Faker
from sqlalchemy.orm import Session

from ..clock import utc_now
from ..errors import LendingError
from ..models.book import BookCreate
from ..models.member import MemberRegister
from ..rules import MembershipTypeEnum
from ..services.catalog import CatalogService
from ..services.lending import LendingService
from ..services.registry import RegistryService

logger = logging.getLogger(__name__)

GENRES = ["Fiction", "Mystery", "Science Fiction", "Fantasy", "Biography", "History", "Poetry"]


def generate_isbn13(rng: random.Random) -> str:
    """Generate a valid ISBN-13 number."""
    body = "978" + "".join(str(rng.randint(0, 9)) for _ in range(9))
    total = sum(int(digit) * (3 if i % 2 else 1) for i, digit in enumerate(body))
    return f"{body}{(10 - total % 10) % 10}"


def _fixed_clock(moment: datetime):
    return lambda: moment


def seed_database(
    session: Session,
    num_books: int = 40,
    num_members: int = 15,
    num_loans: int = 30,
    seed: int = 42,
) -> dict[str, int]:
    """
    Fill an empty database with generated books, members and loans.

    Returns counts of what was created.
    """
    fake = Faker()
    Faker.seed(seed)
    rng = random.Random(seed)
    now = utc_now()

    catalog = CatalogService(session)
    book_ids: list[int] = []
    for _ in range(num_books):
        result = catalog.create_book(
            BookCreate(
                isbn=generate_isbn13(rng),
                title=fake.catch_phrase().title()[:200],
                author=fake.name(),
                publisher=fake.company()[:100],
                publication_year=rng.randint(1900, now.year),
                genre=rng.choice(GENRES),
                total_copies=rng.randint(1, 4),
            )
        )
        if not isinstance(result, LendingError):
            book_ids.append(result.id)

    registry = RegistryService(session, clock=lambda: now)
    member_ids: list[int] = []
    for _ in range(num_members):
        result = registry.register_member(
            MemberRegister(
                first_name=fake.first_name(),
                last_name=fake.last_name(),
                email=fake.unique.email(),
                phone=fake.numerify("+2126########"),
                address=fake.address().replace("\n", ", ")[:200],
                membership_type=rng.choice(list(MembershipTypeEnum)),
            )
        )
        if not isinstance(result, LendingError):
            member_ids.append(result.id)

    borrowed = returned = 0
    for _ in range(num_loans):
        borrow_date = now - timedelta(days=rng.randint(0, 60), hours=rng.randint(0, 23))
        lending = LendingService(session, clock=_fixed_clock(borrow_date))
        loan = lending.borrow_book(rng.choice(book_ids), rng.choice(member_ids))
        if isinstance(loan, LendingError):
            continue
        borrowed += 1

        # Roughly half the loans come back, some of them late
        if rng.random() < 0.5:
            return_date = min(borrow_date + timedelta(days=rng.randint(1, 40)), now)
            lending.clock = _fixed_clock(return_date)
            if not isinstance(lending.return_book(loan.id), LendingError):
                returned += 1

    counts = {
        "books": len(book_ids),
        "members": len(member_ids),
        "loans": borrowed,
        "returns": returned,
    }
    logger.info("Seeded sample data: %s", counts)
    return counts

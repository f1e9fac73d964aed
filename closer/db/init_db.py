"""Database initialization and starter card seeding."""
import logging
from pathlib import Path
from typing import List
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session
from closer.config import settings
from closer.db.database import engine, SessionLocal, Base
from closer.db.models import CardRow
from closer.db.repository import CardRepository
from closer.models import Card, CardType

logger = logging.getLogger(__name__)

_BUSINESS_VERBS_1 = ("発表する", "買収する", "実施する", "延期する")
_BUSINESS_VERBS_2 = ("確実にする", "超える", "期限が切れる", "特集する")

# Starter deck served when no content pipeline has populated the cards table
SEED_CARDS: List[Card] = [
    Card(id="1", prompt="announce", options=_BUSINESS_VERBS_1, correct_index=0,
         card_type=CardType.VOCABULARY, category="verbs", difficulty="500"),
    Card(id="2", prompt="acquire", options=_BUSINESS_VERBS_1, correct_index=1,
         card_type=CardType.VOCABULARY, category="verbs", difficulty="700"),
    Card(id="3", prompt="conduct", options=_BUSINESS_VERBS_1, correct_index=2,
         card_type=CardType.VOCABULARY, category="verbs", difficulty="500"),
    Card(id="4", prompt="postpone", options=_BUSINESS_VERBS_1, correct_index=3,
         card_type=CardType.VOCABULARY, category="verbs", difficulty="700"),
    Card(id="5", prompt="ensure", options=_BUSINESS_VERBS_2, correct_index=0,
         card_type=CardType.VOCABULARY, category="verbs", difficulty="500"),
    Card(id="6", prompt="exceed", options=_BUSINESS_VERBS_2, correct_index=1,
         card_type=CardType.VOCABULARY, category="verbs", difficulty="700"),
    Card(id="7", prompt="expire", options=_BUSINESS_VERBS_2, correct_index=2,
         card_type=CardType.VOCABULARY, category="verbs", difficulty="900"),
    Card(id="8", prompt="feature", options=_BUSINESS_VERBS_2, correct_index=3,
         card_type=CardType.VOCABULARY, category="verbs", difficulty="500"),
    Card(id="g1", prompt="The report must be submitted ------- Friday.",
         options=("by", "until", "during", "since"), correct_index=0,
         card_type=CardType.GRAMMAR, category="prepositions", difficulty="700",
         explanation="'by' marks a deadline; 'until' marks a continuing state."),
    Card(id="g2", prompt="Ms. Tanaka asked that the meeting ------- postponed.",
         options=("is", "be", "was", "being"), correct_index=1,
         card_type=CardType.GRAMMAR, category="subjunctive", difficulty="900",
         explanation="Verbs of request take the base form in the that-clause."),
]


def seed_cards(db: Session) -> None:
    """Seed the cards table with the starter deck if it is empty."""
    existing_count = db.query(CardRow).count()
    if existing_count > 0:
        logger.info(f"Cards table already contains {existing_count} entries. Skipping seed.")
        return

    logger.info("Seeding starter cards...")
    CardRepository(db).add_all(SEED_CARDS)
    db.commit()
    logger.info(f"Successfully seeded {len(SEED_CARDS)} cards.")


def ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def init_db() -> None:
    """
    Initialize database: create tables and seed data.

    Safe to call multiple times - all operations are idempotent.
    """
    logger.info("Initializing database...")
    ensure_sqlite_directory(settings.DATABASE_URL)

    # Create all tables (idempotent - does nothing if tables exist)
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created/verified successfully.")

    if not settings.SEED_CARDS:
        return

    db = SessionLocal()
    try:
        seed_cards(db)
        logger.info("Database initialization complete.")
    except Exception as e:
        db.rollback()
        logger.error(f"Error during database initialization: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    # Set up basic logging for standalone execution
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    init_db()
